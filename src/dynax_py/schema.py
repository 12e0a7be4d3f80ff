from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from botocore.exceptions import ClientError

from .aws_errors import map_client_error
from .errors import InvalidKeyError, ValidationError
from .values import Key, is_number

type KeyType = Literal["string", "number"]
type BillingMode = Literal["PAY_PER_REQUEST", "PROVISIONED"]

_WIRE_TYPES: dict[str, str] = {"string": "S", "number": "N"}


def _describe_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if is_number(value):
        return "number"
    return type(value).__name__


@dataclass(frozen=True)
class KeyField:
    name: str
    type: KeyType

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("key field name is required")
        if self.type not in _WIRE_TYPES:
            raise ValueError(f"unsupported key type: {self.type}")

    def matches(self, value: Any) -> bool:
        return _describe_type(value) == self.type


@dataclass(frozen=True)
class KeySchema:
    """Names a container and declares the fields that identify its items.

    Instances are immutable and meant to be created once and shared;
    ``validate_key`` only reads its argument.
    """

    container_name: str
    partition_key: KeyField
    sort_key: KeyField | None = None

    def __post_init__(self) -> None:
        if not self.container_name:
            raise ValueError("container_name is required")
        if self.sort_key is not None and self.sort_key.name == self.partition_key.name:
            raise ValueError("partition and sort key must be different fields")

    def get_container_name(self) -> str:
        return self.container_name

    @property
    def key_fields(self) -> tuple[KeyField, ...]:
        if self.sort_key is None:
            return (self.partition_key,)
        return (self.partition_key, self.sort_key)

    def validate_key(self, candidate: Mapping[str, Any]) -> None:
        if not isinstance(candidate, Mapping):
            raise InvalidKeyError(
                f"key must be a mapping, got {type(candidate).__name__}",
                field=self.partition_key.name,
            )
        for key_field in self.key_fields:
            if key_field.name not in candidate:
                raise InvalidKeyError(f"missing required key: {key_field.name}", field=key_field.name)
            value = candidate[key_field.name]
            if not key_field.matches(value):
                raise InvalidKeyError(
                    f'invalid type for key "{key_field.name}": expected {key_field.type}, '
                    f"got {_describe_type(value)}",
                    field=key_field.name,
                )

    def key_of(self, item: Mapping[str, Any]) -> Key:
        self.validate_key(item)
        return {f.name: item[f.name] for f in self.key_fields}


def build_create_table_request(
    schema: KeySchema,
    *,
    billing_mode: BillingMode = "PAY_PER_REQUEST",
    provisioned_throughput: dict[str, int] | None = None,
) -> dict[str, Any]:
    if billing_mode not in {"PAY_PER_REQUEST", "PROVISIONED"}:
        raise ValidationError(f"unsupported billing_mode: {billing_mode}")
    if billing_mode == "PROVISIONED" and provisioned_throughput is None:
        raise ValidationError("provisioned_throughput is required when billing_mode=PROVISIONED")

    key_schema = [{"AttributeName": schema.partition_key.name, "KeyType": "HASH"}]
    if schema.sort_key is not None:
        key_schema.append({"AttributeName": schema.sort_key.name, "KeyType": "RANGE"})

    req: dict[str, Any] = {
        "TableName": schema.container_name,
        "BillingMode": billing_mode,
        "KeySchema": key_schema,
        "AttributeDefinitions": [
            {"AttributeName": f.name, "AttributeType": _WIRE_TYPES[f.type]} for f in schema.key_fields
        ],
    }
    if billing_mode == "PROVISIONED" and provisioned_throughput is not None:
        req["ProvisionedThroughput"] = dict(provisioned_throughput)
    return req


def ensure_table(
    schema: KeySchema,
    client: Any,
    *,
    billing_mode: BillingMode = "PAY_PER_REQUEST",
    provisioned_throughput: dict[str, int] | None = None,
    wait_timeout_seconds: float = 60.0,
    poll_interval_seconds: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    req = build_create_table_request(
        schema,
        billing_mode=billing_mode,
        provisioned_throughput=provisioned_throughput,
    )
    try:
        client.create_table(**req)
    except ClientError as err:
        code = str(err.response.get("Error", {}).get("Code", ""))
        if code != "ResourceInUseException":
            raise map_client_error(err) from err

    deadline = time.monotonic() + wait_timeout_seconds
    while time.monotonic() < deadline:
        try:
            resp = client.describe_table(TableName=schema.container_name)
        except ClientError as err:
            raise map_client_error(err) from err
        if str(resp.get("Table", {}).get("TableStatus", "")) == "ACTIVE":
            return
        sleep(poll_interval_seconds)

    raise ValidationError(f"timed out waiting for table ACTIVE: {schema.container_name}")
