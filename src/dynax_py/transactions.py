from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .aws_errors import map_transaction_error, map_transport_error
from .conditions import ConditionBuilder
from .errors import BatchTooLargeError, TransportError, ValidationError
from .events import TransactionEventLogger
from .schema import KeySchema
from .values import Item, Key, marshal_item

TRANSACT_WRITE_MAX_ITEMS = 100


@dataclass(frozen=True)
class WriteUnit:
    container: KeySchema
    item: Item
    condition: ConditionBuilder | None = None


@dataclass(frozen=True)
class DeleteUnit:
    container: KeySchema
    key: Key
    condition: ConditionBuilder | None = None


type TransactUnit = WriteUnit | DeleteUnit


def _default_token() -> str:
    return str(uuid.uuid4())


def _with_condition(req: dict[str, Any], condition: ConditionBuilder | None) -> dict[str, Any]:
    if condition is not None:
        req.update(condition.build(strict=True).to_request())
    return req


class TransactionalWriter:
    """Submits puts and deletes across containers as one all-or-nothing request.

    Every unit is checked locally before anything is sent. Each call carries one
    client request token: a fresh one unless the caller passes its own, which is
    how a caller gets idempotent replay across its own retries.
    """

    def __init__(
        self,
        client: Any,
        *,
        token_factory: Callable[[], str] = _default_token,
        logger: Any | None = None,
    ) -> None:
        self._client = client
        self._token_factory = token_factory
        self._events = TransactionEventLogger(logger)

    def write(self, units: Sequence[TransactUnit], *, client_request_token: str | None = None) -> str:
        if not units:
            raise ValidationError("units is required")
        if len(units) > TRANSACT_WRITE_MAX_ITEMS:
            raise BatchTooLargeError(limit=TRANSACT_WRITE_MAX_ITEMS, count=len(units))
        if client_request_token is not None and not client_request_token.strip():
            raise ValidationError("client_request_token must be non-empty")

        transact_items = [self._to_transact_item(unit) for unit in units]
        token = client_request_token or self._token_factory()
        containers = [unit.container.container_name for unit in units]

        try:
            self._client.transact_write_items(TransactItems=transact_items, ClientRequestToken=token)
        except (ClientError, BotoCoreError) as err:
            mapped: TransportError = (
                map_transaction_error(err) if isinstance(err, ClientError) else map_transport_error(err)
            )
            self._events.transaction_failed(
                unit_count=len(units),
                containers=containers,
                token=token,
                error_code=mapped.code,
            )
            raise mapped from err

        self._events.transaction_succeeded(unit_count=len(units), containers=containers, token=token)
        return token

    def _to_transact_item(self, unit: TransactUnit) -> dict[str, Any]:
        if isinstance(unit, WriteUnit):
            unit.container.validate_key(unit.item)
            req = {"TableName": unit.container.container_name, "Item": marshal_item(unit.item)}
            return {"Put": _with_condition(req, unit.condition)}

        if isinstance(unit, DeleteUnit):
            key = unit.container.key_of(unit.key)
            req = {"TableName": unit.container.container_name, "Key": marshal_item(key)}
            return {"Delete": _with_condition(req, unit.condition)}

        raise ValidationError(f"unsupported transaction unit: {type(unit).__name__}")
