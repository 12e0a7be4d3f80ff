from __future__ import annotations

import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .batch import DEFAULT_MAX_BATCH_ITEMS
from .errors import ValidationError


@dataclass(frozen=True)
class AwsCallMetric:
    operation: str
    seconds: float
    ok: bool
    error_code: str | None = None


def _env_number[N: (int, float)](environ: Mapping[str, str], name: str, cast_to: type[N], default: N) -> N:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast_to(raw)
    except ValueError as err:
        raise ValidationError(f"{name} must be a {cast_to.__name__}, got {raw!r}") from err
    if value <= 0:
        raise ValidationError(f"{name} must be > 0, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    region: str | None = None
    endpoint_url: str | None = None
    max_batch_items: int = DEFAULT_MAX_BATCH_ITEMS
    connect_timeout: float = 1.0
    read_timeout: float = 3.0
    max_attempts: int = 1

    def __post_init__(self) -> None:
        if self.max_batch_items <= 0:
            raise ValidationError("max_batch_items must be > 0")
        if self.max_attempts <= 0:
            raise ValidationError("max_attempts must be > 0")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> Settings:
        region = environ.get("DYNAX_REGION") or environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")
        return cls(
            region=region or None,
            endpoint_url=environ.get("DYNAMODB_ENDPOINT") or None,
            max_batch_items=_env_number(environ, "DYNAX_MAX_BATCH_ITEMS", int, DEFAULT_MAX_BATCH_ITEMS),
            connect_timeout=_env_number(environ, "DYNAX_CONNECT_TIMEOUT", float, 1.0),
            read_timeout=_env_number(environ, "DYNAX_READ_TIMEOUT", float, 3.0),
            max_attempts=_env_number(environ, "DYNAX_MAX_ATTEMPTS", int, 1),
        )


def create_boto3_config(settings: Settings) -> Config:
    # max_attempts counts the first try, so 1 means the SDK never retries
    return Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
    )


class _InstrumentedClient:
    def __init__(self, client: Any, on_call: Callable[[AwsCallMetric], None]) -> None:
        self._client = client
        self._on_call = on_call

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or not callable(attr):
            return attr

        def wrapped(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            try:
                out = attr(*args, **kwargs)
            except Exception as err:
                code = type(err).__name__
                if isinstance(err, ClientError):
                    code = str(err.response.get("Error", {}).get("Code") or code)
                self._on_call(
                    AwsCallMetric(operation=name, seconds=time.monotonic() - start, ok=False, error_code=code)
                )
                raise

            self._on_call(AwsCallMetric(operation=name, seconds=time.monotonic() - start, ok=True))
            return out

        return wrapped


def instrument_client(client: Any, on_call: Callable[[AwsCallMetric], None]) -> Any:
    return _InstrumentedClient(client, on_call)


def create_dynamodb_client(
    settings: Settings | None = None,
    *,
    session: Any | None = None,
    metrics: Callable[[AwsCallMetric], None] | None = None,
) -> Any:
    settings = settings or Settings.from_env()
    sess = session or boto3.session.Session(region_name=settings.region)
    client = cast(Any, sess).client(
        "dynamodb",
        region_name=settings.region,
        endpoint_url=settings.endpoint_url,
        config=create_boto3_config(settings),
    )
    if metrics is not None:
        client = instrument_client(client, metrics)
    return client
