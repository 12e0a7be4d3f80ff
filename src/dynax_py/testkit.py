from __future__ import annotations

import itertools
from collections.abc import Callable

from botocore.exceptions import ClientError

from .mocks import ANY, FakeDynamoDBClient


def client_error(
    code: str,
    message: str = "",
    *,
    operation: str = "Op",
    cancellation_reasons: list[str] | None = None,
) -> ClientError:
    response: dict = {"Error": {"Code": code, "Message": message or code}}
    if cancellation_reasons is not None:
        response["CancellationReasons"] = [{"Code": c} for c in cancellation_reasons]
    return ClientError(response, operation)


def sequential_tokens(prefix: str = "token") -> Callable[[], str]:
    if not prefix:
        raise ValueError("prefix must be non-empty")
    counter = itertools.count(1)

    def next_token() -> str:
        return f"{prefix}-{next(counter)}"

    return next_token


def no_sleep(_: float) -> None:
    return None


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "client_error",
    "no_sleep",
    "sequential_tokens",
]
