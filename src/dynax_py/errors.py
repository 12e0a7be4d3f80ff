from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .batch import ChunkFailure, UnprocessedItem


class DynaxPyError(Exception):
    pass


class ValidationError(DynaxPyError):
    pass


class UnsupportedValueTypeError(ValidationError):
    def __init__(self, value_type: str) -> None:
        super().__init__(f"unsupported value type: {value_type}")
        self.value_type = value_type


class InvalidKeyError(ValidationError):
    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class BatchTooLargeError(ValidationError):
    def __init__(self, *, limit: int, count: int) -> None:
        super().__init__(f"batch of {count} items exceeds the maximum of {limit}")
        self.limit = limit
        self.count = count


_RETRYABLE_CODES = frozenset(
    {
        "InternalServerError",
        "ItemCollectionSizeLimitExceededException",
        "LimitExceededException",
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ServiceUnavailable",
        "ThrottlingException",
        "TransactionConflictException",
        "TransactionInProgressException",
        # connection-level failures reported by botocore
        "ConnectTimeoutError",
        "ConnectionClosedError",
        "EndpointConnectionError",
        "ReadTimeoutError",
    }
)


class TransportError(DynaxPyError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.code in _RETRYABLE_CODES


class ConditionFailedError(TransportError):
    def __init__(self, message: str, *, reason_codes: tuple[str, ...] = ()) -> None:
        super().__init__(code="ConditionalCheckFailedException", message=message)
        self.reason_codes = reason_codes


class NotFoundError(TransportError):
    def __init__(self, message: str) -> None:
        super().__init__(code="ResourceNotFoundException", message=message)


class ServiceValidationError(TransportError):
    def __init__(self, message: str) -> None:
        super().__init__(code="ValidationException", message=message)


class ThroughputExceededError(TransportError):
    pass


class TransactionConflictError(TransportError):
    pass


class IdempotentParameterMismatchError(TransportError):
    def __init__(self, message: str) -> None:
        super().__init__(code="IdempotentParameterMismatchException", message=message)


class TransactionCanceledError(TransportError):
    def __init__(self, *, message: str, reason_codes: tuple[str, ...]) -> None:
        super().__init__(code="TransactionCanceledException", message=message)
        self.reason_codes = reason_codes

    @property
    def retryable(self) -> bool:
        return bool(self.reason_codes) and all(
            rc in {"TransactionConflict", "ThrottlingError", "ProvisionedThroughputExceeded", "None"}
            for rc in self.reason_codes
        )


class BatchWriteError(TransportError):
    """Raised when one or more batch chunks failed outright.

    ``unprocessed`` holds the entries the store handed back from chunks that did
    complete; ``failures`` holds each failed chunk with its entries and error.
    Entries written by successful chunks are not repeated anywhere.
    """

    def __init__(
        self,
        *,
        unprocessed: Sequence[UnprocessedItem],
        failures: Sequence[ChunkFailure],
    ) -> None:
        first = failures[0].error
        super().__init__(
            code=first.code,
            message=f"{len(failures)} batch chunk(s) failed; first error: {first.message}",
        )
        self.unprocessed = list(unprocessed)
        self.failures = list(failures)

    @property
    def retryable(self) -> bool:
        return all(f.error.retryable for f in self.failures)
