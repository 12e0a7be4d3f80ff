from __future__ import annotations

from botocore.exceptions import ClientError

from .errors import (
    ConditionFailedError,
    IdempotentParameterMismatchError,
    NotFoundError,
    ServiceValidationError,
    ThroughputExceededError,
    TransactionCanceledError,
    TransactionConflictError,
    TransportError,
)

_THROUGHPUT_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ThrottlingException",
    }
)


def _error_parts(err: ClientError) -> tuple[str, str]:
    code = str(err.response.get("Error", {}).get("Code", ""))
    message = str(err.response.get("Error", {}).get("Message", ""))
    return code, message


def map_client_error(err: ClientError) -> TransportError:
    code, message = _error_parts(err)

    if code == "ConditionalCheckFailedException":
        return ConditionFailedError(message or "conditional check failed")
    if code == "ValidationException":
        return ServiceValidationError(message or "validation failed")
    if code == "ResourceNotFoundException":
        return NotFoundError(message or "resource not found")
    if code in _THROUGHPUT_CODES:
        return ThroughputExceededError(code=code, message=message or str(err))
    if code in {"TransactionConflictException", "TransactionInProgressException"}:
        return TransactionConflictError(code=code, message=message or str(err))
    if code == "IdempotentParameterMismatchException":
        return IdempotentParameterMismatchError(message or "idempotent parameter mismatch")

    return TransportError(code=code or "UnknownError", message=message or str(err))


def map_transaction_error(err: ClientError) -> TransportError:
    code, message = _error_parts(err)

    if code == "TransactionCanceledException":
        reasons_raw = err.response.get("CancellationReasons") or []
        reason_codes = tuple(
            str(reason.get("Code", "Unknown"))
            for reason in reasons_raw
            if isinstance(reason, dict) and reason.get("Code")
        )

        if any(rc == "ConditionalCheckFailed" for rc in reason_codes) or "ConditionalCheckFailed" in message:
            return ConditionFailedError(
                message or "transaction canceled: ConditionalCheckFailed",
                reason_codes=reason_codes,
            )

        return TransactionCanceledError(
            message=message or "transaction canceled",
            reason_codes=reason_codes,
        )

    return map_client_error(err)


def map_transport_error(err: Exception) -> TransportError:
    # failures outside the service response keep the exception class name as the code
    return TransportError(code=type(err).__name__, message=str(err) or type(err).__name__)
