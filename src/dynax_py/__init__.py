from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .conditions import ConditionBuilder
from .errors import (
    BatchTooLargeError,
    BatchWriteError,
    ConditionFailedError,
    DynaxPyError,
    IdempotentParameterMismatchError,
    InvalidKeyError,
    NotFoundError,
    ServiceValidationError,
    ThroughputExceededError,
    TransactionCanceledError,
    TransactionConflictError,
    TransportError,
    UnsupportedValueTypeError,
    ValidationError,
)
from .expressions import ConditionExpressionResult, UpdateExpressionResult, merge_update_and_condition
from .schema import KeyField, KeySchema, build_create_table_request, ensure_table
from .updates import UpdateBuilder
from .values import TypedValue

if TYPE_CHECKING:
    from .batch import BatchWriter, BatchWriteResult, ChunkFailure, UnprocessedItem
    from .repository import QueryPage, Repository
    from .runtime import (
        AwsCallMetric,
        Settings,
        create_boto3_config,
        create_dynamodb_client,
        instrument_client,
    )
    from .transactions import DeleteUnit, TransactionalWriter, WriteUnit


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name in {"BatchWriter", "BatchWriteResult", "ChunkFailure", "UnprocessedItem"}:
        from . import batch

        return getattr(batch, name)
    if name in {"DeleteUnit", "TransactionalWriter", "WriteUnit"}:
        from . import transactions

        return getattr(transactions, name)
    if name in {"QueryPage", "Repository"}:
        from . import repository

        return getattr(repository, name)
    if name in {
        "AwsCallMetric",
        "Settings",
        "create_boto3_config",
        "create_dynamodb_client",
        "instrument_client",
    }:
        from . import runtime

        return getattr(runtime, name)
    raise AttributeError(name)


__all__ = [
    "AwsCallMetric",
    "BatchTooLargeError",
    "BatchWriteError",
    "BatchWriteResult",
    "BatchWriter",
    "build_create_table_request",
    "ChunkFailure",
    "ConditionBuilder",
    "ConditionExpressionResult",
    "ConditionFailedError",
    "create_boto3_config",
    "create_dynamodb_client",
    "DeleteUnit",
    "DynaxPyError",
    "ensure_table",
    "IdempotentParameterMismatchError",
    "instrument_client",
    "InvalidKeyError",
    "KeyField",
    "KeySchema",
    "merge_update_and_condition",
    "NotFoundError",
    "QueryPage",
    "Repository",
    "ServiceValidationError",
    "Settings",
    "ThroughputExceededError",
    "TransactionalWriter",
    "TransactionCanceledError",
    "TransactionConflictError",
    "TransportError",
    "TypedValue",
    "UnprocessedItem",
    "UnsupportedValueTypeError",
    "UpdateBuilder",
    "UpdateExpressionResult",
    "ValidationError",
    "WriteUnit",
    "__repo_version__",
    "__version__",
]
