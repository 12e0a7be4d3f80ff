from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

LOGGER_NAME = "dynax_py"


def get_logger(**context: Any) -> Any:
    return structlog.get_logger(LOGGER_NAME).bind(**context)


def _key_repr(key: Mapping[str, Any]) -> dict[str, Any]:
    # keys are logged, whole items never are
    return {str(k): v for k, v in key.items()}


class ReadEventLogger:
    def __init__(self, container: str, logger: Any | None = None) -> None:
        self._log = (logger or get_logger()).bind(container=container)

    def item_fetched(self, key: Mapping[str, Any], *, found: bool) -> None:
        self._log.info("item_fetched", operation="get", key=_key_repr(key), found=found)

    def query_executed(self, *, index_name: str | None, count: int, has_more: bool) -> None:
        self._log.info(
            "query_executed",
            operation="query",
            index_name=index_name,
            item_count=count,
            has_more=has_more,
        )


class WriteEventLogger:
    def __init__(self, container: str, logger: Any | None = None) -> None:
        self._log = (logger or get_logger()).bind(container=container)

    def item_put(self, key: Mapping[str, Any], *, conditional: bool = False) -> None:
        self._log.info("item_put", operation="put", key=_key_repr(key), conditional=conditional)

    def item_deleted(self, key: Mapping[str, Any], *, conditional: bool = False) -> None:
        self._log.info("item_deleted", operation="delete", key=_key_repr(key), conditional=conditional)

    def item_updated(self, key: Mapping[str, Any], *, conditional: bool, returned: bool) -> None:
        self._log.info(
            "item_updated",
            operation="update",
            key=_key_repr(key),
            conditional=conditional,
            returned=returned,
        )

    def batch_chunk_failed(self, *, chunk_index: int, size: int, error_code: str) -> None:
        self._log.warning(
            "batch_chunk_failed",
            operation="batch_write",
            chunk_index=chunk_index,
            chunk_size=size,
            error_code=error_code,
        )

    def batch_write_performed(
        self,
        *,
        put_count: int,
        delete_count: int,
        chunk_count: int,
        unprocessed_count: int,
        failed_chunk_count: int,
    ) -> None:
        log = self._log.warning if failed_chunk_count else self._log.info
        log(
            "batch_write_performed",
            operation="batch_write",
            put_count=put_count,
            delete_count=delete_count,
            chunk_count=chunk_count,
            unprocessed_count=unprocessed_count,
            failed_chunk_count=failed_chunk_count,
        )


class TransactionEventLogger:
    def __init__(self, logger: Any | None = None) -> None:
        self._log = logger or get_logger()

    def transaction_succeeded(self, *, unit_count: int, containers: Iterable[str], token: str) -> None:
        self._log.info(
            "transaction_succeeded",
            operation="transact_write",
            unit_count=unit_count,
            containers=sorted(set(containers)),
            client_request_token=token,
        )

    def transaction_failed(
        self,
        *,
        unit_count: int,
        containers: Iterable[str],
        token: str,
        error_code: str,
    ) -> None:
        self._log.warning(
            "transaction_failed",
            operation="transact_write",
            unit_count=unit_count,
            containers=sorted(set(containers)),
            client_request_token=token,
            error_code=error_code,
        )
