from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Literal

from botocore.exceptions import BotoCoreError, ClientError

from .aws_errors import map_client_error, map_transport_error
from .errors import BatchTooLargeError, BatchWriteError, TransportError
from .events import WriteEventLogger
from .schema import KeySchema
from .values import Item, Key, marshal_item, unmarshal_item

BATCH_WRITE_CHUNK_SIZE = 25
DEFAULT_MAX_BATCH_ITEMS = 1000
_MAX_WORKERS = 16

type EntryType = Literal["put", "delete"]


@dataclass(frozen=True)
class UnprocessedItem:
    type: EntryType
    item: Item | Key


@dataclass(frozen=True)
class ChunkFailure:
    index: int
    entries: list[UnprocessedItem]
    error: TransportError


@dataclass(frozen=True)
class BatchWriteResult:
    request_count: int
    unprocessed: list[UnprocessedItem] = field(default_factory=list)
    failures: list[ChunkFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unprocessed and not self.failures


def _chunked[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    if size <= 0:
        raise ValueError("size must be > 0")
    return [items[i : i + size] for i in range(0, len(items), size)]


def _decode_request(request: Mapping[str, Any]) -> UnprocessedItem:
    if "PutRequest" in request:
        return UnprocessedItem(type="put", item=unmarshal_item(request["PutRequest"]["Item"]))
    return UnprocessedItem(type="delete", item=unmarshal_item(request["DeleteRequest"]["Key"]))


class BatchWriter:
    """Writes puts and deletes for one container in chunks of 25.

    Chunks are sent concurrently and each one settles on its own: a failed
    chunk never hides what its siblings wrote or handed back. Nothing is
    retried here; unprocessed entries go back to the caller.
    """

    def __init__(
        self,
        client: Any,
        schema: KeySchema,
        *,
        max_batch_items: int = DEFAULT_MAX_BATCH_ITEMS,
        max_workers: int | None = None,
        logger: Any | None = None,
    ) -> None:
        if max_batch_items <= 0:
            raise ValueError("max_batch_items must be > 0")
        if max_workers is not None and max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._client = client
        self._schema = schema
        self._max_batch_items = max_batch_items
        self._max_workers = max_workers
        self._events = WriteEventLogger(schema.container_name, logger)

    @property
    def max_batch_items(self) -> int:
        return self._max_batch_items

    def write(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> list[UnprocessedItem]:
        result = self.write_detailed(puts, deletes)
        if result.failures:
            raise BatchWriteError(unprocessed=result.unprocessed, failures=result.failures)
        return result.unprocessed

    def write_detailed(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> BatchWriteResult:
        requests = self._build_requests(puts, deletes)
        if not requests:
            return BatchWriteResult(request_count=0)

        chunks = _chunked(requests, BATCH_WRITE_CHUNK_SIZE)
        workers = self._max_workers or min(len(chunks), _MAX_WORKERS)

        unprocessed: list[UnprocessedItem] = []
        failures: list[ChunkFailure] = []
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [ex.submit(self._send_chunk, chunk) for chunk in chunks]
            for index, (chunk, fut) in enumerate(zip(chunks, futures, strict=True)):
                try:
                    unprocessed.extend(fut.result())
                except Exception as exc:
                    err = exc if isinstance(exc, TransportError) else map_transport_error(exc)
                    self._events.batch_chunk_failed(chunk_index=index, size=len(chunk), error_code=err.code)
                    failures.append(
                        ChunkFailure(
                            index=index,
                            entries=[_decode_request(r) for r in chunk],
                            error=err,
                        )
                    )

        self._events.batch_write_performed(
            put_count=len(puts),
            delete_count=len(deletes),
            chunk_count=len(chunks),
            unprocessed_count=len(unprocessed),
            failed_chunk_count=len(failures),
        )
        return BatchWriteResult(request_count=len(requests), unprocessed=unprocessed, failures=failures)

    def _build_requests(self, puts: Sequence[Item], deletes: Sequence[Key]) -> list[dict[str, Any]]:
        count = len(puts) + len(deletes)
        if count > self._max_batch_items:
            raise BatchTooLargeError(limit=self._max_batch_items, count=count)

        requests: list[dict[str, Any]] = []
        for item in puts:
            self._schema.validate_key(item)
            requests.append({"PutRequest": {"Item": marshal_item(item)}})
        for key in deletes:
            requests.append({"DeleteRequest": {"Key": marshal_item(self._schema.key_of(key))}})
        return requests

    def _send_chunk(self, chunk: Sequence[dict[str, Any]]) -> list[UnprocessedItem]:
        table = self._schema.container_name
        try:
            resp = self._client.batch_write_item(RequestItems={table: list(chunk)})
        except ClientError as err:
            raise map_client_error(err) from err
        except BotoCoreError as err:
            raise map_transport_error(err) from err

        pending = (resp.get("UnprocessedItems") or {}).get(table) or []
        return [_decode_request(r) for r in pending]
