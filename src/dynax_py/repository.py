from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .aws_errors import map_client_error, map_transport_error
from .batch import BatchWriter, UnprocessedItem
from .conditions import ConditionBuilder
from .errors import ValidationError
from .events import ReadEventLogger, WriteEventLogger, get_logger
from .expressions import merge_update_and_condition
from .runtime import Settings, create_dynamodb_client
from .schema import KeySchema
from .transactions import TransactionalWriter
from .updates import UpdateBuilder
from .values import Item, Key, marshal_item, unmarshal_item


@dataclass(frozen=True)
class QueryPage:
    items: list[Item] = field(default_factory=list)
    last_evaluated_key: Key | None = None

    @property
    def has_more(self) -> bool:
        return self.last_evaluated_key is not None


class Repository:
    """Single-container facade over the network client.

    Keys are validated against the schema before every request. Conditions are
    built strictly; an update with a condition has its placeholders namespaced
    so the two builders never collide in the merged maps.
    """

    def __init__(
        self,
        schema: KeySchema,
        *,
        client: Any | None = None,
        settings: Settings | None = None,
        logger: Any | None = None,
        max_batch_items: int | None = None,
    ) -> None:
        self._schema = schema
        self._settings = settings or (Settings.from_env() if client is None else Settings())
        self._client = client if client is not None else create_dynamodb_client(self._settings)
        self._logger = logger or get_logger()
        self._max_batch_items = max_batch_items or self._settings.max_batch_items
        self._reads = ReadEventLogger(schema.container_name, self._logger)
        self._writes = WriteEventLogger(schema.container_name, self._logger)

    @property
    def schema(self) -> KeySchema:
        return self._schema

    @property
    def client(self) -> Any:
        return self._client

    def get(self, key: Mapping[str, Any], *, consistent_read: bool = False) -> Item | None:
        k = self._schema.key_of(key)
        resp = self._call(
            "get_item",
            TableName=self._schema.container_name,
            Key=marshal_item(k),
            ConsistentRead=consistent_read,
        )
        raw = resp.get("Item")
        self._reads.item_fetched(k, found=raw is not None)
        if raw is None:
            return None
        return unmarshal_item(raw)

    def put(self, item: Mapping[str, Any], *, condition: ConditionBuilder | None = None) -> None:
        k = self._schema.key_of(item)
        req: dict[str, Any] = {"TableName": self._schema.container_name, "Item": marshal_item(item)}
        if condition is not None:
            req.update(condition.build(strict=True).to_request())
        self._call("put_item", **req)
        self._writes.item_put(k, conditional=condition is not None)

    def delete(self, key: Mapping[str, Any], *, condition: ConditionBuilder | None = None) -> None:
        k = self._schema.key_of(key)
        req: dict[str, Any] = {"TableName": self._schema.container_name, "Key": marshal_item(k)}
        if condition is not None:
            req.update(condition.build(strict=True).to_request())
        self._call("delete_item", **req)
        self._writes.item_deleted(k, conditional=condition is not None)

    def update(
        self,
        update: UpdateBuilder,
        key: Mapping[str, Any],
        *,
        condition: ConditionBuilder | None = None,
    ) -> Item | None:
        k = self._schema.key_of(key)
        if update.is_empty():
            raise ValidationError("update has no actions")

        cond = condition.build(strict=True) if condition is not None else None
        req = merge_update_and_condition(update.build(), cond)
        req.update(
            {
                "TableName": self._schema.container_name,
                "Key": marshal_item(k),
                "ReturnValues": "ALL_NEW",
            }
        )
        resp = self._call("update_item", **req)
        raw = resp.get("Attributes")
        self._writes.item_updated(k, conditional=cond is not None, returned=raw is not None)
        if raw is None:
            return None
        return unmarshal_item(raw)

    def query(
        self,
        condition: ConditionBuilder,
        *,
        index_name: str | None = None,
        consistent_read: bool = False,
        limit: int | None = None,
        exclusive_start_key: Mapping[str, Any] | None = None,
    ) -> QueryPage:
        if limit is not None and limit <= 0:
            raise ValidationError("limit must be > 0")

        req: dict[str, Any] = {"TableName": self._schema.container_name}
        req.update(condition.build(strict=True).to_request("KeyConditionExpression"))
        if index_name:
            req["IndexName"] = index_name
        if consistent_read:
            req["ConsistentRead"] = True
        if limit is not None:
            req["Limit"] = limit
        if exclusive_start_key:
            req["ExclusiveStartKey"] = marshal_item(exclusive_start_key)

        resp = self._call("query", **req)
        items = [unmarshal_item(raw) for raw in resp.get("Items") or []]
        lek = resp.get("LastEvaluatedKey")
        page = QueryPage(items=items, last_evaluated_key=unmarshal_item(lek) if lek else None)
        self._reads.query_executed(index_name=index_name, count=len(items), has_more=page.has_more)
        return page

    def query_all(
        self,
        condition: ConditionBuilder,
        *,
        index_name: str | None = None,
        consistent_read: bool = False,
        limit: int | None = None,
    ) -> Iterator[Item]:
        cursor: Key | None = None
        while True:
            page = self.query(
                condition,
                index_name=index_name,
                consistent_read=consistent_read,
                limit=limit,
                exclusive_start_key=cursor,
            )
            yield from page.items
            if page.last_evaluated_key is None:
                return
            cursor = page.last_evaluated_key

    def batch_write(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> list[UnprocessedItem]:
        writer = BatchWriter(
            self._client,
            self._schema,
            max_batch_items=self._max_batch_items,
            logger=self._logger,
        )
        return writer.write(puts, deletes)

    def transaction(self, **kwargs: Any) -> TransactionalWriter:
        return TransactionalWriter(self._client, logger=self._logger, **kwargs)

    def _call(self, method: str, **req: Any) -> Mapping[str, Any]:
        try:
            return getattr(self._client, method)(**req)
        except ClientError as err:
            raise map_client_error(err) from err
        except BotoCoreError as err:
            raise map_transport_error(err) from err
