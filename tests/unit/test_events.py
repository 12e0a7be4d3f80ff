from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from dynax_py import ConditionBuilder, KeyField, KeySchema, TransactionConflictError, UpdateBuilder
from dynax_py.batch import BatchWriter
from dynax_py.events import ReadEventLogger, TransactionEventLogger, WriteEventLogger, get_logger
from dynax_py.mocks import FakeDynamoDBClient
from dynax_py.repository import Repository
from dynax_py.testkit import client_error
from dynax_py.transactions import TransactionalWriter, WriteUnit

SCHEMA = KeySchema("notes", KeyField("pk", "string"))


def test_event_loggers_bind_operation_and_container() -> None:
    with capture_logs() as logs:
        ReadEventLogger("notes").item_fetched({"pk": "a"}, found=True)
        WriteEventLogger("notes").item_put({"pk": "a"}, conditional=True)
        TransactionEventLogger().transaction_succeeded(unit_count=2, containers=["b", "a", "b"], token="t")

    assert logs[0] == {
        "event": "item_fetched",
        "log_level": "info",
        "container": "notes",
        "operation": "get",
        "key": {"pk": "a"},
        "found": True,
    }
    assert logs[1]["event"] == "item_put"
    assert logs[1]["conditional"] is True
    assert logs[2]["containers"] == ["a", "b"]
    assert logs[2]["client_request_token"] == "t"


def test_get_logger_binds_context() -> None:
    with capture_logs() as logs:
        get_logger(service="orders").info("hello")
    assert logs == [{"event": "hello", "log_level": "info", "service": "orders"}]


def test_repository_logs_keys_but_not_item_bodies() -> None:
    client = FakeDynamoDBClient()
    client.expect("put_item", response={})
    client.expect("update_item", response={"Attributes": {"pk": {"S": "a"}}})

    with capture_logs() as logs:
        repo = Repository(SCHEMA, client=client)
        repo.put({"pk": "a", "secret": "do-not-log"})
        repo.update(UpdateBuilder().set("n", 1), {"pk": "a"}, condition=ConditionBuilder().exists("pk"))

    put_event, update_event = logs
    assert put_event["event"] == "item_put"
    assert put_event["key"] == {"pk": "a"}
    assert "do-not-log" not in repr(put_event)
    assert update_event["event"] == "item_updated"
    assert update_event["conditional"] is True
    assert update_event["returned"] is True


def test_batch_write_logs_summary_and_chunk_failures() -> None:
    client = FakeDynamoDBClient()

    def handler(req: dict[str, Any]) -> dict[str, Any]:
        entries = req["RequestItems"]["notes"]
        if entries[0]["PutRequest"]["Item"]["pk"]["S"] == "p25":
            raise client_error("ThrottlingException", "slow")
        return {"UnprocessedItems": {"notes": entries[:1]}}

    client.stub("batch_write_item", handler)

    with capture_logs() as logs:
        BatchWriter(client, SCHEMA).write_detailed([{"pk": f"p{i}"} for i in range(30)])

    failed = [e for e in logs if e["event"] == "batch_chunk_failed"]
    summary = [e for e in logs if e["event"] == "batch_write_performed"]
    assert failed == [
        {
            "event": "batch_chunk_failed",
            "log_level": "warning",
            "container": "notes",
            "operation": "batch_write",
            "chunk_index": 1,
            "chunk_size": 5,
            "error_code": "ThrottlingException",
        }
    ]
    assert len(summary) == 1
    assert summary[0]["log_level"] == "warning"
    assert summary[0]["put_count"] == 30
    assert summary[0]["chunk_count"] == 2
    assert summary[0]["unprocessed_count"] == 1
    assert summary[0]["failed_chunk_count"] == 1


def test_transaction_failure_is_logged_with_error_code() -> None:
    client = FakeDynamoDBClient()
    client.expect("transact_write_items", error=client_error("TransactionConflictException", "busy"))

    with capture_logs() as logs, pytest.raises(TransactionConflictError):
        TransactionalWriter(client, token_factory=lambda: "tok").write([WriteUnit(SCHEMA, {"pk": "a"})])

    assert logs == [
        {
            "event": "transaction_failed",
            "log_level": "warning",
            "operation": "transact_write",
            "unit_count": 1,
            "containers": ["notes"],
            "client_request_token": "tok",
            "error_code": "TransactionConflictException",
        }
    ]
