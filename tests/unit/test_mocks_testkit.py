from __future__ import annotations

import threading

import pytest
from botocore.exceptions import ClientError

from dynax_py import KeyField, KeySchema, Repository, testkit
from dynax_py.mocks import ANY, FakeDynamoDBClient


def test_fake_dynamodb_client_records_and_matches_put_item() -> None:
    client = FakeDynamoDBClient()
    client.expect("put_item", {"TableName": "notes", "Item": ANY})

    Repository(KeySchema("notes", KeyField("pk", "string")), client=client).put({"pk": "A"})

    client.assert_no_pending()
    assert client.calls[0][0] == "put_item"


def test_fake_dynamodb_client_asserts_pending_calls() -> None:
    client = FakeDynamoDBClient()
    client.expect("query")
    with pytest.raises(AssertionError, match="pending expected calls"):
        client.assert_no_pending()


def test_fake_dynamodb_client_rejects_unexpected_and_out_of_order_calls() -> None:
    client = FakeDynamoDBClient()
    with pytest.raises(AssertionError, match="unexpected call: get_item"):
        client.get_item(TableName="t")

    client.expect("put_item")
    with pytest.raises(AssertionError, match="expected put_item, got delete_item"):
        client.delete_item(TableName="t")


@pytest.mark.parametrize(
    ("expected", "actual", "message"),
    [
        ({"TableName": "a"}, {"TableName": "b"}, "expected 'a', got 'b'"),
        ({"Key": {"pk": ANY}}, {}, "missing key 'Key'"),
        ({"Items": [1, 2]}, {"Items": [1]}, "expected 2 items, got 1"),
        ({"Items": [1]}, {"Items": "x"}, "expected list"),
        ({"Key": {"pk": 1}}, {"Key": "x"}, "expected dict"),
    ],
)
def test_fake_dynamodb_client_partial_matching(expected: dict, actual: dict, message: str) -> None:
    client = FakeDynamoDBClient()
    client.expect("query", expected)
    with pytest.raises(AssertionError, match=message):
        client.query(**actual)


def test_fake_dynamodb_client_stubs_answer_concurrent_callers() -> None:
    client = FakeDynamoDBClient()
    client.stub("batch_write_item", lambda req: {"UnprocessedItems": {}})

    threads = [
        threading.Thread(target=client.batch_write_item, kwargs={"RequestItems": {"t": [i]}})
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(client.calls_to("batch_write_item")) == 20
    client.assert_no_pending()


def test_fake_dynamodb_client_stubs_win_over_queued_expectations() -> None:
    client = FakeDynamoDBClient()
    client.expect("get_item", response={"Item": {"pk": {"S": "queued"}}})
    client.stub("get_item", lambda req: {"Item": {"pk": {"S": "stubbed"}}})

    assert client.get_item(TableName="t") == {"Item": {"pk": {"S": "stubbed"}}}
    with pytest.raises(AssertionError, match="pending expected calls"):
        client.assert_no_pending()


def test_client_error_builds_botocore_errors() -> None:
    err = testkit.client_error(
        "TransactionCanceledException",
        "nope",
        operation="TransactWriteItems",
        cancellation_reasons=["None", "ConditionalCheckFailed"],
    )
    assert isinstance(err, ClientError)
    assert err.response["Error"] == {"Code": "TransactionCanceledException", "Message": "nope"}
    assert err.response["CancellationReasons"] == [{"Code": "None"}, {"Code": "ConditionalCheckFailed"}]
    assert err.operation_name == "TransactWriteItems"

    bare = testkit.client_error("ThrottlingException")
    assert bare.response["Error"]["Message"] == "ThrottlingException"
    assert "CancellationReasons" not in bare.response


def test_sequential_tokens() -> None:
    tokens = testkit.sequential_tokens("tx")
    assert [tokens(), tokens(), tokens()] == ["tx-1", "tx-2", "tx-3"]
    with pytest.raises(ValueError):
        testkit.sequential_tokens("")


def test_testkit_reexports() -> None:
    assert testkit.ANY is ANY
    assert testkit.FakeDynamoDBClient is FakeDynamoDBClient
    assert testkit.no_sleep(1.0) is None
