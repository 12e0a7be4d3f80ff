from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import boto3
import pytest
from moto import mock_aws

from dynax_py import KeyField, KeySchema, ensure_table

REGION = "us-east-1"


@pytest.fixture()
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.delenv("DYNAMODB_ENDPOINT", raising=False)


@pytest.fixture()
def ddb(aws_credentials: None) -> Iterator[Any]:
    with mock_aws():
        yield boto3.client("dynamodb", region_name=REGION)


@pytest.fixture()
def orders(ddb: Any) -> KeySchema:
    schema = KeySchema("orders", KeyField("customer", "string"), KeyField("order_no", "number"))
    ensure_table(schema, ddb, sleep=lambda _: None)
    return schema


@pytest.fixture()
def accounts(ddb: Any) -> KeySchema:
    schema = KeySchema("accounts", KeyField("id", "string"))
    ensure_table(schema, ddb, sleep=lambda _: None)
    return schema
