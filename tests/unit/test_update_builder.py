from __future__ import annotations

import pytest

from dynax_py import TypedValue, UnsupportedValueTypeError, UpdateBuilder, ValidationError


def test_update_builder_groups_clauses_by_kind() -> None:
    result = UpdateBuilder().set("name", "x").remove("age").set("tier", 2).add("visits", 1).build()

    assert result.update_expression == "SET #attr0 = :val0, #attr2 = :val2 REMOVE #attr1 ADD #attr3 :val3"
    assert result.attribute_names == {
        "#attr0": "name",
        "#attr1": "age",
        "#attr2": "tier",
        "#attr3": "visits",
    }
    assert result.attribute_values == {
        ":val0": TypedValue(kind="S", raw="x"),
        ":val2": TypedValue(kind="N", raw="2"),
        ":val3": TypedValue(kind="N", raw="1"),
    }


def test_update_builder_remove_consumes_an_index_without_a_value() -> None:
    result = UpdateBuilder().remove("a").remove("b").build()
    assert result.update_expression == "REMOVE #attr0, #attr1"
    assert result.attribute_values == {}


def test_update_builder_set_if_not_exists_and_counters() -> None:
    result = (
        UpdateBuilder()
        .set_if_not_exists("created_at", "2024-01-01")
        .increment("views")
        .decrement("stock", by=3)
        .build()
    )

    assert result.update_expression == (
        "SET #attr0 = if_not_exists(#attr0, :val0) ADD #attr1 :val1, #attr2 :val2"
    )
    assert result.attribute_values[":val1"] == TypedValue(kind="N", raw="1")
    assert result.attribute_values[":val2"] == TypedValue(kind="N", raw="-3")


def test_update_builder_add_requires_a_number() -> None:
    builder = UpdateBuilder()
    with pytest.raises(UnsupportedValueTypeError, match="ADD requires a number"):
        builder.add("count", "1")  # type: ignore[arg-type]
    with pytest.raises(UnsupportedValueTypeError, match="ADD requires a number"):
        builder.add("count", True)
    assert builder.is_empty()


def test_update_builder_rejects_unsupported_set_values() -> None:
    builder = UpdateBuilder()
    with pytest.raises(UnsupportedValueTypeError):
        builder.set("payload", {"a": 1})
    assert builder.build().update_expression == ""


def test_update_builder_rejects_empty_field_name() -> None:
    with pytest.raises(ValidationError):
        UpdateBuilder().remove("")


def test_update_builder_build_is_repeatable() -> None:
    builder = UpdateBuilder().set("a", 1).remove("b")
    first = builder.build()
    second = builder.build()
    assert first == second
    assert not builder.is_empty()


def test_update_result_to_request() -> None:
    req = UpdateBuilder().set("name", "x").remove("old").build().to_request()
    assert req == {
        "UpdateExpression": "SET #attr0 = :val0 REMOVE #attr1",
        "ExpressionAttributeNames": {"#attr0": "name", "#attr1": "old"},
        "ExpressionAttributeValues": {":val0": {"S": "x"}},
    }
