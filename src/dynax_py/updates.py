from __future__ import annotations

from typing import Any, Literal

from .errors import UnsupportedValueTypeError, ValidationError
from .expressions import NAME_PREFIX, VALUE_PREFIX, UpdateExpressionResult
from .values import TypedValue, is_number, typed_value

type ClauseKind = Literal["SET", "REMOVE", "ADD"]

# order in which clause groups are emitted
_CLAUSE_ORDER: tuple[ClauseKind, ...] = ("SET", "REMOVE", "ADD")


class UpdateBuilder:
    """Accumulates SET/REMOVE/ADD actions into one update expression.

    Placeholders are numbered in call order, but clauses are buffered per kind
    and emitted grouped, so interleaved calls still produce an expression the
    store accepts::

        UpdateBuilder().set("name", "x").remove("age").set("tier", 2).build()
        # SET #attr0 = :val0, #attr2 = :val2 REMOVE #attr1
    """

    def __init__(self) -> None:
        self._clauses: dict[ClauseKind, list[str]] = {kind: [] for kind in _CLAUSE_ORDER}
        self._names: dict[str, str] = {}
        self._values: dict[str, TypedValue] = {}
        self._index = 0

    def set(self, field: str, value: Any) -> UpdateBuilder:
        name_ref, value_ref = self._refs(field, value)
        self._clauses["SET"].append(f"{name_ref} = {value_ref}")
        return self

    def set_if_not_exists(self, field: str, value: Any) -> UpdateBuilder:
        name_ref, value_ref = self._refs(field, value)
        self._clauses["SET"].append(f"{name_ref} = if_not_exists({name_ref}, {value_ref})")
        return self

    def remove(self, field: str) -> UpdateBuilder:
        name_ref = self._name_ref(field)
        self._index += 1
        self._clauses["REMOVE"].append(name_ref)
        return self

    def add(self, field: str, value: int | float) -> UpdateBuilder:
        if not is_number(value):
            raise UnsupportedValueTypeError(f"ADD requires a number, got {type(value).__name__}")
        name_ref, value_ref = self._refs(field, value)
        self._clauses["ADD"].append(f"{name_ref} {value_ref}")
        return self

    def increment(self, field: str, by: int = 1) -> UpdateBuilder:
        return self.add(field, by)

    def decrement(self, field: str, by: int = 1) -> UpdateBuilder:
        return self.add(field, -by)

    def is_empty(self) -> bool:
        return not any(self._clauses.values())

    def build(self) -> UpdateExpressionResult:
        parts = [
            f"{kind} " + ", ".join(self._clauses[kind]) for kind in _CLAUSE_ORDER if self._clauses[kind]
        ]
        return UpdateExpressionResult(
            update_expression=" ".join(parts),
            attribute_names=self._names,
            attribute_values=self._values,
        )

    def _refs(self, field: str, value: Any) -> tuple[str, str]:
        tv = typed_value(value)
        name_ref = self._name_ref(field)
        value_ref = f"{VALUE_PREFIX}{self._index}"
        self._values[value_ref] = tv
        self._index += 1
        return name_ref, value_ref

    def _name_ref(self, field: str) -> str:
        if not isinstance(field, str) or not field:
            raise ValidationError("field name must be a non-empty string")
        ref = f"{NAME_PREFIX}{self._index}"
        self._names[ref] = field
        return ref
