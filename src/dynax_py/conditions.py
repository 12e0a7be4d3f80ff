from __future__ import annotations

from typing import Any

from .errors import ValidationError
from .expressions import NAME_PREFIX, VALUE_PREFIX, ConditionExpressionResult
from .values import TypedValue, typed_value


class ConditionBuilder:
    """Accumulates comparisons into a condition or key-condition expression.

    Every comparison takes the next placeholder index, so
    ``ConditionBuilder().eq("status", "ACTIVE").and_().gt("age", 18).build()``
    yields ``#attr0 = :val0 AND #attr1 > :val1``. Instances are single-use and
    not safe to share between threads.
    """

    def __init__(self) -> None:
        self._tokens: list[str] = []
        self._kinds: list[str] = []
        self._names: dict[str, str] = {}
        self._values: dict[str, TypedValue] = {}
        self._index = 0

    def eq(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, "=", value)

    def ne(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, "<>", value)

    def gt(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, ">", value)

    def ge(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, ">=", value)

    def lt(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, "<", value)

    def le(self, field: str, value: Any) -> ConditionBuilder:
        return self._compare(field, "<=", value)

    def begins_with(self, field: str, prefix: str) -> ConditionBuilder:
        if not isinstance(prefix, str):
            raise ValidationError("begins_with requires a string prefix")
        name_ref = self._name_ref(field)
        value_ref = self._value_ref(prefix)
        self._index += 1
        return self._push(f"begins_with({name_ref}, {value_ref})", "term")

    def exists(self, field: str) -> ConditionBuilder:
        name_ref = self._name_ref(field)
        self._index += 1
        return self._push(f"attribute_exists({name_ref})", "term")

    def not_exists(self, field: str) -> ConditionBuilder:
        name_ref = self._name_ref(field)
        self._index += 1
        return self._push(f"attribute_not_exists({name_ref})", "term")

    def and_(self) -> ConditionBuilder:
        return self._push("AND", "connective")

    def or_(self) -> ConditionBuilder:
        return self._push("OR", "connective")

    def build(self, *, strict: bool = False) -> ConditionExpressionResult:
        if strict:
            self._check_well_formed()
        return ConditionExpressionResult(
            expression=" ".join(self._tokens),
            attribute_names=self._names,
            attribute_values=self._values,
        )

    def _compare(self, field: str, operator: str, value: Any) -> ConditionBuilder:
        # type the value before touching any state so a bad value leaves no trace
        tv = typed_value(value)
        name_ref = self._name_ref(field)
        value_ref = f"{VALUE_PREFIX}{self._index}"
        self._values[value_ref] = tv
        self._index += 1
        return self._push(f"{name_ref} {operator} {value_ref}", "term")

    def _name_ref(self, field: str) -> str:
        if not isinstance(field, str) or not field:
            raise ValidationError("field name must be a non-empty string")
        ref = f"{NAME_PREFIX}{self._index}"
        self._names[ref] = field
        return ref

    def _value_ref(self, value: Any) -> str:
        ref = f"{VALUE_PREFIX}{self._index}"
        self._values[ref] = typed_value(value)
        return ref

    def _push(self, token: str, kind: str) -> ConditionBuilder:
        self._tokens.append(token)
        self._kinds.append(kind)
        return self

    def _check_well_formed(self) -> None:
        if not self._kinds:
            raise ValidationError("condition expression is empty")
        if self._kinds[0] == "connective":
            raise ValidationError(f"condition expression starts with {self._tokens[0]}")
        if self._kinds[-1] == "connective":
            raise ValidationError(f"condition expression ends with {self._tokens[-1]}")
        for i in range(1, len(self._kinds)):
            if self._kinds[i] == self._kinds[i - 1]:
                if self._kinds[i] == "connective":
                    raise ValidationError(
                        f"adjacent connectives: {self._tokens[i - 1]} {self._tokens[i]}"
                    )
                raise ValidationError(f"missing AND/OR before: {self._tokens[i]}")
