from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import ValidationError
from .values import TypedValue

NAME_PREFIX = "#attr"
VALUE_PREFIX = ":val"

_PLACEHOLDER = re.compile(r"(?<![\w#:])([#:])([A-Za-z0-9_]*?)(attr|val)(\d+)(?!\w)")


def _frozen[V](values: Mapping[str, V]) -> Mapping[str, V]:
    return MappingProxyType(dict(values))


def _rename(placeholder: str, tag: str) -> str:
    match = _PLACEHOLDER.fullmatch(placeholder)
    if match is None:
        raise ValidationError(f"not a builder placeholder: {placeholder}")
    sigil, existing, kind, index = match.groups()
    return f"{sigil}{tag}{existing}{kind}{index}"


def _rename_expression(expression: str, tag: str) -> str:
    return _PLACEHOLDER.sub(
        lambda m: f"{m.group(1)}{tag}{m.group(2)}{m.group(3)}{m.group(4)}",
        expression,
    )


def _check_tag(tag: str) -> None:
    if not re.fullmatch(r"[A-Za-z][A-Za-z0-9]*_", tag):
        raise ValidationError(f"invalid placeholder namespace: {tag!r}")


def _wire_values(values: Mapping[str, TypedValue]) -> dict[str, Any]:
    return {k: v.to_wire() for k, v in values.items()}


@dataclass(frozen=True)
class ConditionExpressionResult:
    expression: str
    attribute_names: Mapping[str, str] = field(default_factory=dict)
    attribute_values: Mapping[str, TypedValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attribute_names", _frozen(self.attribute_names))
        object.__setattr__(self, "attribute_values", _frozen(self.attribute_values))

    __hash__ = None  # type: ignore[assignment]

    def namespaced(self, tag: str) -> ConditionExpressionResult:
        _check_tag(tag)
        return ConditionExpressionResult(
            expression=_rename_expression(self.expression, tag),
            attribute_names={_rename(k, tag): v for k, v in self.attribute_names.items()},
            attribute_values={_rename(k, tag): v for k, v in self.attribute_values.items()},
        )

    def to_request(self, expression_key: str = "ConditionExpression") -> dict[str, Any]:
        req: dict[str, Any] = {expression_key: self.expression}
        if self.attribute_names:
            req["ExpressionAttributeNames"] = dict(self.attribute_names)
        if self.attribute_values:
            req["ExpressionAttributeValues"] = _wire_values(self.attribute_values)
        return req


@dataclass(frozen=True)
class UpdateExpressionResult:
    update_expression: str
    attribute_names: Mapping[str, str] = field(default_factory=dict)
    attribute_values: Mapping[str, TypedValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attribute_names", _frozen(self.attribute_names))
        object.__setattr__(self, "attribute_values", _frozen(self.attribute_values))

    __hash__ = None  # type: ignore[assignment]

    def namespaced(self, tag: str) -> UpdateExpressionResult:
        _check_tag(tag)
        return UpdateExpressionResult(
            update_expression=_rename_expression(self.update_expression, tag),
            attribute_names={_rename(k, tag): v for k, v in self.attribute_names.items()},
            attribute_values={_rename(k, tag): v for k, v in self.attribute_values.items()},
        )

    def to_request(self) -> dict[str, Any]:
        req: dict[str, Any] = {"UpdateExpression": self.update_expression}
        if self.attribute_names:
            req["ExpressionAttributeNames"] = dict(self.attribute_names)
        if self.attribute_values:
            req["ExpressionAttributeValues"] = _wire_values(self.attribute_values)
        return req


def merge_update_and_condition(
    update: UpdateExpressionResult,
    condition: ConditionExpressionResult | None,
    *,
    update_tag: str = "u_",
    condition_tag: str = "c_",
) -> dict[str, Any]:
    """Combine an update and an optional condition into one set of request fields.

    Both builders number their placeholders from zero, so each side is moved into
    its own namespace first. The merged maps are then disjoint by construction;
    a collision still raises rather than silently overwriting an entry.
    """
    if update_tag == condition_tag:
        raise ValidationError("update and condition namespaces must differ")

    tagged_update = update.namespaced(update_tag)
    req = tagged_update.to_request()
    if condition is None:
        return req

    tagged_condition = condition.namespaced(condition_tag)
    req["ConditionExpression"] = tagged_condition.expression

    names: dict[str, str] = dict(req.get("ExpressionAttributeNames", {}))
    for k, v in tagged_condition.attribute_names.items():
        if k in names:
            raise ValidationError(f"expression attribute name collision: {k}")
        names[k] = v

    values: dict[str, Any] = dict(req.get("ExpressionAttributeValues", {}))
    for k, tv in tagged_condition.attribute_values.items():
        if k in values:
            raise ValidationError(f"expression attribute value collision: {k}")
        values[k] = tv.to_wire()

    if names:
        req["ExpressionAttributeNames"] = names
    if values:
        req["ExpressionAttributeValues"] = values
    return req
