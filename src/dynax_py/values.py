from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, DecimalException
from typing import Any, Literal

from boto3.dynamodb.types import DYNAMODB_CONTEXT, TypeDeserializer, TypeSerializer

from .errors import UnsupportedValueTypeError

type Scalar = str | int | float | Decimal | bool
type ValueKind = Literal["S", "N", "BOOL"]
type Item = dict[str, Any]
type Key = dict[str, Scalar]

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


@dataclass(frozen=True)
class TypedValue:
    kind: ValueKind
    raw: str | bool

    def to_wire(self) -> dict[str, Any]:
        return {self.kind: self.raw}


def _number_text(value: int | float | Decimal) -> str:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedValueTypeError(f"float({value})")
        text = str(int(value)) if value.is_integer() else repr(value)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            raise UnsupportedValueTypeError(f"Decimal({value})")
        text = str(value)
    else:
        text = str(value)

    # same precision and exponent range the item serializer enforces
    try:
        DYNAMODB_CONTEXT.create_decimal(text)
    except DecimalException as err:
        raise UnsupportedValueTypeError(f"number out of range ({text})") from err
    return text


def typed_value(value: Any) -> TypedValue:
    # bool is a subclass of int, so it has to be matched first
    if isinstance(value, bool):
        return TypedValue(kind="BOOL", raw=value)
    if isinstance(value, str):
        return TypedValue(kind="S", raw=value)
    if isinstance(value, (int, float, Decimal)):
        return TypedValue(kind="N", raw=_number_text(value))
    raise UnsupportedValueTypeError(type(value).__name__)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_wire_safe(value: Any) -> Any:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedValueTypeError(f"float({value})")
        return Decimal(repr(value))
    if isinstance(value, Mapping):
        return {str(k): _to_wire_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire_safe(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_to_wire_safe(v) for v in value}
    return value


def _from_wire(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return value
    if isinstance(value, dict):
        return {k: _from_wire(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_wire(v) for v in value]
    if isinstance(value, set):
        return {_from_wire(v) for v in value}
    return value


def marshal_item(item: Mapping[str, Any]) -> dict[str, Any]:
    try:
        return {str(k): _serializer.serialize(_to_wire_safe(v)) for k, v in item.items()}
    except TypeError as err:
        raise UnsupportedValueTypeError(str(err)) from err
    except DecimalException as err:
        raise UnsupportedValueTypeError("number out of range") from err


def unmarshal_item(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: _from_wire(_deserializer.deserialize(v)) for k, v in item.items()}
