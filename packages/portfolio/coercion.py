"""Coercion of raw query-string and JSON values into column types.

Each attribute type has one pydantic ``TypeAdapter``. Every validation
failure is re-raised as :class:`UnknownAttribute`; a malformed value and an
unknown key are the same thing to the caller.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AllowInfNan, BeforeValidator, Strict, StrictStr, TypeAdapter, ValidationError

from .errors import UnknownAttribute
from .schema import Attribute, AttributeType

__all__ = [
    "ADAPTERS",
    "parse_integer",
    "parse_decimal",
    "parse_boolean",
    "parse_datetime",
    "parse_text_list",
    "coerce_query_value",
    "coerce_json_value",
    "format_datetime",
]


def _no_bool(raw: Any) -> Any:
    # bool is an int subclass; pydantic's lax mode would take True as 1.
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    return raw.strip() if isinstance(raw, str) else raw


def _bool_word(raw: Any) -> Any:
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return raw


def _date_text(raw: Any) -> Any:
    # Numbers would otherwise be read as unix timestamps.
    if not isinstance(raw, str):
        raise ValueError("dates must be ISO-8601 strings")
    return raw.strip()


Integer = Annotated[int, BeforeValidator(_no_bool)]
Decimal = Annotated[float, AllowInfNan(False), BeforeValidator(_no_bool)]
Boolean = Annotated[bool, Strict(), BeforeValidator(_bool_word)]
Timestamp = Annotated[dt.datetime, BeforeValidator(_date_text)]
TextList = Annotated[List[StrictStr], Strict()]

ADAPTERS: Dict[AttributeType, TypeAdapter] = {
    AttributeType.INTEGER: TypeAdapter(Integer),
    AttributeType.DECIMAL: TypeAdapter(Decimal),
    AttributeType.BOOLEAN: TypeAdapter(Boolean),
    AttributeType.DATE: TypeAdapter(Timestamp),
    AttributeType.TEXT: TypeAdapter(StrictStr),
    AttributeType.TEXT_LIST: TypeAdapter(TextList),
}


def _validate(kind: AttributeType, name: str, raw: Any) -> Any:
    try:
        return ADAPTERS[kind].validate_python(raw)
    except ValidationError as exc:
        reason = exc.errors()[0]["msg"] if exc.error_count() else str(exc)
        raise UnknownAttribute(name, detail=f"{name}={raw!r} is not a valid {kind.value}: {reason}") from None


def parse_integer(name: str, raw: Any) -> int:
    return _validate(AttributeType.INTEGER, name, raw)


def parse_decimal(name: str, raw: Any) -> float:
    return _validate(AttributeType.DECIMAL, name, raw)


def parse_boolean(name: str, raw: Any) -> bool:
    """``True``/``False`` or the words true/false in any case; nothing else."""

    return _validate(AttributeType.BOOLEAN, name, raw)


def parse_datetime(name: str, raw: Any) -> dt.datetime:
    """Parse an ISO-8601 date or timestamp into a naive UTC datetime."""

    value = _validate(AttributeType.DATE, name, raw)
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def parse_text_list(name: str, raw: Any) -> List[str]:
    return list(_validate(AttributeType.TEXT_LIST, name, raw))


def coerce_query_value(attribute: Attribute, raw: Any) -> Any:
    """Coerce a query-string value for a scalar, filterable attribute."""

    kind = attribute.type
    if kind is AttributeType.DATE:
        return parse_datetime(attribute.name, raw)
    if kind is AttributeType.TEXT:
        return _validate(kind, attribute.name, str(raw))
    if kind in ADAPTERS and kind is not AttributeType.TEXT_LIST:
        return _validate(kind, attribute.name, raw)
    raise UnknownAttribute(attribute.name, detail=f"{attribute.name} cannot be filtered as {kind.value}")


def coerce_json_value(attribute: Attribute, raw: Any) -> Any:
    """Coerce a JSON payload value for a patchable attribute; ``None`` clears it."""

    kind = attribute.type
    if raw is None:
        if kind is AttributeType.TEXT_LIST:
            return []
        if kind is AttributeType.BOOLEAN:
            raise UnknownAttribute(attribute.name, detail=f"{attribute.name} cannot be cleared")
        return None
    if kind is AttributeType.TEXT_LIST:
        return parse_text_list(attribute.name, raw)
    if kind is AttributeType.TEXT:
        return _validate(kind, attribute.name, raw)
    return coerce_query_value(attribute, raw)


def format_datetime(value: Optional[dt.datetime]) -> Optional[str]:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``; naive values are taken as UTC."""

    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
