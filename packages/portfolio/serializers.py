"""Row → JSON-ready dict conversion, driven by the schema attribute order."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

from .coercion import format_datetime
from .models import Keyword, KeywordGroup, Project, StaffExperience, StaffMember
from .schema import AttributeType, Entity, EntitySchema, SchemaRegistry, default_registry

__all__ = [
    "serialize",
    "serialize_staff",
    "serialize_project",
    "serialize_booking",
    "booking_fields",
    "group_keywords",
]


def serialize(schema: EntitySchema, obj: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attribute in schema:
        if attribute.type is AttributeType.KEYWORD_LIST:
            out[attribute.name] = list(obj.keyword_codes)
            continue
        value = getattr(obj, attribute.column)
        if attribute.type is AttributeType.DATE:
            value = format_datetime(value)
        elif attribute.type is AttributeType.TEXT_LIST:
            value = list(value or [])
        out[attribute.name] = value
    return out


def serialize_staff(staff: StaffMember, registry: Optional[SchemaRegistry] = None) -> Dict[str, Any]:
    return serialize((registry or default_registry()).schema(Entity.STAFF), staff)


def serialize_project(project: Project, registry: Optional[SchemaRegistry] = None) -> Dict[str, Any]:
    return serialize((registry or default_registry()).schema(Entity.PROJECT), project)


def serialize_booking(booking: StaffExperience, registry: Optional[SchemaRegistry] = None) -> Dict[str, Any]:
    return serialize((registry or default_registry()).schema(Entity.EXPERIENCE), booking)


def booking_fields(booking: Optional[StaffExperience], staff_id: int) -> Dict[str, Any]:
    """Booking columns attached to a project record; nulls when unbooked."""

    return {
        "StaffID": staff_id,
        "TotalHrs": booking.total_hrs if booking is not None else None,
        "experience": booking.experience if booking is not None else None,
        "experienceID": booking.experience_id if booking is not None else None,
    }


def group_keywords(rows: Iterable[Tuple[Keyword, KeywordGroup]]) -> Dict[str, Dict[str, Any]]:
    """``{GroupCode: {KeywordGroupName, Keywords, KeywordCodes}}`` in row order."""

    grouped: Dict[str, Dict[str, Any]] = {}
    for keyword, group in rows:
        entry = grouped.setdefault(
            group.code, {"KeywordGroupName": group.name, "Keywords": [], "KeywordCodes": []}
        )
        entry["Keywords"].append(keyword.keyword)
        entry["KeywordCodes"].append(keyword.code)
    return grouped
