"""Existence checks for single staff members, projects and bookings."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .coercion import parse_integer
from .errors import NotFound
from .models import Project, StaffExperience, StaffMember

__all__ = [
    "STAFF_NOT_FOUND",
    "PROJECT_NOT_FOUND",
    "BOOKING_NOT_FOUND",
    "EntityResolver",
]

STAFF_NOT_FOUND = "StaffID not found"
PROJECT_NOT_FOUND = "ProjectCode not found"
BOOKING_NOT_FOUND = "No staff time booked to project - use add experience instead!!!"

# Identifiers are 32-bit integer columns; anything wider cannot exist.
_ID_MIN, _ID_MAX = -(2**31), 2**31 - 1


class EntityResolver:
    """Coerce an identifier, then look it up.

    A value of the wrong primitive type is :class:`UnknownAttribute` (400);
    a well-typed identifier with no row is :class:`NotFound` (404).
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def resolve_staff(self, raw_id: Any) -> StaffMember:
        staff_id = parse_integer("StaffID", raw_id)
        staff = self.session.get(StaffMember, staff_id) if _in_range(staff_id) else None
        if staff is None:
            raise NotFound(STAFF_NOT_FOUND)
        return staff

    def resolve_project(self, raw_code: Any) -> Project:
        code = parse_integer("ProjectCode", raw_code)
        project = None
        if _in_range(code):
            project = self.session.execute(
                select(Project).options(selectinload(Project.keywords)).where(Project.project_code == code)
            ).scalar_one_or_none()
        if project is None:
            raise NotFound(PROJECT_NOT_FOUND)
        return project

    def find_booking(self, project: Project, staff: StaffMember) -> Optional[StaffExperience]:
        return self.session.execute(
            select(StaffExperience).where(
                StaffExperience.project_code == project.project_code,
                StaffExperience.staff_id == staff.staff_id,
            )
        ).scalar_one_or_none()

    def resolve_booking(self, project: Project, staff: StaffMember) -> StaffExperience:
        booking = self.find_booking(project, staff)
        if booking is None:
            raise NotFound(BOOKING_NOT_FOUND)
        return booking


def _in_range(value: int) -> bool:
    return _ID_MIN <= value <= _ID_MAX
