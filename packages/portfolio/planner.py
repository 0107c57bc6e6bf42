"""Join and aggregation queries over staff, bookings and projects.

All project-side predicates, confidentiality included, sit in the WHERE
clause of the join, so rows for excluded projects never reach the GROUP BY
and cannot influence ``TotalHrs`` or ``ProjectCount``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

import structlog
from sqlalchemy import ColumnElement, Select, distinct, func, select
from sqlalchemy.orm import Session, selectinload

from .filters import AnyPredicate, CompiledFilter, ScopedKeywordPredicate
from .models import Keyword, KeywordGroup, Project, ProjectKeyword, StaffExperience, StaffMember
from .schema import Entity, Operator

__all__ = [
    "MODELS",
    "StaffAggregate",
    "AggregationPlanner",
    "predicate_clause",
]

logger = structlog.get_logger(__name__)

MODELS = {
    Entity.STAFF: StaffMember,
    Entity.PROJECT: Project,
    Entity.KEYWORD: Keyword,
    Entity.KEYWORD_GROUP: KeywordGroup,
    Entity.EXPERIENCE: StaffExperience,
}


def predicate_clause(predicate: AnyPredicate) -> ColumnElement[bool]:
    if isinstance(predicate, ScopedKeywordPredicate):
        return predicate.keywords.clause(Project.project_code, ProjectKeyword)
    column = getattr(MODELS[predicate.entity], predicate.attribute.column)
    if predicate.operator is Operator.GE:
        return column >= predicate.value
    if predicate.operator is Operator.LT:
        return column < predicate.value
    return column == predicate.value


@dataclass(frozen=True, slots=True)
class StaffAggregate:
    staff_id: int
    total_hrs: float
    project_count: int
    staff: StaffMember | None = None


class AggregationPlanner:
    """Builds and runs the portfolio queries for one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------------------------------------------ helpers
    @staticmethod
    def _where(compiled: CompiledFilter, *, confidentiality: bool = True) -> List[ColumnElement[bool]]:
        clauses = [predicate_clause(p) for p in compiled.predicates]
        if confidentiality and not compiled.include_confidential:
            clauses.append(Project.confidential.is_(False))
        return clauses

    @staticmethod
    def _booking_join(stmt: Select) -> Select:
        return stmt.join(StaffMember, StaffMember.staff_id == StaffExperience.staff_id).join(
            Project, Project.project_code == StaffExperience.project_code
        )

    # ------------------------------------------------------------------ lists
    def list_staff(self, compiled: CompiledFilter) -> List[StaffMember]:
        stmt = select(StaffMember).where(*self._where(compiled, confidentiality=False))
        return list(self.session.execute(stmt.order_by(StaffMember.staff_id)).scalars())

    def list_projects(self, compiled: CompiledFilter) -> List[Project]:
        stmt = (
            select(Project)
            .options(selectinload(Project.keywords))
            .where(*self._where(compiled))
            .order_by(Project.project_code)
        )
        return list(self.session.execute(stmt).scalars())

    def list_keywords(self, compiled: CompiledFilter) -> List[Keyword]:
        stmt = select(Keyword).where(*self._where(compiled, confidentiality=False)).order_by(Keyword.code)
        return list(self.session.execute(stmt).scalars())

    def list_keyword_groups(self) -> List[KeywordGroup]:
        return list(self.session.execute(select(KeywordGroup).order_by(KeywordGroup.code)).scalars())

    def keyword_rows(self) -> List[Tuple[Keyword, KeywordGroup]]:
        stmt = (
            select(Keyword, KeywordGroup)
            .join(KeywordGroup, KeywordGroup.code == Keyword.group_code)
            .order_by(KeywordGroup.code, Keyword.code)
        )
        return [(k, g) for k, g in self.session.execute(stmt).all()]

    # ------------------------------------------------------------------ aggregates
    def _aggregate(self, clauses: Sequence[ColumnElement[bool]], *, with_staff: bool) -> Select:
        total = func.sum(StaffExperience.total_hrs).label("TotalHrs")
        count = func.count(distinct(StaffExperience.project_code)).label("ProjectCount")
        columns: Tuple[Any, ...] = (StaffExperience.staff_id, total, count)
        if with_staff:
            columns = columns + (StaffMember,)
        stmt = self._booking_join(select(*columns)).where(*clauses)
        group_by = [StaffExperience.staff_id]
        if with_staff:
            group_by.append(StaffMember.staff_id)
        # Stable order: staff appear in the order their first booking was made.
        return stmt.group_by(*group_by).order_by(func.min(StaffExperience.experience_id))

    def staff_portfolio(self, compiled: CompiledFilter) -> Tuple[List[StaffAggregate], List[int]]:
        """Staff who booked time to projects matching *compiled*, with totals."""

        clauses = self._where(compiled)
        rows = self.session.execute(self._aggregate(clauses, with_staff=True)).all()
        aggregates = [
            StaffAggregate(staff_id=r[0], total_hrs=_hours(r[1]), project_count=int(r[2]), staff=r[3])
            for r in rows
        ]
        codes_stmt = (
            self._booking_join(select(StaffExperience.project_code).distinct())
            .where(*clauses)
            .order_by(StaffExperience.project_code)
        )
        project_codes = list(self.session.execute(codes_stmt).scalars())
        logger.debug("staff_portfolio", staff=len(aggregates), projects=len(project_codes))
        return aggregates, project_codes

    def staff_for_projects(self, project_codes: Sequence[int], compiled: CompiledFilter) -> List[StaffAggregate]:
        """Per-staff totals restricted to an explicit project set."""

        clauses = self._where(compiled)
        clauses.append(StaffExperience.project_code.in_(list(project_codes)))
        rows = self.session.execute(self._aggregate(clauses, with_staff=False)).all()
        return [StaffAggregate(staff_id=r[0], total_hrs=_hours(r[1]), project_count=int(r[2])) for r in rows]

    # ------------------------------------------------------------------ one staff member
    def staff_projects(self, staff_id: int, compiled: CompiledFilter) -> List[Tuple[StaffExperience, Project]]:
        stmt = (
            select(StaffExperience, Project)
            .join(Project, Project.project_code == StaffExperience.project_code)
            .options(selectinload(Project.keywords))
            .where(StaffExperience.staff_id == staff_id, *self._where(compiled))
            .order_by(StaffExperience.experience_id)
        )
        return [(b, p) for b, p in self.session.execute(stmt).all()]

    def _staff_keyword_codes(self, staff_id: int, compiled: CompiledFilter) -> Select:
        return (
            select(ProjectKeyword.keyword_code)
            .join(StaffExperience, StaffExperience.project_code == ProjectKeyword.project_code)
            .join(Project, Project.project_code == ProjectKeyword.project_code)
            .where(StaffExperience.staff_id == staff_id, *self._where(compiled))
        )

    def staff_keyword_codes(self, staff_id: int, compiled: CompiledFilter) -> List[str]:
        codes = self._staff_keyword_codes(staff_id, compiled).distinct().order_by(ProjectKeyword.keyword_code)
        return list(self.session.execute(codes).scalars())

    def staff_keyword_rows(self, staff_id: int, compiled: CompiledFilter) -> List[Tuple[Keyword, KeywordGroup]]:
        stmt = (
            select(Keyword, KeywordGroup)
            .join(KeywordGroup, KeywordGroup.code == Keyword.group_code)
            .where(Keyword.code.in_(self._staff_keyword_codes(staff_id, compiled)))
            .order_by(KeywordGroup.code, Keyword.code)
        )
        return [(k, g) for k, g in self.session.execute(stmt).all()]

    # ------------------------------------------------------------------ vocabulary
    def distinct_values(self, predicate_entity: Entity, column_name: str, compiled: CompiledFilter) -> List[Any]:
        model = MODELS[predicate_entity]
        column = getattr(model, column_name)
        stmt = select(column).distinct().where(column.is_not(None))
        if predicate_entity is Entity.PROJECT:
            stmt = stmt.where(*self._where(compiled))
        return list(self.session.execute(stmt.order_by(column)).scalars())


def _hours(value: Any) -> float:
    return float(value) if value is not None else 0.0

