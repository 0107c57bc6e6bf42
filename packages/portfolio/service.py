"""Service layer for the staff portfolio API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .config import PortfolioSettings
from .errors import EmptyProjectList, MissingRequired, UnknownAttribute
from .filters import SHOW_DETAILS, CompiledFilter, FilterCompiler
from .models import Base, Project, StaffExperience, StaffMember
from .mutations import MutationPlan, MutationValidator
from .planner import AggregationPlanner
from .resolvers import EntityResolver
from .schema import Entity, SchemaRegistry, default_registry
from .serializers import (
    booking_fields,
    group_keywords,
    serialize,
    serialize_booking,
    serialize_project,
    serialize_staff,
)
from .coercion import parse_boolean, parse_integer

__all__ = [
    "PortfolioDatabase",
    "PortfolioService",
    "MutationResult",
    "init_engine",
    "DESCRIBED_ATTRIBUTES",
]

logger = structlog.get_logger(__name__)

STAFF_ID_MISSING = "No staff id provided!!!"
BOOKING_ATTRIBUTES_MISSING = "Missing attributes!!!"
# Columns a new booking must be given non-null values for.
BOOKING_REQUIRED_COLUMNS = ("total_hrs", "experience")

# Attributes whose vocabulary is published by ``describe``.
DESCRIBED_ATTRIBUTES: Tuple[Tuple[Entity, str], ...] = (
    (Entity.PROJECT, "ProjectCode"),
    (Entity.PROJECT, "ClientName"),
    (Entity.PROJECT, "CountryName"),
    (Entity.PROJECT, "BusinessName"),
    (Entity.PROJECT, "PracticeName"),
    (Entity.PROJECT, "Town"),
    (Entity.PROJECT, "State"),
    (Entity.STAFF, "StaffID"),
    (Entity.STAFF, "LocationName"),
    (Entity.STAFF, "DisciplineName"),
    (Entity.STAFF, "GradeLevel"),
)


def init_engine(settings: PortfolioSettings) -> Engine:
    """Create an SQLAlchemy engine with sensible defaults."""

    database_url = settings.DATABASE_URL
    if database_url.startswith("postgres://"):
        database_url = "postgresql+psycopg://" + database_url[len("postgres://") :]
    elif database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

    engine_kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        from sqlalchemy.pool import StaticPool

        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
    engine = create_engine(database_url, **engine_kwargs)
    if settings.CREATE_TABLES:
        Base.metadata.create_all(engine)
    return engine


class PortfolioDatabase:
    """Session factory wrapper."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)


@dataclass(frozen=True, slots=True)
class MutationResult:
    record: Dict[str, Any]
    identifier_ignored: bool = False


class PortfolioService:
    """Entry point for every logical read and write.

    Each call compiles its filter map, resolves entity identifiers before any
    dependent validation, and returns JSON-ready structures.
    """

    def __init__(self, session: Session, registry: Optional[SchemaRegistry] = None):
        self.session = session
        self.registry = registry or default_registry()
        self.compiler = FilterCompiler(self.registry)
        self.validator = MutationValidator(self.registry)
        self.resolver = EntityResolver(session)
        self.planner = AggregationPlanner(session)

    # ---------------------------- staff -----------------------------

    def list_staff(self, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        compiled = self.compiler.compile([Entity.STAFF], params)
        return [serialize_staff(s, self.registry) for s in self.planner.list_staff(compiled)]

    def get_staff(self, staff_id: Any) -> Dict[str, Any]:
        return serialize_staff(self.resolver.resolve_staff(staff_id), self.registry)

    def patch_staff(self, staff_id: Any, payload: Optional[Mapping[str, Any]]) -> MutationResult:
        staff = self.resolver.resolve_staff(staff_id)
        plan = self.validator.validate(Entity.STAFF, payload)
        self._commit(staff, plan)
        return MutationResult(serialize_staff(staff, self.registry), plan.identifier_ignored)

    # ---------------------------- projects -----------------------------

    def list_projects(self, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        compiled = self.compiler.compile([Entity.PROJECT], params)
        return [serialize_project(p, self.registry) for p in self.planner.list_projects(compiled)]

    def get_project(self, project_code: Any, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """One project; a ``StaffID`` parameter attaches that member's booking."""

        project = self.resolver.resolve_project(project_code)
        remaining = dict(params or {})
        raw_staff_id = remaining.pop("StaffID", None)
        if remaining:
            name = next(iter(remaining))
            raise UnknownAttribute(name, detail=f"{name!r} is not accepted on a single project")
        record = serialize_project(project, self.registry)
        if raw_staff_id is None:
            return record
        staff = self.resolver.resolve_staff(raw_staff_id)
        return _with_booking(record, self.resolver.find_booking(project, staff), staff.staff_id)

    def patch_project(self, project_code: Any, payload: Optional[Mapping[str, Any]]) -> MutationResult:
        project = self.resolver.resolve_project(project_code)
        plan = self.validator.validate(Entity.PROJECT, payload)
        if plan.changes.get("job_name_long"):
            plan.changes["job_name_long"] = plan.changes["job_name_long"].upper()
        self._commit(project, plan)
        return MutationResult(serialize_project(project, self.registry), plan.identifier_ignored)

    def project_keywords(self, project_code: Any) -> List[str]:
        return self.resolver.resolve_project(project_code).keyword_codes

    # ---------------------------- portfolios -----------------------------

    def staff_portfolio(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Staff who booked time on matching projects, with hours and counts."""

        compiled = self.compiler.compile([Entity.PROJECT, Entity.STAFF], params)
        aggregates, project_codes = self.planner.staff_portfolio(compiled)
        staff_list = []
        for aggregate in aggregates:
            entry = serialize_staff(aggregate.staff, self.registry)
            entry["TotalHrs"] = aggregate.total_hrs
            entry["ProjectCount"] = aggregate.project_count
            staff_list.append(entry)
        return {"staffList": staff_list, "projects": project_codes}

    def staff_for_projects(
        self, body: Optional[Mapping[str, Any]], params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Totals per staff member over an explicit list of project codes."""

        raw_codes = (body or {}).get("Projects") if isinstance(body, Mapping) else None
        if not raw_codes:
            raise EmptyProjectList()
        if not isinstance(raw_codes, list):
            raise UnknownAttribute("Projects", detail="Projects must be a list")
        codes = [parse_integer("Projects", raw) for raw in raw_codes]
        compiled = self.compiler.compile([Entity.STAFF], params)
        return [
            {"StaffID": a.staff_id, "TotalHrs": a.total_hrs, "ProjectCount": a.project_count}
            for a in self.planner.staff_for_projects(codes, compiled)
        ]

    def staff_projects(self, staff_id: Any, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """A staff member's bookings; any filter forces the detailed shape."""

        staff = self.resolver.resolve_staff(staff_id)
        compiled = self.compiler.compile([Entity.PROJECT], params, options=(SHOW_DETAILS,))
        detailed = self._show_details(compiled)
        rows = []
        for booking, project in self.planner.staff_projects(staff.staff_id, compiled):
            booking_record = serialize_booking(booking, self.registry)
            if detailed:
                rows.append({**serialize_project(project, self.registry), **booking_record})
            else:
                rows.append(booking_record)
        return rows

    def staff_keywords(self, staff_id: Any, params: Optional[Mapping[str, Any]] = None) -> List[str]:
        staff = self.resolver.resolve_staff(staff_id)
        compiled = self.compiler.compile([Entity.PROJECT], params)
        return self.planner.staff_keyword_codes(staff.staff_id, compiled)

    # ---------------------------- keywords -----------------------------

    def list_keywords(self, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        compiled = self.compiler.compile([Entity.KEYWORD], params)
        schema = self.registry.schema(Entity.KEYWORD)
        return [serialize(schema, k) for k in self.planner.list_keywords(compiled)]

    def list_keyword_groups(self) -> List[Dict[str, Any]]:
        schema = self.registry.schema(Entity.KEYWORD_GROUP)
        return [serialize(schema, g) for g in self.planner.list_keyword_groups()]

    def all_keyword_groups(self) -> Dict[str, Dict[str, Any]]:
        return group_keywords(self.planner.keyword_rows())

    def staff_keyword_groups(
        self, staff_id: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Dict[str, Any]]:
        staff = self.resolver.resolve_staff(staff_id)
        compiled = self.compiler.compile([Entity.PROJECT], params)
        return group_keywords(self.planner.staff_keyword_rows(staff.staff_id, compiled))

    # ---------------------------- time bookings -----------------------------

    def _resolve_booking_parents(
        self, project_code: Any, params: Optional[Mapping[str, Any]]
    ) -> Tuple[Project, StaffMember]:
        project = self.resolver.resolve_project(project_code)
        remaining = dict(params or {})
        raw_staff_id = remaining.pop("StaffID", None)
        if raw_staff_id is None:
            raise MissingRequired(STAFF_ID_MISSING)
        staff = self.resolver.resolve_staff(raw_staff_id)
        if remaining:
            name = next(iter(remaining))
            raise UnknownAttribute(name, detail=f"{name!r} is not accepted on a booking")
        return project, staff

    def add_experience(
        self, project_code: Any, params: Optional[Mapping[str, Any]], payload: Optional[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """Create the booking row, or update it when the pair is already booked."""

        project, staff = self._resolve_booking_parents(project_code, params)
        plan = self.validator.validate(Entity.EXPERIENCE, payload)
        booking = self.resolver.find_booking(project, staff)
        if booking is None:
            if any(plan.changes.get(column) is None for column in BOOKING_REQUIRED_COLUMNS):
                raise MissingRequired(BOOKING_ATTRIBUTES_MISSING)
            booking = self._create_booking(project, staff, plan)
        else:
            self._commit(booking, plan)
        return serialize_booking(booking, self.registry)

    def patch_experience(
        self, project_code: Any, params: Optional[Mapping[str, Any]], payload: Optional[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        project, staff = self._resolve_booking_parents(project_code, params)
        plan = self.validator.validate(Entity.EXPERIENCE, payload)
        booking = self.resolver.resolve_booking(project, staff)
        self._commit(booking, plan)
        return _with_booking(serialize_project(project, self.registry), booking, staff.staff_id)

    def _create_booking(self, project: Project, staff: StaffMember, plan: MutationPlan) -> StaffExperience:
        booking = StaffExperience(project_code=project.project_code, staff_id=staff.staff_id)
        plan.apply(booking)
        self.session.add(booking)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request booked the pair first; fall through to an update.
            self.session.rollback()
            logger.info("booking_conflict", project_code=project.project_code, staff_id=staff.staff_id)
            booking = self.resolver.resolve_booking(project, staff)
            self._commit(booking, plan)
            return booking
        logger.info(
            "booking_created",
            project_code=project.project_code,
            staff_id=staff.staff_id,
            experience_id=booking.experience_id,
        )
        return booking

    # ---------------------------- vocabulary -----------------------------

    def describe(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
        """Type and distinct values of the commonly filtered attributes."""

        compiled = self.compiler.compile([], params)
        info: Dict[str, Dict[str, Any]] = {}
        for entity, name in DESCRIBED_ATTRIBUTES:
            attribute = self.registry.schema(entity).get(name)
            info[name] = {
                "type": attribute.type.value,
                "values": self.planner.distinct_values(entity, attribute.column, compiled),
            }
        return info

    # ---------------------------- helpers -----------------------------

    @staticmethod
    def _show_details(compiled: CompiledFilter) -> bool:
        if compiled.has_filters:
            return True
        raw = compiled.options.get(SHOW_DETAILS)
        return True if raw is None else parse_boolean(SHOW_DETAILS, raw)

    def _commit(self, obj: Any, plan: MutationPlan) -> None:
        if not plan.changes:
            return
        plan.apply(obj)
        self.session.commit()
        logger.info(
            "entity_patched",
            entity=plan.entity.value,
            attributes=list(plan.provided),
            ignored=list(plan.ignored),
        )


def _with_booking(record: Dict[str, Any], booking: Optional[StaffExperience], staff_id: int) -> Dict[str, Any]:
    merged = dict(record)
    keywords = merged.pop("Keywords", None)
    merged.update(booking_fields(booking, staff_id))
    if keywords is not None:
        merged["Keywords"] = keywords
    return merged
