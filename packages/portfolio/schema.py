"""Per-entity attribute schema: the single source of filterable/updatable names."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .errors import UnknownAttribute

__all__ = [
    "Entity",
    "AttributeType",
    "PatchPolicy",
    "Operator",
    "Attribute",
    "EntitySchema",
    "SchemaRegistry",
    "DATE_AFTER_SUFFIX",
    "DATE_BEFORE_SUFFIX",
    "default_registry",
]

DATE_AFTER_SUFFIX = "After"
DATE_BEFORE_SUFFIX = "Before"


class Entity(str, Enum):
    STAFF = "staff"
    PROJECT = "project"
    KEYWORD = "keyword"
    KEYWORD_GROUP = "keyword_group"
    EXPERIENCE = "experience"


class AttributeType(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    TEXT = "text"
    DATE = "date"
    BOOLEAN = "boolean"
    KEYWORD_LIST = "keyword-list"
    # Ordered list of free text; patchable only, never a filter.
    TEXT_LIST = "text-list"


class PatchPolicy(str, Enum):
    REJECT = "reject"
    MUTABLE = "mutable"
    # Identifier: silently kept, but the caller is told nothing changed.
    IMMUTABLE = "immutable"
    # Owned by another subsystem (images, derived keywords): always ignored.
    PROTECTED = "protected"


class Operator(str, Enum):
    EQ = "eq"
    GE = "ge"
    LT = "lt"


@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    type: AttributeType
    column: Optional[str]
    filterable: bool = True
    patch: PatchPolicy = PatchPolicy.REJECT
    operator: Operator = Operator.EQ


@dataclass(frozen=True, slots=True)
class EntitySchema:
    """Ordered attribute set for one entity; order is also the output order."""

    entity: Entity
    attributes: Tuple[Attribute, ...]
    _index: Dict[str, Attribute] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {a.name: a for a in self.attributes})

    def get(self, name: str) -> Optional[Attribute]:
        return self._index.get(name)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)

    @property
    def filterable(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.attributes if a.filterable)

    @property
    def mutable(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.attributes if a.patch is PatchPolicy.MUTABLE)

    @property
    def identifier(self) -> Optional[Attribute]:
        for attribute in self.attributes:
            if attribute.patch is PatchPolicy.IMMUTABLE:
                return attribute
        return None


def _attr(name: str, type_: AttributeType, column: Optional[str], **kwargs) -> Attribute:
    return Attribute(name=name, type=type_, column=column, **kwargs)


T = AttributeType
P = PatchPolicy

STAFF_SCHEMA = EntitySchema(
    Entity.STAFF,
    (
        _attr("StaffID", T.INTEGER, "staff_id", patch=P.IMMUTABLE),
        _attr("StaffName", T.TEXT, "staff_name"),
        _attr("Email", T.TEXT, "email"),
        _attr("LocationName", T.TEXT, "location_name"),
        _attr("StartDate", T.DATE, "start_date"),
        _attr("JobTitle", T.TEXT, "job_title"),
        _attr("GradeLevel", T.INTEGER, "grade_level"),
        _attr("DisciplineName", T.TEXT, "discipline_name"),
        _attr("imgURL", T.TEXT, "img_url", filterable=False, patch=P.MUTABLE),
        _attr("careerStart", T.DATE, "career_start", patch=P.MUTABLE),
        _attr("nationality", T.TEXT, "nationality", patch=P.MUTABLE),
        _attr("highLevelDescription", T.TEXT, "high_level_description", filterable=False, patch=P.MUTABLE),
        _attr("valueStatement", T.TEXT, "value_statement", filterable=False, patch=P.MUTABLE),
        _attr("qualifications", T.TEXT_LIST, "qualifications", filterable=False, patch=P.MUTABLE),
        _attr("professionalAssociations", T.TEXT_LIST, "professional_associations", filterable=False, patch=P.MUTABLE),
        _attr("committees", T.TEXT_LIST, "committees", filterable=False, patch=P.MUTABLE),
        _attr("publications", T.TEXT_LIST, "publications", filterable=False, patch=P.MUTABLE),
    ),
)

PROJECT_SCHEMA = EntitySchema(
    Entity.PROJECT,
    (
        _attr("ProjectCode", T.INTEGER, "project_code", patch=P.IMMUTABLE),
        _attr("JobNameLong", T.TEXT, "job_name_long", patch=P.MUTABLE),
        _attr("StartDate", T.DATE, "start_date"),
        _attr("EndDate", T.DATE, "end_date"),
        _attr("CentreName", T.TEXT, "centre_name"),
        _attr("AccountingCentreCode", T.INTEGER, "accounting_centre_code"),
        _attr("PracticeName", T.TEXT, "practice_name"),
        _attr("BusinessCode", T.TEXT, "business_code"),
        _attr("BusinessName", T.TEXT, "business_name"),
        _attr("ProjectDirectorID", T.INTEGER, "project_director_id"),
        _attr("ProjectDirectorName", T.TEXT, "project_director_name"),
        _attr("ProjectManagerID", T.INTEGER, "project_manager_id"),
        _attr("ProjectManagerName", T.TEXT, "project_manager_name"),
        _attr("CountryName", T.TEXT, "country_name"),
        _attr("Town", T.TEXT, "town"),
        _attr("ScopeOfService", T.TEXT, "scope_of_service", patch=P.MUTABLE),
        _attr("ScopeOfWorks", T.TEXT_LIST, "scope_of_works", filterable=False, patch=P.MUTABLE),
        _attr("Latitude", T.DECIMAL, "latitude", patch=P.MUTABLE),
        _attr("Longitude", T.DECIMAL, "longitude", patch=P.MUTABLE),
        _attr("State", T.TEXT, "state"),
        _attr("PercentComplete", T.DECIMAL, "percent_complete", operator=Operator.GE),
        _attr("ClientID", T.INTEGER, "client_id"),
        _attr("ClientName", T.TEXT, "client_name"),
        _attr("ProjectURL", T.TEXT, "project_url"),
        _attr("Confidential", T.BOOLEAN, "confidential", patch=P.MUTABLE),
        _attr("imgURL", T.TEXT_LIST, "img_url", filterable=False, patch=P.PROTECTED),
        _attr("Keywords", T.KEYWORD_LIST, None, patch=P.PROTECTED),
    ),
)

KEYWORD_SCHEMA = EntitySchema(
    Entity.KEYWORD,
    (
        _attr("KeywordCode", T.TEXT, "code"),
        _attr("Keyword", T.TEXT, "keyword"),
        _attr("KeywordGroupCode", T.TEXT, "group_code"),
    ),
)

KEYWORD_GROUP_SCHEMA = EntitySchema(
    Entity.KEYWORD_GROUP,
    (
        _attr("KeywordGroupCode", T.TEXT, "code"),
        _attr("KeywordGroupName", T.TEXT, "name"),
    ),
)

EXPERIENCE_SCHEMA = EntitySchema(
    Entity.EXPERIENCE,
    (
        _attr("experienceID", T.INTEGER, "experience_id", filterable=False),
        _attr("ProjectCode", T.INTEGER, "project_code", patch=P.PROTECTED),
        _attr("StaffID", T.INTEGER, "staff_id", patch=P.PROTECTED),
        _attr("TotalHrs", T.DECIMAL, "total_hrs", patch=P.MUTABLE),
        _attr("experience", T.TEXT, "experience", filterable=False, patch=P.MUTABLE),
    ),
)


class SchemaRegistry:
    """Read-only lookup of entity schemas."""

    def __init__(self, schemas: Iterable[EntitySchema]) -> None:
        self._schemas: Dict[Entity, EntitySchema] = {s.entity: s for s in schemas}

    def schema(self, entity: Entity) -> EntitySchema:
        return self._schemas[Entity(entity)]

    def filterable(self, entity: Entity) -> Tuple[str, ...]:
        return self.schema(entity).filterable

    def mutable(self, entity: Entity) -> Tuple[str, ...]:
        return self.schema(entity).mutable

    def lookup(self, entity: Entity, name: str) -> Optional[Attribute]:
        """Return the filterable attribute called *name*, or ``None``."""

        attribute = self.schema(entity).get(name)
        if attribute is None or not attribute.filterable:
            return None
        return attribute

    def lookup_date_range(self, entity: Entity, name: str) -> Optional[Tuple[Attribute, Operator]]:
        """Resolve ``<Field>After``/``<Field>Before`` onto a date attribute."""

        for suffix, operator in ((DATE_AFTER_SUFFIX, Operator.GE), (DATE_BEFORE_SUFFIX, Operator.LT)):
            if not name.endswith(suffix) or len(name) == len(suffix):
                continue
            base = self.lookup(entity, name[: -len(suffix)])
            if base is not None and base.type is AttributeType.DATE:
                return base, operator
        return None

    def type_of(self, entity: Entity, attribute: str) -> AttributeType:
        found = self.schema(entity).get(attribute)
        if found is None:
            raise UnknownAttribute(attribute, detail=f"{attribute!r} is not an attribute of {Entity(entity).value}")
        return found.type


_DEFAULT = SchemaRegistry(
    (STAFF_SCHEMA, PROJECT_SCHEMA, KEYWORD_SCHEMA, KEYWORD_GROUP_SCHEMA, EXPERIENCE_SCHEMA)
)


def default_registry() -> SchemaRegistry:
    return _DEFAULT
