"""Bulk loading of reference and portfolio data.

A seed document is a JSON object with up to five arrays, keyed by the same
names the API responds with::

    {
      "keywordGroups": [{"KeywordGroupCode": "AE", "KeywordGroupName": "..."}],
      "keywords": [{"KeywordCode": "AE0001", "Keyword": "...", "KeywordGroupCode": "AE"}],
      "staffMeta": [{"StaffID": 37704, "StaffName": "...", ...}],
      "projects": [{"ProjectCode": 22398800, ..., "Keywords": ["AE0001"]}],
      "experience": [{"ProjectCode": 22398800, "StaffID": 37704, "TotalHrs": 12.5}]
    }

Record keys use the public attribute names and are coerced with the same
rules as patch payloads, so a seed file is also a check on the data.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import structlog
from sqlalchemy.orm import Session

from .coercion import coerce_json_value, parse_text_list
from .errors import UnknownAttribute
from .models import Base, Keyword, KeywordGroup, Project, ProjectKeyword, StaffExperience, StaffMember
from .schema import AttributeType, Entity, SchemaRegistry, default_registry

__all__ = ["SEED_SECTIONS", "load_seed", "seed_database"]

logger = structlog.get_logger(__name__)

# Insertion order; later sections reference earlier ones.
SEED_SECTIONS = (
    ("keywordGroups", Entity.KEYWORD_GROUP, KeywordGroup),
    ("keywords", Entity.KEYWORD, Keyword),
    ("staffMeta", Entity.STAFF, StaffMember),
    ("projects", Entity.PROJECT, Project),
    ("experience", Entity.EXPERIENCE, StaffExperience),
)


def load_seed(path: Union[str, Path]) -> Dict[str, Any]:
    with Path(path).expanduser().open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _row(registry: SchemaRegistry, entity: Entity, model: type[Base], record: Mapping[str, Any]) -> Base:
    schema = registry.schema(entity)
    values: Dict[str, Any] = {}
    for name, raw in record.items():
        attribute = schema.get(name)
        if attribute is None:
            raise UnknownAttribute(name, detail=f"{name!r} is not an attribute of {entity.value}")
        if attribute.column is None:
            continue
        values[attribute.column] = coerce_json_value(attribute, raw)
    return model(**values)


def seed_database(
    session: Session,
    document: Mapping[str, Any],
    *,
    registry: SchemaRegistry | None = None,
) -> Dict[str, int]:
    """Insert every section of *document* and commit once.

    Returns the number of rows written per section. Nothing is committed if
    any record fails coercion.
    """

    registry = registry or default_registry()
    counts: Dict[str, int] = {}
    try:
        for section, entity, model in SEED_SECTIONS:
            records = document.get(section) or []
            links = []
            for record in records:
                row = _row(registry, entity, model, record)
                session.add(row)
                if entity is Entity.PROJECT:
                    links.extend(_keyword_links(registry, row, record))
            session.flush()
            if links:
                session.add_all(links)
                session.flush()
            counts[section] = len(records)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("database_seeded", **counts)
    return counts


def _keyword_links(registry: SchemaRegistry, project: Project, record: Mapping[str, Any]) -> List[ProjectKeyword]:
    links = []
    for attribute in registry.schema(Entity.PROJECT):
        if attribute.type is not AttributeType.KEYWORD_LIST:
            continue
        codes = parse_text_list(attribute.name, record.get(attribute.name) or [])
        links.extend(
            ProjectKeyword(project_code=project.project_code, keyword_code=code) for code in dict.fromkeys(codes)
        )
    return links
