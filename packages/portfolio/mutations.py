"""Validation of patch payloads against each entity's mutable attribute set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from .coercion import coerce_json_value
from .errors import UnknownAttribute
from .schema import Entity, PatchPolicy, SchemaRegistry, default_registry

__all__ = ["MutationPlan", "MutationValidator"]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MutationPlan:
    """Validated column changes for one entity row."""

    entity: Entity
    changes: Dict[str, Any] = field(default_factory=dict)
    provided: Tuple[str, ...] = ()
    ignored: Tuple[str, ...] = ()
    identifier_ignored: bool = False

    def apply(self, obj: Any) -> None:
        for column, value in self.changes.items():
            setattr(obj, column, value)


class MutationValidator:
    """Reject-all-or-nothing payload validation.

    Any key that is not mutable fails the whole payload before anything is
    applied. Identifiers are dropped and flagged; protected attributes
    (images, derived keywords) are dropped silently.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        self.registry = registry or default_registry()

    def validate(self, entity: Entity, payload: Optional[Mapping[str, Any]]) -> MutationPlan:
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise UnknownAttribute("<payload>", detail=f"payload must be an object, got {type(payload).__name__}")

        schema = self.registry.schema(entity)
        changes: Dict[str, Any] = {}
        provided = []
        ignored = []
        identifier_ignored = False
        for key, raw in payload.items():
            attribute = schema.get(key)
            if attribute is None or attribute.patch is PatchPolicy.REJECT:
                logger.debug("patch_rejected", entity=entity.value, attribute=key, reason="not mutable")
                raise UnknownAttribute(key, detail=f"{key!r} is not a mutable attribute of {entity.value}")
            if attribute.patch is PatchPolicy.MUTABLE:
                try:
                    changes[attribute.column] = coerce_json_value(attribute, raw)
                except UnknownAttribute as exc:
                    logger.debug("patch_rejected", entity=entity.value, attribute=key, reason=exc.detail)
                    raise
                provided.append(key)
                continue
            ignored.append(key)
            if attribute.patch is PatchPolicy.IMMUTABLE:
                identifier_ignored = True

        return MutationPlan(
            entity=entity,
            changes=changes,
            provided=tuple(provided),
            ignored=tuple(ignored),
            identifier_ignored=identifier_ignored,
        )
