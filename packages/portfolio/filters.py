"""Compile caller-supplied ``attribute=value`` maps into validated predicates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import structlog

from .coercion import coerce_query_value, parse_boolean
from .errors import UnknownAttribute
from .keywords import KeywordPredicate, KeywordQueryType, build_keyword_predicate, parse_query_type
from .schema import Attribute, AttributeType, Entity, Operator, SchemaRegistry, default_registry

__all__ = [
    "INCLUDE_CONFIDENTIAL",
    "KEYWORD_QUERY_TYPE",
    "SHOW_DETAILS",
    "Predicate",
    "ScopedKeywordPredicate",
    "AnyPredicate",
    "CompiledFilter",
    "FilterCompiler",
]

logger = structlog.get_logger(__name__)

INCLUDE_CONFIDENTIAL = "includeConfidential"
KEYWORD_QUERY_TYPE = "KeywordQueryType"
SHOW_DETAILS = "showDetails"


@dataclass(frozen=True, slots=True)
class Predicate:
    """``<entity>.<attribute> <operator> value``."""

    entity: Entity
    attribute: Attribute
    operator: Operator
    value: Any


@dataclass(frozen=True, slots=True)
class ScopedKeywordPredicate:
    entity: Entity
    keywords: KeywordPredicate


AnyPredicate = Union[Predicate, ScopedKeywordPredicate]


@dataclass(frozen=True, slots=True)
class CompiledFilter:
    """Conjunction of predicates plus the reserved control parameters."""

    predicates: Tuple[AnyPredicate, ...] = ()
    include_confidential: bool = False
    keyword_query_type: KeywordQueryType = KeywordQueryType.AND
    options: Mapping[str, str] = field(default_factory=dict)

    @property
    def has_filters(self) -> bool:
        return bool(self.predicates)

    def for_entity(self, entity: Entity) -> Tuple[AnyPredicate, ...]:
        return tuple(p for p in self.predicates if p.entity is entity)


class FilterCompiler:
    """Turns a string-valued filter map into a :class:`CompiledFilter`.

    Each key is resolved against *scopes* in order, so on a join the first
    scope wins for names present on several entities (``StartDate`` on both
    staff and projects). Compilation is total: any key that does not resolve
    fails the whole filter with :class:`UnknownAttribute`.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        self.registry = registry or default_registry()

    def compile(
        self,
        scopes: Sequence[Entity],
        params: Optional[Mapping[str, Any]],
        *,
        options: Iterable[str] = (),
    ) -> CompiledFilter:
        remaining: Dict[str, Any] = dict(params or {})
        include_confidential = False
        if INCLUDE_CONFIDENTIAL in remaining:
            include_confidential = self._guard(
                lambda: parse_boolean(INCLUDE_CONFIDENTIAL, remaining.pop(INCLUDE_CONFIDENTIAL))
            )
        query_type = self._guard(lambda: parse_query_type(remaining.pop(KEYWORD_QUERY_TYPE, None)))
        extracted = {name: str(remaining.pop(name)) for name in options if name in remaining}

        predicates = [self._compile_one(scopes, name, raw, query_type) for name, raw in remaining.items()]
        return CompiledFilter(
            predicates=tuple(predicates),
            include_confidential=include_confidential,
            keyword_query_type=query_type,
            options=extracted,
        )

    def _compile_one(
        self, scopes: Sequence[Entity], name: str, raw: Any, query_type: KeywordQueryType
    ) -> AnyPredicate:
        for scope in scopes:
            attribute = self.registry.lookup(scope, name)
            if attribute is not None:
                if attribute.type is AttributeType.KEYWORD_LIST:
                    return ScopedKeywordPredicate(scope, build_keyword_predicate(str(raw), query_type))
                value = self._guard(lambda: coerce_query_value(attribute, raw))
                return Predicate(scope, attribute, attribute.operator, value)
            ranged = self.registry.lookup_date_range(scope, name)
            if ranged is not None:
                base, operator = ranged
                value = self._guard(lambda: coerce_query_value(base, raw))
                return Predicate(scope, base, operator, value)
        error = UnknownAttribute(
            name, detail=f"{name!r} is not filterable on {', '.join(s.value for s in scopes)}"
        )
        logger.debug("filter_rejected", attribute=name, reason=error.detail)
        raise error

    @staticmethod
    def _guard(thunk):
        try:
            return thunk()
        except UnknownAttribute as exc:
            logger.debug("filter_rejected", attribute=exc.attribute, reason=exc.detail)
            raise
