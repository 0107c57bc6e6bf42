"""AND/OR membership predicates over a project's keyword set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Tuple

from sqlalchemy import ColumnElement, distinct, func, select, true

from .errors import UnknownAttribute

__all__ = [
    "KEYWORD_DELIMITER",
    "KeywordQueryType",
    "KeywordPredicate",
    "parse_query_type",
    "split_codes",
    "build_keyword_predicate",
]

KEYWORD_DELIMITER = ";"


class KeywordQueryType(str, Enum):
    AND = "AND"
    OR = "OR"


def parse_query_type(raw: str | None) -> KeywordQueryType:
    if raw is None:
        return KeywordQueryType.AND
    try:
        return KeywordQueryType(raw.strip().upper())
    except ValueError:
        raise UnknownAttribute("KeywordQueryType", detail=f"bad KeywordQueryType {raw!r}") from None


def split_codes(raw: str) -> Tuple[str, ...]:
    """Split a ``;``-delimited code list, dropping blanks and duplicates."""

    seen: dict[str, None] = {}
    for part in raw.split(KEYWORD_DELIMITER):
        code = part.strip()
        if code:
            seen.setdefault(code, None)
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class KeywordPredicate:
    codes: Tuple[str, ...]
    query_type: KeywordQueryType = KeywordQueryType.AND

    @property
    def is_noop(self) -> bool:
        return not self.codes

    def matches(self, keyword_set: AbstractSet[str]) -> bool:
        if self.is_noop:
            return True
        if self.query_type is KeywordQueryType.AND:
            return set(self.codes) <= set(keyword_set)
        return not set(self.codes).isdisjoint(keyword_set)

    def clause(self, project_code: ColumnElement, association) -> ColumnElement[bool]:
        """SQL form of :meth:`matches` against a (project, keyword) link table.

        *association* must expose ``project_code`` and ``keyword_code`` columns.
        """

        if self.is_noop:
            return true()
        matching = select(association.project_code).where(association.keyword_code.in_(self.codes))
        if self.query_type is KeywordQueryType.AND:
            matching = matching.group_by(association.project_code).having(
                func.count(distinct(association.keyword_code)) == len(self.codes)
            )
        return project_code.in_(matching)


def build_keyword_predicate(raw: str, query_type: KeywordQueryType) -> KeywordPredicate:
    return KeywordPredicate(codes=split_codes(raw), query_type=query_type)
