import datetime as dt

import pytest

from packages.portfolio.errors import UnknownAttribute
from packages.portfolio.filters import SHOW_DETAILS, FilterCompiler, Predicate, ScopedKeywordPredicate
from packages.portfolio.keywords import KeywordQueryType
from packages.portfolio.schema import Entity, Operator


@pytest.fixture()
def compiler():
    return FilterCompiler()


def test_reserved_keys_are_not_predicates(compiler):
    compiled = compiler.compile([Entity.PROJECT], {"includeConfidential": "true", "KeywordQueryType": "OR"})

    assert compiled.predicates == ()
    assert compiled.include_confidential is True
    assert compiled.keyword_query_type is KeywordQueryType.OR
    assert not compiled.has_filters


def test_confidential_defaults_to_excluded(compiler):
    assert compiler.compile([Entity.PROJECT], {}).include_confidential is False
    assert compiler.compile([Entity.PROJECT], None).include_confidential is False


def test_values_are_coerced_to_attribute_types(compiler):
    compiled = compiler.compile(
        [Entity.PROJECT],
        {"ProjectCode": "22398800", "Latitude": "53.39", "Confidential": "false", "Town": "Warrington"},
    )
    values = {p.attribute.name: p.value for p in compiled.predicates}

    assert values == {"ProjectCode": 22398800, "Latitude": 53.39, "Confidential": False, "Town": "Warrington"}


def test_date_suffixes_become_range_predicates(compiler):
    compiled = compiler.compile([Entity.PROJECT], {"EndDateAfter": "2021-01-01", "StartDateBefore": "2020-01-01"})
    by_operator = {p.operator: p for p in compiled.predicates}

    assert by_operator[Operator.GE].attribute.name == "EndDate"
    assert by_operator[Operator.GE].value == dt.datetime(2021, 1, 1)
    assert by_operator[Operator.LT].attribute.name == "StartDate"


def test_percent_complete_compiles_to_minimum(compiler):
    (predicate,) = compiler.compile([Entity.PROJECT], {"PercentComplete": "90"}).predicates

    assert isinstance(predicate, Predicate)
    assert predicate.operator is Operator.GE
    assert predicate.value == 90.0


def test_keywords_use_the_requested_query_type(compiler):
    compiled = compiler.compile([Entity.PROJECT], {"Keywords": "CT0019;BC0001", "KeywordQueryType": "OR"})
    (predicate,) = compiled.predicates

    assert isinstance(predicate, ScopedKeywordPredicate)
    assert predicate.keywords.codes == ("CT0019", "BC0001")
    assert predicate.keywords.query_type is KeywordQueryType.OR


def test_first_scope_wins_for_shared_names(compiler):
    (predicate,) = compiler.compile([Entity.PROJECT, Entity.STAFF], {"StartDate": "2012-03-23"}).predicates
    assert predicate.entity is Entity.PROJECT

    (predicate,) = compiler.compile([Entity.PROJECT, Entity.STAFF], {"GradeLevel": "6"}).predicates
    assert predicate.entity is Entity.STAFF


@pytest.mark.parametrize(
    "params",
    [
        {"Sam": "Cool"},
        {"PercentComplete": "abc"},
        {"ProjectCode": "WBSQ"},
        {"StartDate": "not-a-date"},
        {"ScopeOfWorks": "anything"},
        {"includeConfidential": "maybe"},
        {"KeywordQueryType": "XOR"},
    ],
)
def test_bad_keys_or_values_fail_the_whole_filter(compiler, params):
    with pytest.raises(UnknownAttribute):
        compiler.compile([Entity.PROJECT], {"ClientName": "Network Rail Limited", **params})


def test_options_are_extracted_before_validation(compiler):
    compiled = compiler.compile([Entity.PROJECT], {SHOW_DETAILS: "false"}, options=(SHOW_DETAILS,))

    assert compiled.options == {SHOW_DETAILS: "false"}
    assert compiled.predicates == ()

    with pytest.raises(UnknownAttribute):
        compiler.compile([Entity.PROJECT], {SHOW_DETAILS: "false"})
