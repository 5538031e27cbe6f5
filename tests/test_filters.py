"""Tests for building and compiling appointment filters."""
from __future__ import annotations

from datetime import date

import pytest

from salonbook.errors import InvalidFilter, MissingFilterParameter, MissingParameter
from salonbook.filters import (AppointmentFilter, FilterKind, build_filter,
                               client_filters, compile_filter, schedule_filters)

TODAY = date(2024, 6, 10)


@pytest.mark.parametrize("name", [None, "", "  ", "all", "ALL"])
def test_absent_or_all_filter_has_no_predicate(name):
    flt = build_filter(name, {})
    compiled = compile_filter(flt, TODAY)

    assert flt.kind is FilterKind.ALL
    assert compiled.clauses == []
    assert compiled.params == []


@pytest.mark.parametrize("name", ["today", "upcoming", "past"])
def test_date_relative_filters_bind_today(name):
    compiled = compile_filter(build_filter(name, {}), TODAY)

    assert len(compiled.clauses) == 1
    assert compiled.params == [TODAY]
    assert compiled.types == ["date"]


@pytest.mark.parametrize("name", ["completed", "Pending", "CANCELLED", "confirmed"])
def test_status_filters_are_case_insensitive(name):
    flt = build_filter(name, {})
    compiled = compile_filter(flt, TODAY)

    assert flt == AppointmentFilter(FilterKind.STATUS, name.lower())
    assert compiled.params == [name.lower()]
    assert compiled.types == ["str"]


def test_unknown_filter_is_rejected():
    with pytest.raises(InvalidFilter):
        build_filter("by_price", {})


@pytest.mark.parametrize(
    "name, params",
    [
        ("by_client_name", {}),
        ("by_client_name", {"client_name": ""}),
        ("by_client_name", {"client_name": "   ", "staff_name": "Sara", "date": "2024-06-01"}),
        ("by_staff_name", {"staff_name": None}),
        ("by_specific_date", {"client_name": "x"}),
    ],
)
def test_missing_filter_parameter_never_degrades_to_all(name, params):
    with pytest.raises(MissingFilterParameter):
        build_filter(name, params)


def test_client_name_is_bound_not_interpolated():
    hostile = "x' OR '1'='1"
    compiled = compile_filter(build_filter("by_client_name", {"client_name": hostile}), TODAY)

    sql = str(compiled.clauses[0])
    assert hostile not in sql
    assert ":client_name" in sql
    assert compiled.params == ["%x' OR '1'='1%"]
    assert compiled.types == ["str"]


def test_like_wildcards_are_escaped():
    compiled = compile_filter(build_filter("by_staff_name", {"staff_name": "50%_off"}), TODAY)
    assert compiled.params == ["%50\\%\\_off%"]


def test_specific_date_is_parsed():
    flt = build_filter("by_specific_date", {"date": "2024-06-01"})
    compiled = compile_filter(flt, TODAY)

    assert flt.value == date(2024, 6, 1)
    assert compiled.params == [date(2024, 6, 1)]
    assert compiled.types == ["date"]


def test_specific_date_must_be_iso():
    with pytest.raises(MissingParameter):
        build_filter("by_specific_date", {"date": "01/06/2024"})


def test_multiple_filters_compose():
    compiled = compile_filter(
        [
            AppointmentFilter(FilterKind.STAFF, 2),
            AppointmentFilter(FilterKind.DATE_RANGE, (date(2024, 6, 1), date(2024, 6, 30))),
        ],
        TODAY,
    )

    assert len(compiled.clauses) == 3
    assert compiled.params == [2, date(2024, 6, 1), date(2024, 6, 30)]
    assert compiled.types == ["int", "date", "date"]


def test_schedule_today_mode_wins_over_range():
    filters = schedule_filters(2, "today", "2024-06-01", "2024-06-30")
    assert [f.kind for f in filters] == [FilterKind.STAFF, FilterKind.TODAY]


def test_schedule_range_needs_both_ends():
    with pytest.raises(MissingParameter):
        schedule_filters(2, None, "2024-06-01", None)


def test_schedule_rejects_unknown_mode():
    with pytest.raises(InvalidFilter):
        schedule_filters(2, "tomorrow", None, None)


def test_client_filters_allow_open_range():
    filters = client_filters(4, "Pending", None, "2024-06-30")

    assert filters[1] == AppointmentFilter(FilterKind.STATUS, "pending")
    assert filters[2] == AppointmentFilter(FilterKind.DATE_RANGE, (None, date(2024, 6, 30)))
    assert len(compile_filter(filters, TODAY).clauses) == 3


def test_client_filters_reject_unknown_status():
    with pytest.raises(InvalidFilter):
        client_filters(4, "no-show", None, None)


def test_client_filters_numeric_status_is_invalid_filter():
    with pytest.raises(InvalidFilter):
        client_filters(4, 3, None, None)
