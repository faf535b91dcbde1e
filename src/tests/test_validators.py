"""Tests for input validators, date parsing, DTOs and access checks."""

from datetime import date, datetime

import pytest

from sitestock.models import Project
from sitestock.services.access_policy import ActorContext, assert_project_access
from sitestock.services.dto import PaginatedResult, PaginationParams, paginate
from sitestock.services.exceptions import ForbiddenError
from sitestock.utils.datetime_utils import parse_iso_date
from sitestock.utils.validators import (
    clamp_quantity,
    sanitize_string,
    validate_non_negative_number,
    validate_required_string,
    validate_string_length,
)


class TestValidators:
    def test_sanitize_string(self):
        assert sanitize_string("  Yard A ") == "Yard A"
        assert sanitize_string("   ") is None
        assert sanitize_string(None) is None

    def test_required_string(self):
        assert validate_required_string("P1", "Project code") == (True, "")
        assert validate_required_string(" ", "Project code") == (False, "Project code is required")

    def test_string_length(self):
        assert validate_string_length(None, 3)[0]
        assert not validate_string_length("abcd", 3, "Code")[0]

    def test_non_negative_number(self):
        assert validate_non_negative_number("2.5")[0]
        assert validate_non_negative_number(-1, "Qty") == (False, "Qty must be zero or greater")
        assert validate_non_negative_number("x", "Qty") == (False, "Qty must be a valid number")
        assert validate_non_negative_number(float("nan"), "Qty") == (False, "Qty must be a valid number")
        assert not validate_non_negative_number("inf")[0]

    def test_clamp_quantity(self):
        assert clamp_quantity(None) == 0
        assert clamp_quantity(-4) == 0
        assert clamp_quantity("7.5") == 7.5
        with pytest.raises(ValueError):
            clamp_quantity("seven")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "NaN"])
    def test_clamp_quantity_rejects_non_finite(self, value):
        with pytest.raises(ValueError):
            clamp_quantity(value)


class TestParseIsoDate:
    def test_accepts_strings_dates_and_blank(self):
        assert parse_iso_date("2024-03-02") == date(2024, 3, 2)
        assert parse_iso_date(date(2024, 3, 2)) == date(2024, 3, 2)
        assert parse_iso_date(datetime(2024, 3, 2, 14, 30)) == date(2024, 3, 2)
        assert parse_iso_date("") is None
        assert parse_iso_date(None) is None

    def test_rejects_other_formats(self):
        with pytest.raises(ValueError):
            parse_iso_date("02/03/2024")


class TestPagination:
    def test_params_validation(self):
        assert PaginationParams(page=3, per_page=25).offset() == 50
        with pytest.raises(ValueError):
            PaginationParams(page=0)
        with pytest.raises(ValueError):
            PaginationParams(per_page=101)

    def test_result_navigation(self):
        result = PaginatedResult(items=[], total=45, page=2, per_page=20)
        assert result.pages == 3
        assert result.has_next
        assert result.has_prev
        assert PaginatedResult(items=[], total=0, page=1, per_page=20).pages == 1

    def test_paginate_list(self):
        page = paginate(list(range(7)), PaginationParams(page=2, per_page=3))
        everything = paginate(list(range(7)), None)

        assert page.items == [3, 4, 5]
        assert page.total == 7
        assert everything.items == list(range(7))
        assert everything.pages == 1


class TestAccessPolicy:
    def test_project_membership(self):
        project = Project(id=5, code="P5", name="Depot")

        assert_project_access(ActorContext(user_id=1, access_all=True), project)
        assert_project_access(ActorContext(user_id=2, project_ids=frozenset({5})), project)
        with pytest.raises(ForbiddenError) as exc:
            assert_project_access(ActorContext(user_id=3, project_ids=frozenset({6})), project)
        assert "P5" in str(exc.value)

    def test_missing_actor(self):
        with pytest.raises(ForbiddenError):
            assert_project_access(None, Project(id=1, code="P1", name="Depot"))
