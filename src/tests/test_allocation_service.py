"""Tests for the allocation table (per-project caps)."""

import pytest

from sitestock.services import allocation_service, inventory_service
from sitestock.services.dto import InwardLineRequest, OutwardLineRequest, PaginationParams
from sitestock.services.exceptions import (
    InvalidQuantityError,
    MaterialNotFound,
    NotAllocatedError,
    ProjectNotFound,
)


class TestUpsertAllocation:
    """Tests for upsert_allocation() and get_allocation()."""

    def test_create_then_replace(self, db_session, project, cement):
        created = allocation_service.upsert_allocation(project.id, cement.id, 100, session=db_session)
        replaced = allocation_service.upsert_allocation(project.id, cement.id, 40, session=db_session)

        assert created["id"] == replaced["id"]
        assert replaced["allocated_qty"] == 40
        assert allocation_service.get_allocation(project.id, cement.id, session=db_session) == 40

    def test_zero_is_a_valid_cap(self, db_session, project, cement):
        result = allocation_service.upsert_allocation(project.id, cement.id, 0, session=db_session)
        assert result["allocated_qty"] == 0

    @pytest.mark.parametrize("quantity", [-1, "lots", None])
    def test_invalid_quantity(self, db_session, project, cement, quantity):
        with pytest.raises(InvalidQuantityError):
            allocation_service.upsert_allocation(project.id, cement.id, quantity, session=db_session)

    def test_unknown_project_or_material(self, db_session, project, cement):
        with pytest.raises(ProjectNotFound):
            allocation_service.upsert_allocation(999, cement.id, 5, session=db_session)
        with pytest.raises(MaterialNotFound):
            allocation_service.upsert_allocation(project.id, 999, 5, session=db_session)

    def test_missing_allocation(self, db_session, project, cement):
        with pytest.raises(NotAllocatedError):
            allocation_service.get_allocation(project.id, cement.id, session=db_session)

    def test_delete(self, db_session, project, cement_allocated):
        assert allocation_service.delete_allocation(project.id, cement_allocated.id, session=db_session)
        assert not allocation_service.delete_allocation(
            project.id, cement_allocated.id, session=db_session
        )
        with pytest.raises(NotAllocatedError):
            allocation_service.get_allocation(project.id, cement_allocated.id, session=db_session)


class TestListAllocations:
    """Tests for list_for_project() and list_allocations()."""

    @pytest.fixture
    def activity(self, db_session, actor, project, cement_allocated, rebar):
        allocation_service.upsert_allocation(project.id, rebar.id, 500, session=db_session)
        inventory_service.register_inward(
            actor,
            project.id,
            [InwardLineRequest(cement_allocated.id, 80, 50)],
            session=db_session,
        )
        inventory_service.register_outward(
            actor,
            project.id,
            [OutwardLineRequest(cement_allocated.id, 20)],
            session=db_session,
        )

    def test_overview_has_derived_totals(self, db_session, project, activity):
        result = allocation_service.list_for_project(project.id, session=db_session)

        assert result.total == 2
        cement_row = result.items[0]
        assert cement_row["code"] == "CEM-50"
        assert cement_row["allocated_qty"] == 100
        assert cement_row["ordered_qty"] == 80
        assert cement_row["received_qty"] == 50
        assert cement_row["issued_qty"] == 20
        assert cement_row["balance_qty"] == 30

    def test_in_stock_only(self, db_session, project, activity):
        result = allocation_service.list_for_project(project.id, in_stock_only=True, session=db_session)
        assert [row["code"] for row in result.items] == ["CEM-50"]

    def test_search_and_pagination(self, db_session, project, activity):
        steel = allocation_service.list_for_project(project.id, search="steel", session=db_session)
        assert [row["code"] for row in steel.items] == ["TMT-12"]

        page = allocation_service.list_for_project(
            project.id, pagination=PaginationParams(page=2, per_page=1), session=db_session
        )
        assert page.total == 2
        assert page.has_prev
        assert [row["code"] for row in page.items] == ["TMT-12"]

    def test_list_across_projects(self, db_session, project, other_project, activity, cement):
        allocation_service.upsert_allocation(other_project.id, cement.id, 10, session=db_session)

        rows = allocation_service.list_allocations(session=db_session)
        flyover = allocation_service.list_allocations(search="flyover", session=db_session)

        assert len(rows) == 3
        assert [(r["project_code"], r["material_code"]) for r in flyover] == [("P2", "CEM-50")]

    def test_unknown_project(self, db_session):
        with pytest.raises(ProjectNotFound):
            allocation_service.list_for_project(42, session=db_session)
