"""Tests for movement journal queries and cache reconciliation."""

import pytest

from sitestock.services import allocation_service, inventory_service, journal_service
from sitestock.services.dto import (
    InwardLineRequest,
    OutwardLineRequest,
    PaginationParams,
    TransferLineRequest,
)
from sitestock.services.exceptions import (
    InwardRecordNotFound,
    MaterialNotFound,
    TransferRecordNotFound,
)


@pytest.fixture
def movements(db_session, actor, project, other_project, cement_allocated):
    """Two receipts and an issue on P1, then a transfer of 5 to P2."""
    allocation_service.upsert_allocation(other_project.id, cement_allocated.id, 20, session=db_session)
    for quantity in (30, 20):
        inventory_service.register_inward(
            actor,
            project.id,
            [InwardLineRequest(cement_allocated.id, quantity, quantity)],
            session=db_session,
        )
    inventory_service.register_outward(
        actor, project.id, [OutwardLineRequest(cement_allocated.id, 15)], session=db_session
    )
    return inventory_service.register_transfer(
        actor,
        project.id,
        other_project.id,
        [TransferLineRequest(cement_allocated.id, 5)],
        session=db_session,
    )


class TestDerivedTotals:
    def test_project_material_totals(self, db_session, project, cement_allocated, movements):
        totals = journal_service.get_project_material_totals(
            project.id, cement_allocated.id, session=db_session
        )

        assert totals["total_ordered"] == 50
        assert totals["total_received"] == 50
        assert totals["total_issued"] == 20
        assert totals["balance"] == 30

    def test_totals_are_zero_without_movements(self, db_session, project, cement_allocated):
        totals = journal_service.get_project_material_totals(
            project.id, cement_allocated.id, session=db_session
        )
        assert totals["total_received"] == 0
        assert totals["balance"] == 0


class TestRecordQueries:
    def test_get_transfer_record(self, db_session, movements):
        record = journal_service.get_transfer_record(movements["id"], session=db_session)

        assert record["outward_code"] == "O0002"
        assert record["inward_code"] == "I0003"
        assert record["lines"][0]["transfer_qty"] == 5

    def test_missing_records(self, db_session):
        with pytest.raises(InwardRecordNotFound):
            journal_service.get_inward_record(1, session=db_session)
        with pytest.raises(TransferRecordNotFound):
            journal_service.get_transfer_record(1, session=db_session)

    def test_list_inward_by_project(self, db_session, project, other_project, movements):
        p1 = journal_service.list_inward_records(project.id, session=db_session)
        p2 = journal_service.list_inward_records(other_project.id, session=db_session)

        assert p1.total == 2
        assert [r["code"] for r in p2.items] == ["I0003"]
        assert p2.items[0]["remarks"] == "Transfer from P1"

    def test_list_outward_paginated(self, db_session, project, movements):
        page = journal_service.list_outward_records(
            project.id, pagination=PaginationParams(page=1, per_page=1), session=db_session
        )

        assert page.total == 2
        assert page.has_next
        assert len(page.items) == 1

    def test_transfers_listed_for_both_sides(self, db_session, project, other_project, movements):
        assert journal_service.list_transfer_records(project.id, session=db_session).total == 1
        assert journal_service.list_transfer_records(other_project.id, session=db_session).total == 1


class TestReconcileMaterial:
    """Tests for reconcile_material()."""

    def test_in_sync_after_normal_activity(self, db_session, cement_allocated, movements):
        report = journal_service.reconcile_material(cement_allocated.id, session=db_session)

        assert report["in_sync"] is True
        assert report["journal"]["received_qty"] == 55
        assert report["journal"]["utilized_qty"] == 20
        assert report["cached"]["balance_qty"] == 35

    def test_drift_is_reported_not_fixed(self, db_session, cement_allocated, movements):
        cement_allocated.utilized_qty = 25
        cement_allocated.sync_balance()
        db_session.flush()

        report = journal_service.reconcile_material(cement_allocated.id, session=db_session)
        drifted = journal_service.list_out_of_sync_materials(session=db_session)

        assert report["in_sync"] is False
        assert report["drift"]["utilized_qty"] == 5
        assert cement_allocated.utilized_qty == 25
        assert [r["material_code"] for r in drifted] == ["CEM-50"]

    def test_unknown_material(self, db_session):
        with pytest.raises(MaterialNotFound):
            journal_service.reconcile_material(77, session=db_session)
