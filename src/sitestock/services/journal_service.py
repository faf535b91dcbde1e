"""Journal Service - movement journal queries and derived totals.

Project-scoped quantities are never stored; they are summed from movement
lines at query time:

- total_ordered / total_received: inward lines for the project + material
- total_issued: outward lines for the project + material
- balance: max(0, total_received - total_issued)

All functions accept optional session parameter for transaction sharing.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import (
    InwardLine,
    InwardRecord,
    Material,
    OutwardLine,
    OutwardRecord,
    TransferRecord,
)
from ..utils.constants import QUANTITY_TOLERANCE
from .database import session_scope
from .dto import PaginatedResult, PaginationParams
from .exceptions import (
    InwardRecordNotFound,
    OutwardRecordNotFound,
    TransferRecordNotFound,
)
from .material_service import require_material

# Differences below this are float noise, not drift
DRIFT_TOLERANCE = QUANTITY_TOLERANCE


# =============================================================================
# Aggregate sums (session required - called inside inventory transactions)
# =============================================================================


def sum_ordered(session: Session, project_id: int, material_id: int) -> float:
    """Total ordered quantity of a material across a project's inward records."""
    total = (
        session.query(func.coalesce(func.sum(InwardLine.ordered_qty), 0.0))
        .join(InwardRecord, InwardLine.record_id == InwardRecord.id)
        .filter(InwardRecord.project_id == project_id, InwardLine.material_id == material_id)
        .scalar()
    )
    return float(total or 0.0)


def sum_received(session: Session, project_id: int, material_id: int) -> float:
    """Total received quantity of a material across a project's inward records."""
    total = (
        session.query(func.coalesce(func.sum(InwardLine.received_qty), 0.0))
        .join(InwardRecord, InwardLine.record_id == InwardRecord.id)
        .filter(InwardRecord.project_id == project_id, InwardLine.material_id == material_id)
        .scalar()
    )
    return float(total or 0.0)


def sum_issued(session: Session, project_id: int, material_id: int) -> float:
    """Total issued quantity of a material across a project's outward records."""
    total = (
        session.query(func.coalesce(func.sum(OutwardLine.issue_qty), 0.0))
        .join(OutwardRecord, OutwardLine.record_id == OutwardRecord.id)
        .filter(OutwardRecord.project_id == project_id, OutwardLine.material_id == material_id)
        .scalar()
    )
    return float(total or 0.0)


def _project_material_totals(session: Session, project_id: int, material_id: int) -> dict:
    ordered = sum_ordered(session, project_id, material_id)
    received = sum_received(session, project_id, material_id)
    issued = sum_issued(session, project_id, material_id)
    return {
        "project_id": project_id,
        "material_id": material_id,
        "total_ordered": ordered,
        "total_received": received,
        "total_issued": issued,
        "balance": max(0.0, received - issued),
    }


def get_project_material_totals(
    project_id: int,
    material_id: int,
    session: Optional[Session] = None,
) -> dict:
    """
    Derived totals for one (project, material) pair.

    Returns:
        Dict with total_ordered, total_received, total_issued and balance
    """
    if session is not None:
        return _project_material_totals(session, project_id, material_id)
    with session_scope() as sess:
        return _project_material_totals(sess, project_id, material_id)


# =============================================================================
# Record lookups
# =============================================================================


def get_inward_record(record_id: int, session: Optional[Session] = None) -> dict:
    """
    Get an inward record with its lines.

    Raises:
        InwardRecordNotFound: If record doesn't exist
    """

    def _impl(sess: Session) -> dict:
        record = sess.get(InwardRecord, record_id)
        if record is None:
            raise InwardRecordNotFound(record_id)
        return record.to_dict(include_relationships=True)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def get_outward_record(record_id: int, session: Optional[Session] = None) -> dict:
    """
    Get an outward record with its lines.

    Raises:
        OutwardRecordNotFound: If record doesn't exist
    """

    def _impl(sess: Session) -> dict:
        record = sess.get(OutwardRecord, record_id)
        if record is None:
            raise OutwardRecordNotFound(record_id)
        return record.to_dict(include_relationships=True)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def get_transfer_record(record_id: int, session: Optional[Session] = None) -> dict:
    """
    Get a transfer record with its lines and derived movement codes.

    Raises:
        TransferRecordNotFound: If record doesn't exist
    """

    def _impl(sess: Session) -> dict:
        record = sess.get(TransferRecord, record_id)
        if record is None:
            raise TransferRecordNotFound(record_id)
        return record.to_dict(include_relationships=True)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def _list_records(query, pagination: Optional[PaginationParams]) -> PaginatedResult:
    total = query.count()
    if pagination is None:
        records = query.all()
        return PaginatedResult(
            items=[r.to_dict(include_relationships=True) for r in records],
            total=total,
            page=1,
            per_page=total or 1,
        )
    records = query.offset(pagination.offset()).limit(pagination.per_page).all()
    return PaginatedResult(
        items=[r.to_dict(include_relationships=True) for r in records],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
    )


def list_inward_records(
    project_id: Optional[int] = None,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[dict]:
    """List inward records, newest first, optionally for one project."""

    def _impl(sess: Session) -> PaginatedResult[dict]:
        query = sess.query(InwardRecord)
        if project_id is not None:
            query = query.filter(InwardRecord.project_id == project_id)
        query = query.order_by(InwardRecord.entry_date.desc(), InwardRecord.id.desc())
        return _list_records(query, pagination)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def list_outward_records(
    project_id: Optional[int] = None,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[dict]:
    """List outward records, newest first, optionally for one project."""

    def _impl(sess: Session) -> PaginatedResult[dict]:
        query = sess.query(OutwardRecord)
        if project_id is not None:
            query = query.filter(OutwardRecord.project_id == project_id)
        query = query.order_by(OutwardRecord.date.desc(), OutwardRecord.id.desc())
        return _list_records(query, pagination)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def list_transfer_records(
    project_id: Optional[int] = None,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[dict]:
    """List transfer records touching a project (either side), newest first."""

    def _impl(sess: Session) -> PaginatedResult[dict]:
        query = sess.query(TransferRecord)
        if project_id is not None:
            query = query.filter(
                (TransferRecord.from_project_id == project_id)
                | (TransferRecord.to_project_id == project_id)
            )
        query = query.order_by(TransferRecord.transfer_date.desc(), TransferRecord.id.desc())
        return _list_records(query, pagination)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


# =============================================================================
# Cache reconciliation
# =============================================================================


def reconcile_material(material_id: int, session: Optional[Session] = None) -> dict:
    """
    Compare a material's cached aggregates against the journal.

    This is a read-only report: it never rewrites the cache.

    Returns:
        Dict with "cached" and "journal" aggregate dicts, per-field "drift"
        (cached - journal) and an "in_sync" flag

    Raises:
        MaterialNotFound: If material doesn't exist
    """

    def _impl(sess: Session) -> dict:
        material: Material = require_material(material_id, sess)

        ordered = sess.query(func.coalesce(func.sum(InwardLine.ordered_qty), 0.0)).filter(
            InwardLine.material_id == material_id
        ).scalar()
        received = sess.query(func.coalesce(func.sum(InwardLine.received_qty), 0.0)).filter(
            InwardLine.material_id == material_id
        ).scalar()
        utilized = sess.query(func.coalesce(func.sum(OutwardLine.issue_qty), 0.0)).filter(
            OutwardLine.material_id == material_id
        ).scalar()

        journal = {
            "ordered_qty": float(ordered or 0.0),
            "received_qty": float(received or 0.0),
            "utilized_qty": float(utilized or 0.0),
        }
        journal["balance_qty"] = max(0.0, journal["received_qty"] - journal["utilized_qty"])

        cached = {
            "ordered_qty": material.ordered_qty or 0.0,
            "received_qty": material.received_qty or 0.0,
            "utilized_qty": material.utilized_qty or 0.0,
            "balance_qty": material.balance_qty or 0.0,
        }
        drift = {key: cached[key] - journal[key] for key in cached}

        return {
            "material_id": material.id,
            "material_code": material.code,
            "cached": cached,
            "journal": journal,
            "drift": drift,
            "in_sync": all(abs(value) < DRIFT_TOLERANCE for value in drift.values()),
        }

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def list_out_of_sync_materials(session: Optional[Session] = None) -> List[dict]:
    """Reconcile every material and return the ones whose cache drifted."""

    def _impl(sess: Session) -> List[dict]:
        material_ids = [row[0] for row in sess.query(Material.id).order_by(Material.code).all()]
        reports = [reconcile_material(mid, session=sess) for mid in material_ids]
        return [report for report in reports if not report["in_sync"]]

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
