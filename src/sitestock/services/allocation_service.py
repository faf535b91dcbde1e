"""Allocation Service - per-project bill-of-materials caps.

Each (project, material) pair has at most one allocation row holding the
quantity the project may order, receive and issue in total. A missing row
is a hard precondition failure for any movement line on that pair.

Key Features:
- Upsert (assign) and delete allocation rows
- Cap lookup used by inventory_service validation
- Per-project overview with derived ordered/received/issued/balance totals
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..models import Allocation, Material, Project
from ..utils.validators import sanitize_string, validate_non_negative_number
from .database import session_scope
from .dto import PaginatedResult, PaginationParams, paginate
from .exceptions import InvalidQuantityError, NotAllocatedError
from .journal_service import sum_issued, sum_ordered, sum_received
from .logging_utils import get_service_logger, log_operation
from .material_service import require_material
from .project_service import require_project

logger = get_service_logger(__name__)


def require_allocation(session: Session, project: Project, material: Material) -> float:
    """
    Return the allocation cap for a project and material.

    Raises:
        NotAllocatedError: If the material is not allocated to the project
    """
    allocation = (
        session.query(Allocation)
        .filter(Allocation.project_id == project.id, Allocation.material_id == material.id)
        .first()
    )
    if allocation is None:
        raise NotAllocatedError(material.code, project.code)
    return float(allocation.quantity)


def get_allocation(project_id: int, material_id: int, session: Optional[Session] = None) -> float:
    """
    Look up the required quantity cap for a project and material.

    Raises:
        ProjectNotFound / MaterialNotFound: If either ID is unknown
        NotAllocatedError: If no allocation row exists
    """

    def _impl(sess: Session) -> float:
        project = require_project(project_id, sess)
        material = require_material(material_id, sess)
        return require_allocation(sess, project, material)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def upsert_allocation(
    project_id: int,
    material_id: int,
    quantity: float,
    session: Optional[Session] = None,
) -> dict:
    """
    Create or replace the allocation row for a project and material.

    Args:
        project_id: Project receiving the allocation
        material_id: Allocated material
        quantity: Required quantity cap (>= 0)
        session: Optional database session

    Returns:
        Allocation overview dict (see list_for_project)

    Raises:
        InvalidQuantityError: If quantity is negative or not a number
        ProjectNotFound / MaterialNotFound: If either ID is unknown
    """
    is_valid, _ = validate_non_negative_number(quantity, "Allocation quantity")
    if not is_valid:
        raise InvalidQuantityError("Allocation quantity", quantity)
    cap = float(quantity)

    def _impl(sess: Session) -> dict:
        project = require_project(project_id, sess)
        material = require_material(material_id, sess)

        allocation = (
            sess.query(Allocation)
            .filter(Allocation.project_id == project.id, Allocation.material_id == material.id)
            .first()
        )
        created = allocation is None
        if created:
            allocation = Allocation(project=project, material=material)
            sess.add(allocation)
        allocation.quantity = cap
        sess.flush()

        log_operation(
            logger,
            operation="upsert_allocation",
            outcome="created" if created else "updated",
            project_id=project.id,
            material_code=material.code,
            quantity=cap,
        )
        return _allocation_overview(sess, allocation)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def delete_allocation(
    project_id: int,
    material_id: int,
    session: Optional[Session] = None,
) -> bool:
    """
    Remove the allocation row for a project and material.

    Returns:
        True if a row was deleted, False if none existed
    """

    def _impl(sess: Session) -> bool:
        project = require_project(project_id, sess)
        material = require_material(material_id, sess)
        deleted = (
            sess.query(Allocation)
            .filter(Allocation.project_id == project.id, Allocation.material_id == material.id)
            .delete(synchronize_session="fetch")
        )
        log_operation(
            logger,
            operation="delete_allocation",
            outcome="deleted" if deleted else "not_found",
            project_id=project.id,
            material_code=material.code,
        )
        return deleted > 0

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def _allocation_overview(sess: Session, allocation: Allocation) -> dict:
    """Allocation row plus derived project totals for its material."""
    material = allocation.material
    ordered = sum_ordered(sess, allocation.project_id, allocation.material_id)
    received = sum_received(sess, allocation.project_id, allocation.material_id)
    issued = sum_issued(sess, allocation.project_id, allocation.material_id)
    return {
        "id": allocation.id,
        "project_id": allocation.project_id,
        "material_id": allocation.material_id,
        "code": material.code,
        "name": material.name,
        "part_no": material.part_no,
        "line_type": material.line_type,
        "unit": material.unit,
        "category": material.category,
        "allocated_qty": allocation.quantity,
        "ordered_qty": ordered,
        "received_qty": received,
        "issued_qty": issued,
        "balance_qty": max(0.0, received - issued),
    }


def _matches(item: dict, term: str) -> bool:
    return any(
        item.get(key) and term in item[key].lower() for key in ("code", "name", "category")
    )


def list_for_project(
    project_id: int,
    search: Optional[str] = None,
    in_stock_only: bool = False,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[dict]:
    """
    List a project's allocation rows with derived totals.

    Args:
        project_id: Project to report on
        search: Case-insensitive term matched against material code/name/category
        in_stock_only: Only rows whose project balance is positive
        pagination: Optional page parameters; None returns everything
        session: Optional database session

    Returns:
        PaginatedResult of dicts with allocated_qty, ordered_qty, received_qty,
        issued_qty and balance_qty per material

    Raises:
        ProjectNotFound: If project doesn't exist
    """
    term = sanitize_string(search)

    def _impl(sess: Session) -> PaginatedResult[dict]:
        project = require_project(project_id, sess)
        allocations = (
            sess.query(Allocation)
            .options(joinedload(Allocation.material))
            .join(Material, Allocation.material_id == Material.id)
            .filter(Allocation.project_id == project.id)
            .order_by(Material.code)
            .all()
        )
        items = [_allocation_overview(sess, allocation) for allocation in allocations]
        if term:
            items = [item for item in items if _matches(item, term.lower())]
        if in_stock_only:
            items = [item for item in items if item["balance_qty"] > 0]
        return paginate(items, pagination)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def list_allocations(search: Optional[str] = None, session: Optional[Session] = None) -> List[dict]:
    """
    List allocation rows across all projects.

    Args:
        search: Case-insensitive term matched against project code/name and
            material code/name

    Returns:
        List of dicts with project and material identity plus allocated quantity
    """
    term = sanitize_string(search)

    def _impl(sess: Session) -> List[dict]:
        query = (
            sess.query(Allocation)
            .join(Project, Allocation.project_id == Project.id)
            .join(Material, Allocation.material_id == Material.id)
        )
        if term:
            pattern = f"%{term.lower()}%"
            query = query.filter(
                or_(
                    Project.code.ilike(pattern),
                    Project.name.ilike(pattern),
                    Material.code.ilike(pattern),
                    Material.name.ilike(pattern),
                )
            )
        rows = query.order_by(Project.code, Material.code).all()
        return [
            {
                "id": row.id,
                "project_id": row.project_id,
                "project_code": row.project.code,
                "project_name": row.project.name,
                "material_id": row.material_id,
                "material_code": row.material.code,
                "material_name": row.material.name,
                "category": row.material.category,
                "unit": row.material.unit,
                "allocated_qty": row.quantity,
            }
            for row in rows
        ]

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
