"""Inventory Service - inward, outward and transfer registration.

This module is the orchestrator of the ledger. Each operation validates a
batch of movement lines against allocation caps, project balances and
global stock, mutates the material ledger, and persists the movement
journal records, all inside one transaction.

Key Features:
- Inward receipts checked against the allocation cap (ordered and received)
- Outward issues bounded by min(project balance, global stock) and the cap
- Outward edits that apply only the per-material delta to the ledger
- Transfers materialized as an outward issue on the source project plus an
  immediate inward receipt on the destination project
- Batch-local pending totals so repeated materials in one batch are
  checked cumulatively

All public functions accept optional session parameter. When a session is
passed, the caller owns commit/rollback; otherwise session_scope() commits
on success and rolls back on any error.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import (
    InwardLine,
    InwardRecord,
    Material,
    OutwardLine,
    OutwardRecord,
    TransferLine,
    TransferRecord,
)
from ..utils.constants import (
    ERROR_INVALID_DATE,
    INWARD_TYPE_SUPPLY,
    INWARD_TYPES,
    MAX_REFERENCE_LENGTH,
    MAX_SITE_LENGTH,
    MOVEMENT_INWARD,
    MOVEMENT_OUTWARD,
    MOVEMENT_TRANSFER,
    QUANTITY_TOLERANCE,
)
from ..utils.datetime_utils import parse_iso_date, today
from ..utils.validators import clamp_quantity, sanitize_string, validate_string_length
from . import code_generator, journal_service, material_ledger
from .access_policy import ActorContext, assert_project_access
from .allocation_service import require_allocation
from .database import session_scope
from .dto import (
    InwardLineRequest,
    OutwardLineRequest,
    OutwardUpdateLine,
    TransferLineRequest,
)
from .exceptions import (
    AllocationExceededError,
    DatabaseError,
    DuplicateCodeError,
    InsufficientBalanceError,
    InvalidQuantityError,
    OutwardRecordNotFound,
    InwardRecordNotFound,
    RecordLockedError,
    ServiceError,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation
from .material_service import require_material
from .project_service import require_project

logger = get_service_logger(__name__)


# =============================================================================
# Batch helpers
# =============================================================================


class PendingTotals:
    """Quantities already accepted earlier in the current batch, per material.

    Journal sums only see persisted lines, so a batch that mentions the same
    material twice has to add what it already accepted before checking the
    next line.
    """

    def __init__(self):
        self._totals: Dict[int, float] = defaultdict(float)

    def get(self, material_id: int) -> float:
        return self._totals.get(material_id, 0.0)

    def add(self, material_id: int, quantity: float) -> float:
        self._totals[material_id] += quantity
        return self._totals[material_id]


def _coerce_lines(lines: Optional[Iterable], line_type) -> list:
    """Accept dataclass requests or plain dicts with the same keys."""
    if not lines:
        return []
    return [line_type(**line) if isinstance(line, dict) else line for line in lines]


def _quantity(value, field_name: str) -> float:
    """Clamp a line quantity to >= 0, rejecting non-numbers, NaN and infinity."""
    try:
        return clamp_quantity(value)
    except (TypeError, ValueError):
        raise InvalidQuantityError(field_name, value)


def _exceeds(total: float, limit: float) -> bool:
    """True when total is above limit by more than float noise."""
    return total - limit > QUANTITY_TOLERANCE


def _parse_date(value):
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError([ERROR_INVALID_DATE])


def _check_lengths(checks) -> None:
    errors = []
    for value, limit, label in checks:
        is_valid, error = validate_string_length(value, limit, label)
        if not is_valid:
            errors.append(error)
    if errors:
        raise ValidationError(errors)


def _rejected(operation: str, error: ServiceError, **context) -> ServiceError:
    """Log a rejected operation and hand the error back for raising."""
    log_operation(
        logger,
        operation=operation,
        outcome=type(error).__name__,
        level=logging.WARNING,
        error=str(error),
        **context,
    )
    return error


def _persist(session: Session, record, kind: str) -> None:
    """Add and flush a movement record, translating constraint violations."""
    session.add(record)
    try:
        session.flush()
    except IntegrityError as e:
        if "code" in str(e.orig).lower():
            raise DuplicateCodeError(kind, record.code) from e
        raise DatabaseError(f"Failed to save {kind} record {record.code}", e) from e


def _result(record, materials: Iterable[Material]) -> dict:
    """Record dictionary plus the ledger aggregates of touched materials."""
    result = record.to_dict(include_relationships=True)
    seen = {}
    for material in materials:
        seen[material.id] = material
    result["ledger"] = [material_ledger.snapshot(m) for m in seen.values()]
    return result


# =============================================================================
# Inward (receipt)
# =============================================================================


def _register_inward_impl(
    actor: Optional[ActorContext],
    project_id: int,
    lines: List[InwardLineRequest],
    header: dict,
    session: Session,
):
    operation = "register_inward"
    project = require_project(project_id, session)
    assert_project_access(actor, project)

    if not lines:
        raise _rejected(
            operation,
            ValidationError(["At least one inward line is required"]),
            project_id=project.id,
        )

    inward_type = sanitize_string(header.get("inward_type")) or INWARD_TYPE_SUPPLY
    inward_type = inward_type.upper()
    if inward_type not in INWARD_TYPES:
        raise ValidationError(
            [f"Unsupported inward type '{inward_type}'. Must be one of: {', '.join(INWARD_TYPES)}"]
        )
    invoice_date = _parse_date(header.get("invoice_date"))
    delivery_date = _parse_date(header.get("delivery_date"))
    invoice_no = sanitize_string(header.get("invoice_no"))
    _check_lengths([(invoice_no, MAX_REFERENCE_LENGTH, "Invoice number")])

    record = InwardRecord(
        code=code_generator.resolve_code(MOVEMENT_INWARD, header.get("code"), session),
        project_id=project.id,
        inward_type=inward_type,
        invoice_no=invoice_no,
        invoice_date=invoice_date,
        delivery_date=delivery_date,
        vehicle_no=sanitize_string(header.get("vehicle_no")),
        supplier_name=sanitize_string(header.get("supplier_name")),
        remarks=header.get("remarks"),
        entry_date=delivery_date or today(),
        validated=False,
    )

    pending_ordered = PendingTotals()
    pending_received = PendingTotals()
    accepted: List[InwardLine] = []
    touched: List[Material] = []

    for line_request in lines:
        ordered_qty = _quantity(line_request.ordered_qty, "Ordered quantity")
        received_qty = _quantity(line_request.received_qty, "Received quantity")
        if ordered_qty <= 0 and received_qty <= 0:
            continue

        material = require_material(line_request.material_id, session)
        allocation = require_allocation(session, project, material)

        already_ordered = journal_service.sum_ordered(session, project.id, material.id)
        next_ordered = already_ordered + pending_ordered.get(material.id) + ordered_qty
        if _exceeds(next_ordered, allocation):
            raise _rejected(
                operation,
                AllocationExceededError("Ordering", material.code, allocation, next_ordered),
                project_id=project.id,
                material_code=material.code,
            )

        already_received = journal_service.sum_received(session, project.id, material.id)
        next_received = already_received + pending_received.get(material.id) + received_qty
        if _exceeds(next_received, allocation):
            raise _rejected(
                operation,
                AllocationExceededError("Receiving", material.code, allocation, next_received),
                project_id=project.id,
                material_code=material.code,
            )

        pending_ordered.add(material.id, ordered_qty)
        pending_received.add(material.id, received_qty)

        accepted.append(
            InwardLine(material=material, ordered_qty=ordered_qty, received_qty=received_qty)
        )
        material_ledger.apply_receipt(material, ordered_qty, received_qty)
        touched.append(material)

    if not accepted:
        raise _rejected(
            operation,
            ValidationError(["At least one inward line with quantity is required"]),
            project_id=project.id,
        )

    record.lines = accepted
    _persist(session, record, MOVEMENT_INWARD)

    log_operation(
        logger,
        operation=operation,
        outcome="success",
        project_id=project.id,
        code=record.code,
        line_count=len(accepted),
    )
    return record, touched


def register_inward(
    actor: Optional[ActorContext],
    project_id: int,
    lines: List[InwardLineRequest],
    code: Optional[str] = None,
    inward_type: Optional[str] = None,
    invoice_no: Optional[str] = None,
    invoice_date=None,
    delivery_date=None,
    vehicle_no: Optional[str] = None,
    supplier_name: Optional[str] = None,
    remarks: Optional[str] = None,
    session: Optional[Session] = None,
) -> dict:
    """Register a goods receipt against a project.

    Lines where both quantities are zero (after clamping negatives to zero)
    are skipped. Every surviving line must keep the project's total ordered
    and total received for that material within its allocation; lines for the
    same material within one batch are checked cumulatively. Accepted lines
    update the material ledger immediately.

    Args:
        actor: Acting user (must have access to the project)
        project_id: Receiving project
        lines: InwardLineRequest items (or dicts with the same keys)
        code: Optional caller code; generated (I0001...) when blank
        inward_type: Receipt type, defaults to SUPPLY
        invoice_no: Supplier invoice number
        invoice_date: date or "YYYY-MM-DD"
        delivery_date: date or "YYYY-MM-DD"; also the entry date when given
        vehicle_no: Delivering vehicle
        supplier_name: Supplier name
        remarks: Free text
        session: Optional database session

    Returns:
        Inward record dict with "lines" and the touched materials' "ledger"

    Raises:
        ProjectNotFound / MaterialNotFound: Unknown IDs
        ForbiddenError: Actor lacks project access
        ValidationError: Empty batch, bad dates/type, not allocated or
            allocation exceeded
        DuplicateCodeError: Code already used
    """
    header = {
        "code": code,
        "inward_type": inward_type,
        "invoice_no": invoice_no,
        "invoice_date": invoice_date,
        "delivery_date": delivery_date,
        "vehicle_no": vehicle_no,
        "supplier_name": supplier_name,
        "remarks": remarks,
    }
    line_requests = _coerce_lines(lines, InwardLineRequest)

    if session is not None:
        record, touched = _register_inward_impl(actor, project_id, line_requests, header, session)
        return _result(record, touched)
    with session_scope() as sess:
        record, touched = _register_inward_impl(actor, project_id, line_requests, header, sess)
        return _result(record, touched)


# =============================================================================
# Outward (issue)
# =============================================================================


def _register_outward_impl(
    actor: Optional[ActorContext],
    project_id: int,
    lines: List[OutwardLineRequest],
    header: dict,
    session: Session,
):
    operation = "register_outward"
    project = require_project(project_id, session)
    assert_project_access(actor, project)

    if not lines:
        raise _rejected(
            operation,
            ValidationError(["At least one outward line is required"]),
            project_id=project.id,
        )

    issue_date = _parse_date(header.get("date")) or today()
    record = OutwardRecord(
        code=code_generator.resolve_code(MOVEMENT_OUTWARD, header.get("code"), session),
        project_id=project.id,
        issue_to=sanitize_string(header.get("issue_to")),
        date=issue_date,
        entry_date=issue_date,
        vehicle_no=sanitize_string(header.get("vehicle_no")),
        remarks=header.get("remarks"),
        validated=False,
    )

    pending_issued = PendingTotals()
    accepted: List[OutwardLine] = []
    touched: List[Material] = []

    for line_request in lines:
        issue_qty = _quantity(line_request.issue_qty, "Issue quantity")
        if issue_qty <= 0:
            continue

        material = require_material(line_request.material_id, session)
        context = {"project_id": project.id, "material_code": material.code}

        received_for_project = journal_service.sum_received(session, project.id, material.id)
        already_issued = journal_service.sum_issued(session, project.id, material.id)
        pending = pending_issued.get(material.id)

        project_balance = received_for_project - already_issued - pending
        if project_balance <= QUANTITY_TOLERANCE:
            raise _rejected(
                operation,
                InsufficientBalanceError(
                    f"No balance available for material {material.code} "
                    f"in project {project.code}",
                    material.code,
                    0.0,
                ),
                **context,
            )

        # Project bookkeeping can never release more than global stock
        effective_available = min(project_balance, material.balance_qty or 0.0)
        if effective_available <= QUANTITY_TOLERANCE:
            raise _rejected(
                operation,
                InsufficientBalanceError(
                    f"Stock quantity is zero for material {material.code} "
                    f"in project {project.code}",
                    material.code,
                    0.0,
                ),
                **context,
            )

        if _exceeds(issue_qty, effective_available):
            unit = f" {material.unit}" if material.unit else ""
            raise _rejected(
                operation,
                InsufficientBalanceError(
                    f"Cannot issue {issue_qty:g}{unit} of {material.code} for project "
                    f"{project.code}. Available quantity for this project is "
                    f"{effective_available:g}.",
                    material.code,
                    effective_available,
                ),
                **context,
            )

        allocation = require_allocation(session, project, material)
        next_total = already_issued + pending + issue_qty
        if _exceeds(next_total, allocation):
            raise _rejected(
                operation,
                AllocationExceededError("Issuing", material.code, allocation, next_total),
                **context,
            )

        accepted.append(OutwardLine(material=material, issue_qty=issue_qty))
        material_ledger.apply_issue(material, issue_qty)
        pending_issued.add(material.id, issue_qty)
        touched.append(material)

    if not accepted:
        raise _rejected(
            operation,
            ValidationError(["At least one outward line with quantity is required"]),
            project_id=project.id,
        )

    record.lines = accepted
    _persist(session, record, MOVEMENT_OUTWARD)

    log_operation(
        logger,
        operation=operation,
        outcome="success",
        project_id=project.id,
        code=record.code,
        line_count=len(accepted),
    )
    return record, touched


def register_outward(
    actor: Optional[ActorContext],
    project_id: int,
    lines: List[OutwardLineRequest],
    code: Optional[str] = None,
    issue_to: Optional[str] = None,
    date=None,
    vehicle_no: Optional[str] = None,
    remarks: Optional[str] = None,
    session: Optional[Session] = None,
) -> dict:
    """Register an issue of material out of a project's received stock.

    For each line with a positive quantity the issue must fit within
    min(project balance, material global balance) and keep the project's
    total issued within the allocation. Repeated materials in one batch are
    checked cumulatively.

    Args:
        actor: Acting user (must have access to the project)
        project_id: Issuing project
        lines: OutwardLineRequest items (or dicts with the same keys)
        code: Optional caller code; generated (O0001...) when blank
        issue_to: Recipient
        date: Issue date (date or "YYYY-MM-DD"), defaults to today
        vehicle_no: Optional vehicle reference
        remarks: Free text
        session: Optional database session

    Returns:
        Outward record dict with "lines" and the touched materials' "ledger"

    Raises:
        ProjectNotFound / MaterialNotFound: Unknown IDs
        ForbiddenError: Actor lacks project access
        InsufficientBalanceError: No project balance, zero stock or request
            above the available quantity
        AllocationExceededError: Issued total would pass the allocation
        NotAllocatedError: Material not allocated to the project
        ValidationError: Empty batch or bad date
        DuplicateCodeError: Code already used
    """
    header = {
        "code": code,
        "issue_to": issue_to,
        "date": date,
        "vehicle_no": vehicle_no,
        "remarks": remarks,
    }
    line_requests = _coerce_lines(lines, OutwardLineRequest)

    if session is not None:
        record, touched = _register_outward_impl(actor, project_id, line_requests, header, session)
        return _result(record, touched)
    with session_scope() as sess:
        record, touched = _register_outward_impl(actor, project_id, line_requests, header, sess)
        return _result(record, touched)


def _update_outward_impl(
    record_id: int,
    lines: List[OutwardUpdateLine],
    issue_to: Optional[str],
    actor: Optional[ActorContext],
    session: Session,
):
    operation = "update_outward"
    record = session.get(OutwardRecord, record_id)
    if record is None:
        raise OutwardRecordNotFound(record_id)
    project = record.project
    if actor is not None:
        assert_project_access(actor, project)
    if record.validated:
        raise _rejected(
            operation,
            RecordLockedError(MOVEMENT_OUTWARD, record.code),
            project_id=project.id,
            record_id=record.id,
        )

    # 1) This record's current contribution per material
    existing_by_id = {line.id: line for line in record.lines}
    previous_totals: Dict[int, float] = defaultdict(float)
    materials: Dict[int, Material] = {}
    for line in record.lines:
        previous_totals[line.material_id] += line.issue_qty or 0.0
        materials[line.material_id] = line.material

    # 2) Requested line set, without touching persisted lines yet
    planned = []
    requested_totals: Dict[int, float] = defaultdict(float)
    for line_request in lines:
        issue_qty = _quantity(line_request.issue_qty, "Issue quantity")
        if issue_qty <= 0:
            continue

        material = require_material(line_request.material_id, session)
        materials[material.id] = material
        requested_totals[material.id] += issue_qty

        reused = None
        if line_request.line_id is not None:
            candidate = existing_by_id.get(line_request.line_id)
            if candidate is not None and candidate.material_id == material.id:
                reused = existing_by_id.pop(line_request.line_id)
        planned.append((reused, material, issue_qty))

    if not planned:
        raise _rejected(
            operation,
            ValidationError(["At least one outward line with quantity is required"]),
            project_id=project.id,
            record_id=record.id,
        )

    # 3) Project balance and allocation, using journal totals from before the edit
    for material_id, new_total in requested_totals.items():
        material = materials[material_id]
        context = {"project_id": project.id, "material_code": material.code}

        allocation = require_allocation(session, project, material)
        issued_in_db = journal_service.sum_issued(session, project.id, material_id)
        received_for_project = journal_service.sum_received(session, project.id, material_id)
        issued_elsewhere = issued_in_db - previous_totals.get(material_id, 0.0)
        next_total = issued_elsewhere + new_total

        if _exceeds(next_total, received_for_project):
            project_balance = max(0.0, received_for_project - issued_elsewhere)
            raise _rejected(
                operation,
                InsufficientBalanceError(
                    f"Cannot set issue quantity for material {material.code} to "
                    f"{new_total:g} in project {project.code} because project balance "
                    f"is only {project_balance:g}.",
                    material.code,
                    project_balance,
                ),
                **context,
            )
        if _exceeds(next_total, allocation):
            raise _rejected(
                operation,
                AllocationExceededError("Issuing", material.code, allocation, next_total),
                **context,
            )

    # 4) Per-material delta against global stock, then apply
    deltas: Dict[int, float] = {}
    for material_id in set(previous_totals) | set(requested_totals):
        delta = requested_totals.get(material_id, 0.0) - previous_totals.get(material_id, 0.0)
        if delta == 0:
            continue
        material = materials[material_id]
        if delta > 0 and _exceeds(delta, material.balance_qty or 0.0):
            raise _rejected(
                operation,
                InsufficientBalanceError(
                    f"Cannot increase issue quantity for {material.code} by {delta:g} "
                    f"because only {material.balance_qty:g} is available in stock.",
                    material.code,
                    material.balance_qty,
                ),
                project_id=project.id,
                material_code=material.code,
            )
        deltas[material_id] = delta

    for material_id, delta in deltas.items():
        material_ledger.adjust_utilized(materials[material_id], delta)

    # 5) Replace the line collection; dropped lines are deleted as orphans
    next_lines = []
    for reused, material, issue_qty in planned:
        if reused is not None:
            reused.issue_qty = issue_qty
            next_lines.append(reused)
        else:
            next_lines.append(OutwardLine(material=material, issue_qty=issue_qty))
    record.lines = next_lines

    clean_issue_to = sanitize_string(issue_to)
    if clean_issue_to:
        record.issue_to = clean_issue_to

    session.flush()

    log_operation(
        logger,
        operation=operation,
        outcome="success" if deltas else "no_change",
        project_id=project.id,
        code=record.code,
        line_count=len(next_lines),
    )
    touched = [materials[mid] for mid in sorted(set(previous_totals) | set(requested_totals))]
    return record, touched, deltas


def update_outward(
    record_id: int,
    lines: List[OutwardUpdateLine],
    issue_to: Optional[str] = None,
    actor: Optional[ActorContext] = None,
    session: Optional[Session] = None,
) -> dict:
    """Replace the lines of an existing outward record.

    Only the per-material difference between the record's old and new
    quantities is applied to Material.utilized_qty, so repeating the same
    update is a no-op for the ledger. Lines with zero or negative quantity
    are dropped (removed from the record).

    Args:
        record_id: Outward record to edit
        lines: Full replacement set of OutwardUpdateLine items (or dicts)
        issue_to: New recipient; blank keeps the current value
        actor: Optional acting user; when given, project access is checked
        session: Optional database session

    Returns:
        Outward record dict with "lines", "ledger" and per-material "deltas"

    Raises:
        OutwardRecordNotFound: Unknown record
        RecordLockedError: Record already validated
        InsufficientBalanceError: Project balance or stock cannot cover it
        AllocationExceededError: Issued total would pass the allocation
        ValidationError: No line with quantity left
    """
    line_requests = _coerce_lines(lines, OutwardUpdateLine)

    def _impl(sess: Session) -> dict:
        record, touched, deltas = _update_outward_impl(
            record_id, line_requests, issue_to, actor, sess
        )
        result = _result(record, touched)
        result["deltas"] = dict(deltas)
        return result

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


# =============================================================================
# Transfer
# =============================================================================


def _register_transfer_impl(
    actor: Optional[ActorContext],
    from_project_id: int,
    to_project_id: Optional[int],
    lines: List[TransferLineRequest],
    header: dict,
    session: Session,
) -> dict:
    operation = "register_transfer"
    if to_project_id is None:
        raise ValidationError(["Destination project is required"])

    from_project = require_project(from_project_id, session)
    to_project = require_project(to_project_id, session)
    assert_project_access(actor, from_project)
    assert_project_access(actor, to_project)

    if not lines:
        raise _rejected(
            operation,
            ValidationError(["At least one transfer line is required"]),
            project_id=from_project.id,
        )

    from_site = sanitize_string(header.get("from_site"))
    to_site = sanitize_string(header.get("to_site"))
    _check_lengths(
        [(from_site, MAX_SITE_LENGTH, "Source site"), (to_site, MAX_SITE_LENGTH, "Destination site")]
    )
    if from_project.id == to_project.id:
        if from_site is None or to_site is None:
            raise _rejected(
                operation,
                ValidationError(
                    ["Provide both source and destination sites when transferring "
                     "within a project"]
                ),
                project_id=from_project.id,
            )
        if from_site.lower() == to_site.lower():
            raise _rejected(
                operation,
                ValidationError(["Cannot transfer within the same project site"]),
                project_id=from_project.id,
            )

    record = TransferRecord(
        code=code_generator.resolve_code(MOVEMENT_TRANSFER, header.get("code"), session),
        from_project_id=from_project.id,
        to_project_id=to_project.id,
        from_site=from_site,
        to_site=to_site,
        remarks=header.get("remarks"),
        transfer_date=today(),
    )

    transfer_lines: List[TransferLine] = []
    outward_requests: List[OutwardLineRequest] = []
    inward_requests: List[InwardLineRequest] = []
    for line_request in lines:
        transfer_qty = _quantity(line_request.transfer_qty, "Transfer quantity")
        if transfer_qty <= 0:
            continue
        material = require_material(line_request.material_id, session)
        transfer_lines.append(TransferLine(material=material, transfer_qty=transfer_qty))
        outward_requests.append(OutwardLineRequest(material.id, transfer_qty))
        # Destination receives immediately; nothing is left on order
        inward_requests.append(InwardLineRequest(material.id, 0.0, transfer_qty))

    if not transfer_lines:
        raise _rejected(
            operation,
            ValidationError(["Transfer quantity must be greater than zero"]),
            project_id=from_project.id,
        )

    record.lines = transfer_lines
    _persist(session, record, MOVEMENT_TRANSFER)

    outward, issued_materials = _register_outward_impl(
        actor,
        from_project.id,
        outward_requests,
        {"issue_to": f"Transfer to {to_project.code}"},
        session,
    )
    inward, received_materials = _register_inward_impl(
        actor,
        to_project.id,
        inward_requests,
        {
            "inward_type": INWARD_TYPE_SUPPLY,
            "remarks": f"Transfer from {from_project.code}",
            "supplier_name": from_project.name,
        },
        session,
    )

    record.outward_record_id = outward.id
    record.inward_record_id = inward.id
    session.flush()

    log_operation(
        logger,
        operation=operation,
        outcome="success",
        project_id=from_project.id,
        to_project_id=to_project.id,
        code=record.code,
        outward_code=outward.code,
        inward_code=inward.code,
    )

    result = _result(record, list(issued_materials) + list(received_materials))
    result["outward_code"] = outward.code
    result["inward_code"] = inward.code
    return result


def register_transfer(
    actor: Optional[ActorContext],
    from_project_id: int,
    to_project_id: Optional[int],
    lines: List[TransferLineRequest],
    from_site: Optional[str] = None,
    to_site: Optional[str] = None,
    code: Optional[str] = None,
    remarks: Optional[str] = None,
    session: Optional[Session] = None,
) -> dict:
    """Move material between projects, or between sites of one project.

    Persists the transfer record, then registers an outward issue on the
    source project and an inward receipt (ordered 0, received = transferred)
    on the destination, with the same validation a manual issue or receipt
    gets. Any failure rolls back all three records.

    Args:
        actor: Acting user (needs access to both projects)
        from_project_id: Source project
        to_project_id: Destination project (required)
        lines: TransferLineRequest items (or dicts)
        from_site: Source site; required for intra-project transfers
        to_site: Destination site; required for intra-project transfers
        code: Optional caller code; generated (T0001...) when blank
        remarks: Free text
        session: Optional database session

    Returns:
        Transfer record dict with "lines", "ledger", "outward_code" and
        "inward_code"

    Raises:
        ValidationError: Missing destination, same project without distinct
            sites, no positive line, or any outward/inward rule failure
        ForbiddenError: Actor lacks access to either project
    """
    header = {"from_site": from_site, "to_site": to_site, "code": code, "remarks": remarks}
    line_requests = _coerce_lines(lines, TransferLineRequest)

    if session is not None:
        return _register_transfer_impl(
            actor, from_project_id, to_project_id, line_requests, header, session
        )
    with session_scope() as sess:
        return _register_transfer_impl(
            actor, from_project_id, to_project_id, line_requests, header, sess
        )


# =============================================================================
# Validation lock and code preview
# =============================================================================


def _mark_validated(record, kind: str, actor: Optional[ActorContext]) -> None:
    if actor is not None:
        assert_project_access(actor, record.project)
    if not record.validated:
        record.validated = True
        log_operation(
            logger,
            operation=f"validate_{kind}",
            outcome="success",
            project_id=record.project_id,
            code=record.code,
        )


def validate_inward(
    record_id: int,
    actor: Optional[ActorContext] = None,
    session: Optional[Session] = None,
) -> dict:
    """
    Mark an inward record as validated (read-only). Repeating is harmless.

    Raises:
        InwardRecordNotFound: Unknown record
    """

    def _impl(sess: Session) -> dict:
        record = sess.get(InwardRecord, record_id)
        if record is None:
            raise InwardRecordNotFound(record_id)
        _mark_validated(record, MOVEMENT_INWARD, actor)
        sess.flush()
        return record.to_dict(include_relationships=True)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def validate_outward(
    record_id: int,
    actor: Optional[ActorContext] = None,
    session: Optional[Session] = None,
) -> dict:
    """
    Mark an outward record as validated; update_outward then refuses it.

    Raises:
        OutwardRecordNotFound: Unknown record
    """

    def _impl(sess: Session) -> dict:
        record = sess.get(OutwardRecord, record_id)
        if record is None:
            raise OutwardRecordNotFound(record_id)
        _mark_validated(record, MOVEMENT_OUTWARD, actor)
        sess.flush()
        return record.to_dict(include_relationships=True)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def generate_codes(session: Optional[Session] = None) -> dict:
    """Preview the next inward, outward and transfer codes (no side effects)."""
    return code_generator.generate_codes(session=session)
