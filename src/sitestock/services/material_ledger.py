"""Material Ledger - global per-material stock aggregates.

The ledger adds non-negative deltas to a material's ordered, received and
utilized totals and resyncs balance_qty = max(0, received - utilized).
It performs no allocation or balance validation; inventory_service checks
everything before calling in.

These aggregates are a cache over the movement journal. When they
disagree with the journal sums (see journal_service.reconcile_material),
the cached values are what outward validation uses.
"""

from ..models import Material


def apply_receipt(material: Material, ordered_delta: float, received_delta: float) -> Material:
    """
    Add a receipt to the material aggregates.

    Args:
        material: Material attached to the active session
        ordered_delta: Quantity ordered (>= 0)
        received_delta: Quantity received (>= 0)

    Returns:
        The same material with updated aggregates
    """
    if ordered_delta > 0:
        material.ordered_qty = (material.ordered_qty or 0.0) + ordered_delta
    if received_delta > 0:
        material.received_qty = (material.received_qty or 0.0) + received_delta
    material.sync_balance()
    return material


def apply_issue(material: Material, issued_delta: float) -> Material:
    """
    Add an issue to the material's utilized total.

    Args:
        material: Material attached to the active session
        issued_delta: Quantity issued (>= 0)
    """
    if issued_delta > 0:
        material.utilized_qty = (material.utilized_qty or 0.0) + issued_delta
    material.sync_balance()
    return material


def adjust_utilized(material: Material, delta: float) -> Material:
    """
    Apply a signed change to utilized_qty, used when an issue is edited.

    Negative deltas return stock; utilized_qty is floored at zero.
    """
    material.utilized_qty = max(0.0, (material.utilized_qty or 0.0) + delta)
    material.sync_balance()
    return material


def snapshot(material: Material) -> dict:
    """Return the material's current aggregates as a dictionary."""
    return {
        "material_id": material.id,
        "material_code": material.code,
        "ordered_qty": material.ordered_qty,
        "received_qty": material.received_qty,
        "utilized_qty": material.utilized_qty,
        "balance_qty": material.balance_qty,
    }
