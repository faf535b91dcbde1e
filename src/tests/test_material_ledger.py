"""Tests for the material ledger aggregate helpers."""

from sitestock.models import Material
from sitestock.services import material_ledger


def _material(**kwargs):
    defaults = dict(
        code="CEM-50",
        name="Portland Cement 50kg",
        ordered_qty=0.0,
        received_qty=0.0,
        utilized_qty=0.0,
        balance_qty=0.0,
    )
    defaults.update(kwargs)
    return Material(**defaults)


class TestMaterialLedger:
    """Tests for apply_receipt/apply_issue/adjust_utilized."""

    def test_receipt_adds_both_quantities(self):
        material = material_ledger.apply_receipt(_material(), 60, 40)

        assert material.ordered_qty == 60
        assert material.received_qty == 40
        assert material.balance_qty == 40

    def test_issue_reduces_balance(self):
        material = _material(received_qty=60, balance_qty=60)

        material_ledger.apply_issue(material, 25)

        assert material.utilized_qty == 25
        assert material.balance_qty == 35

    def test_balance_never_negative(self):
        """balance_qty floors at zero even if issued exceeds received."""
        material = _material(received_qty=10, balance_qty=10)

        material_ledger.apply_issue(material, 15)

        assert material.utilized_qty == 15
        assert material.balance_qty == 0

    def test_zero_deltas_only_resync(self):
        material = _material(received_qty=10, utilized_qty=4, balance_qty=99)

        material_ledger.apply_receipt(material, 0, 0)

        assert material.received_qty == 10
        assert material.balance_qty == 6

    def test_adjust_utilized_is_signed_and_floored(self):
        material = _material(received_qty=50, utilized_qty=20, balance_qty=30)

        material_ledger.adjust_utilized(material, -5)
        assert material.utilized_qty == 15
        assert material.balance_qty == 35

        material_ledger.adjust_utilized(material, -100)
        assert material.utilized_qty == 0
        assert material.balance_qty == 50

    def test_snapshot(self):
        material = _material(ordered_qty=5, received_qty=4, utilized_qty=1, balance_qty=3)

        snap = material_ledger.snapshot(material)

        assert snap["material_code"] == "CEM-50"
        assert snap["balance_qty"] == 3
        assert set(snap) == {
            "material_id",
            "material_code",
            "ordered_qty",
            "received_qty",
            "utilized_qty",
            "balance_qty",
        }
