"""
Material model for the global material catalog and stock ledger.

A Material is a catalog entry (e.g., "CEM-50 Portland Cement 50kg") that
also carries the global stock aggregates maintained by the material ledger.
"""

from sqlalchemy import Column, String, Float, Index, CheckConstraint

from .base import BaseModel


class Material(BaseModel):
    """
    Material model with cached global stock aggregates.

    The aggregates are only mutated through the material ledger service.
    balance_qty is always max(0, received_qty - utilized_qty).

    Attributes:
        code: Unique material code (e.g., "CEM-50")
        name: Display name
        part_no: Optional manufacturer part number
        line_type: Optional BOM line classification
        unit: Unit of measure (e.g., "bag", "m", "nos")
        category: Optional category for grouping and search
        ordered_qty: Total ordered across all projects
        received_qty: Total received across all projects
        utilized_qty: Total issued across all projects
        balance_qty: Stock on hand (received - utilized, floored at 0)
    """

    __tablename__ = "materials"

    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    part_no = Column(String(100), nullable=True)
    line_type = Column(String(100), nullable=True)
    unit = Column(String(30), nullable=True)
    category = Column(String(100), nullable=True)

    # Ledger aggregates
    ordered_qty = Column(Float, nullable=False, default=0.0)
    received_qty = Column(Float, nullable=False, default=0.0)
    utilized_qty = Column(Float, nullable=False, default=0.0)
    balance_qty = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("idx_material_code", "code"),
        Index("idx_material_name", "name"),
        Index("idx_material_category", "category"),
        CheckConstraint("ordered_qty >= 0", name="ck_material_ordered_non_negative"),
        CheckConstraint("received_qty >= 0", name="ck_material_received_non_negative"),
        CheckConstraint("utilized_qty >= 0", name="ck_material_utilized_non_negative"),
        CheckConstraint("balance_qty >= 0", name="ck_material_balance_non_negative"),
    )

    def sync_balance(self) -> float:
        """
        Recompute balance_qty from received and utilized.

        Returns:
            The new balance (never negative)
        """
        received = self.received_qty or 0.0
        utilized = self.utilized_qty or 0.0
        self.balance_qty = max(0.0, received - utilized)
        return self.balance_qty

    def __repr__(self) -> str:
        return f"Material(id={self.id}, code='{self.code}', balance={self.balance_qty})"
