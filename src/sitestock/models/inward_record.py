"""
Inward (receipt) models.

An InwardRecord is the header of a goods receipt against one project;
InwardLine rows hold the ordered and received quantity per material.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    Float,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from sitestock.utils.constants import INWARD_TYPE_SUPPLY


class InwardRecord(BaseModel):
    """
    Inward record header.

    Attributes:
        code: Unique human readable code (e.g., "I0001")
        project_id: Receiving project
        inward_type: Receipt type (SUPPLY)
        invoice_no: Supplier invoice number
        invoice_date: Invoice date
        delivery_date: Delivery date
        vehicle_no: Delivering vehicle
        supplier_name: Supplier (or source project for transfers)
        remarks: Free text
        entry_date: Delivery date when known, otherwise the registration date
        validated: Once True the lines are read-only

    Relationships:
        project: Many-to-One with Project
        lines: One-to-Many with InwardLine (cascade delete)
    """

    __tablename__ = "inward_records"

    code = Column(String(50), nullable=False, unique=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )
    inward_type = Column(String(20), nullable=False, default=INWARD_TYPE_SUPPLY)
    invoice_no = Column(String(100), nullable=True)
    invoice_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    vehicle_no = Column(String(50), nullable=True)
    supplier_name = Column(String(200), nullable=True)
    remarks = Column(Text, nullable=True)
    entry_date = Column(Date, nullable=False)
    validated = Column(Boolean, nullable=False, default=False)

    project = relationship("Project")
    lines = relationship(
        "InwardLine",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="InwardLine.id",
    )

    __table_args__ = (
        Index("idx_inward_record_project", "project_id"),
        Index("idx_inward_record_entry_date", "entry_date"),
    )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert inward record to dictionary.

        Args:
            include_relationships: If True, include lines and project code
        """
        result = super().to_dict(False)
        if include_relationships:
            result["project_code"] = self.project.code if self.project else None
            result["lines"] = [line.to_dict() for line in self.lines]
        return result


class InwardLine(BaseModel):
    """
    Inward line: ordered and received quantity for one material.

    Both quantities are independent and non-negative; at least one is
    positive for a persisted line.
    """

    __tablename__ = "inward_lines"

    record_id = Column(
        Integer, ForeignKey("inward_records.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    ordered_qty = Column(Float, nullable=False, default=0.0)
    received_qty = Column(Float, nullable=False, default=0.0)

    record = relationship("InwardRecord", back_populates="lines")
    material = relationship("Material")

    __table_args__ = (
        Index("idx_inward_line_record", "record_id"),
        Index("idx_inward_line_material", "material_id"),
        CheckConstraint("ordered_qty >= 0", name="ck_inward_line_ordered_non_negative"),
        CheckConstraint("received_qty >= 0", name="ck_inward_line_received_non_negative"),
    )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["material_code"] = self.material.code if self.material else None
        return result
