"""
Transfer models.

A TransferRecord documents the intent to move material between projects
or between sites of one project. It has no ledger effect of its own; the
inventory service materializes it as an outward issue on the source and
an inward receipt on the destination.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    Float,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class TransferRecord(BaseModel):
    """
    Transfer record header.

    Attributes:
        code: Unique human readable code (e.g., "T0001")
        from_project_id: Source project
        to_project_id: Destination project (may equal the source)
        from_site: Source site, required for intra-project transfers
        to_site: Destination site, required for intra-project transfers
        remarks: Free text
        transfer_date: Date of the transfer
        outward_record_id: Derived issue on the source project
        inward_record_id: Derived receipt on the destination project
    """

    __tablename__ = "transfer_records"

    code = Column(String(50), nullable=False, unique=True)
    from_project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )
    to_project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )
    from_site = Column(String(200), nullable=True)
    to_site = Column(String(200), nullable=True)
    remarks = Column(Text, nullable=True)
    transfer_date = Column(Date, nullable=False)
    outward_record_id = Column(
        Integer, ForeignKey("outward_records.id", ondelete="SET NULL"), nullable=True
    )
    inward_record_id = Column(
        Integer, ForeignKey("inward_records.id", ondelete="SET NULL"), nullable=True
    )

    from_project = relationship("Project", foreign_keys=[from_project_id])
    to_project = relationship("Project", foreign_keys=[to_project_id])
    outward_record = relationship("OutwardRecord", foreign_keys=[outward_record_id])
    inward_record = relationship("InwardRecord", foreign_keys=[inward_record_id])
    lines = relationship(
        "TransferLine",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="TransferLine.id",
    )

    __table_args__ = (
        Index("idx_transfer_record_from_project", "from_project_id"),
        Index("idx_transfer_record_to_project", "to_project_id"),
        Index("idx_transfer_record_date", "transfer_date"),
    )

    @property
    def is_intra_project(self) -> bool:
        """True when material moves between sites of the same project."""
        return self.from_project_id == self.to_project_id

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(False)
        if include_relationships:
            result["from_project_code"] = self.from_project.code if self.from_project else None
            result["to_project_code"] = self.to_project.code if self.to_project else None
            result["intra_project"] = self.is_intra_project
            result["outward_code"] = self.outward_record.code if self.outward_record else None
            result["inward_code"] = self.inward_record.code if self.inward_record else None
            result["lines"] = [line.to_dict() for line in self.lines]
        return result


class TransferLine(BaseModel):
    """Transfer line: quantity of one material moved."""

    __tablename__ = "transfer_lines"

    record_id = Column(
        Integer, ForeignKey("transfer_records.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    transfer_qty = Column(Float, nullable=False, default=0.0)

    record = relationship("TransferRecord", back_populates="lines")
    material = relationship("Material")

    __table_args__ = (
        Index("idx_transfer_line_record", "record_id"),
        Index("idx_transfer_line_material", "material_id"),
        CheckConstraint("transfer_qty >= 0", name="ck_transfer_line_qty_non_negative"),
    )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["material_code"] = self.material.code if self.material else None
        return result
