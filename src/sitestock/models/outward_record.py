"""
Outward (issue) models.

An OutwardRecord issues material out of a project's received stock;
OutwardLine rows hold the issued quantity per material.
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


class OutwardRecord(BaseModel):
    """
    Outward record header.

    Attributes:
        code: Unique human readable code (e.g., "O0001")
        project_id: Issuing project
        issue_to: Recipient (contractor, crew, or "Transfer to <project>")
        date: Issue date
        entry_date: Date the record was entered
        vehicle_no: Optional vehicle reference
        remarks: Free text
        validated: Once True the lines are read-only

    Relationships:
        project: Many-to-One with Project
        lines: One-to-Many with OutwardLine (cascade delete-orphan, so
            replacing the collection removes dropped lines)
    """

    __tablename__ = "outward_records"

    code = Column(String(50), nullable=False, unique=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )
    issue_to = Column(String(200), nullable=True)
    date = Column(Date, nullable=False)
    entry_date = Column(Date, nullable=False)
    vehicle_no = Column(String(50), nullable=True)
    remarks = Column(Text, nullable=True)
    validated = Column(Boolean, nullable=False, default=False)

    project = relationship("Project")
    lines = relationship(
        "OutwardLine",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="OutwardLine.id",
    )

    __table_args__ = (
        Index("idx_outward_record_project", "project_id"),
        Index("idx_outward_record_date", "date"),
    )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(False)
        if include_relationships:
            result["project_code"] = self.project.code if self.project else None
            result["lines"] = [line.to_dict() for line in self.lines]
        return result


class OutwardLine(BaseModel):
    """Outward line: issued quantity for one material."""

    __tablename__ = "outward_lines"

    record_id = Column(
        Integer, ForeignKey("outward_records.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    issue_qty = Column(Float, nullable=False, default=0.0)

    record = relationship("OutwardRecord", back_populates="lines")
    material = relationship("Material")

    __table_args__ = (
        Index("idx_outward_line_record", "record_id"),
        Index("idx_outward_line_material", "material_id"),
        CheckConstraint("issue_qty >= 0", name="ck_outward_line_issue_non_negative"),
    )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["material_code"] = self.material.code if self.material else None
        return result
