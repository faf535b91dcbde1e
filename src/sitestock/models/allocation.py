"""
Allocation model: the bill-of-materials cap for one project and material.
"""

from sqlalchemy import (
    Column,
    Integer,
    Float,
    ForeignKey,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Allocation(BaseModel):
    """
    Allocation (BOM line) model.

    There is at most one row per (project, material). The quantity is the
    maximum a project may order, receive or issue in total for the material.
    A missing row means the material is not allocated to the project.

    Attributes:
        project_id: Foreign key to Project
        material_id: Foreign key to Material
        quantity: Required quantity cap (>= 0)
    """

    __tablename__ = "allocations"

    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Float, nullable=False, default=0.0)

    project = relationship("Project", back_populates="allocations")
    material = relationship("Material")

    __table_args__ = (
        UniqueConstraint("project_id", "material_id", name="uq_allocation_project_material"),
        Index("idx_allocation_project", "project_id"),
        Index("idx_allocation_material", "material_id"),
        CheckConstraint("quantity >= 0", name="ck_allocation_quantity_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"Allocation(id={self.id}, project_id={self.project_id}, "
            f"material_id={self.material_id}, quantity={self.quantity})"
        )
