"""
Project model for construction/industrial sites that consume material.

Projects own their allocation caps and are the scope for every movement
record. User and team management live outside the ledger.
"""

from sqlalchemy import Column, String, Text, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Project(BaseModel):
    """
    Project model.

    Attributes:
        code: Short unique project code (e.g., "P1", "HYD-METRO")
        name: Project display name
        location: Optional site/location description
        notes: Optional notes

    Relationships:
        allocations: One-to-Many with Allocation (cascade delete)
    """

    __tablename__ = "projects"

    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    location = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)

    allocations = relationship(
        "Allocation",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_project_code", "code"),
        Index("idx_project_name", "name"),
    )

    def __repr__(self) -> str:
        return f"Project(id={self.id}, code='{self.code}')"
