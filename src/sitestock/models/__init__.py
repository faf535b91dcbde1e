"""
Database models package.

This package contains all SQLAlchemy ORM models for the ledger.
"""

from .base import Base, BaseModel
from .project import Project
from .material import Material
from .allocation import Allocation
from .inward_record import InwardRecord, InwardLine
from .outward_record import OutwardRecord, OutwardLine
from .transfer_record import TransferRecord, TransferLine

__all__ = [
    "Base",
    "BaseModel",
    # Catalog
    "Project",
    "Material",
    "Allocation",
    # Movement journal
    "InwardRecord",
    "InwardLine",
    "OutwardRecord",
    "OutwardLine",
    "TransferRecord",
    "TransferLine",
]
