"""Services package - Business logic layer for SiteStock.

Architecture:
- Services: Stateless functions organized by domain
- Transactions: Managed via session_scope() context manager; every public
  function accepts an optional session for transaction sharing
- Exceptions: Consistent error handling via the ServiceError hierarchy

Service Modules:
- project_service: Project lookup and registration
- material_service: Material catalog CRUD
- material_ledger: Global per-material stock aggregates
- allocation_service: Per-project allocation caps (bill of materials)
- journal_service: Movement journal queries and derived totals
- code_generator: Human readable movement codes
- inventory_service: Inward, outward and transfer registration

Infrastructure:
- access_policy: Actor context and project access checks
- database: Session management and database utilities
- dto: Request and pagination data structures
- exceptions: Custom exception classes for service layer errors
- logging_utils: Structured operation logging
"""

from . import (
    database,
    exceptions,
    project_service,
    material_service,
    material_ledger,
    allocation_service,
    journal_service,
    code_generator,
    inventory_service,
)

__all__ = [
    "database",
    "exceptions",
    "project_service",
    "material_service",
    "material_ledger",
    "allocation_service",
    "journal_service",
    "code_generator",
    "inventory_service",
]
