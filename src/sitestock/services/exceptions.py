"""Service layer exception classes for SiteStock.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the ledger.

Exception Hierarchy:
    ServiceError (base)
    ├── NotFoundError
    │   ├── ProjectNotFound
    │   ├── MaterialNotFound
    │   ├── InwardRecordNotFound
    │   ├── OutwardRecordNotFound
    │   └── TransferRecordNotFound
    ├── ValidationError (bad request)
    │   ├── InvalidQuantityError
    │   ├── NotAllocatedError
    │   ├── AllocationExceededError
    │   ├── InsufficientBalanceError
    │   └── RecordLockedError
    ├── ForbiddenError
    ├── ConflictError
    │   ├── DuplicateCodeError
    │   └── MaterialInUse
    └── DatabaseError
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions inherit from this class.
    """

    pass


# =============================================================================
# Not Found
# =============================================================================


class NotFoundError(ServiceError):
    """Raised when a referenced entity cannot be resolved."""

    pass


class ProjectNotFound(NotFoundError):
    """Raised when a project cannot be found by ID.

    Example:
        >>> raise ProjectNotFound(12)
        ProjectNotFound: Project with ID 12 not found
    """

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(f"Project with ID {project_id} not found")


class MaterialNotFound(NotFoundError):
    """Raised when a material cannot be found by ID."""

    def __init__(self, material_id):
        self.material_id = material_id
        super().__init__(f"Material with ID {material_id} not found")


class InwardRecordNotFound(NotFoundError):
    """Raised when an inward record cannot be found by ID."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Inward record with ID {record_id} not found")


class OutwardRecordNotFound(NotFoundError):
    """Raised when an outward record cannot be found by ID."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Outward record with ID {record_id} not found")


class TransferRecordNotFound(NotFoundError):
    """Raised when a transfer record cannot be found by ID."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Transfer record with ID {record_id} not found")


# =============================================================================
# Validation (bad request)
# =============================================================================


class ValidationError(ServiceError):
    """Raised when request data or a ledger rule check fails.

    Args:
        errors: List of human readable messages

    Example:
        >>> raise ValidationError(["At least one inward line is required"])
        ValidationError: Validation failed: At least one inward line is required
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidQuantityError(ValidationError):
    """Raised when a quantity is negative or not a number."""

    def __init__(self, field_name: str, value):
        self.field_name = field_name
        self.value = value
        super().__init__([f"{field_name} must be zero or greater (got {value})"])


class NotAllocatedError(ValidationError):
    """Raised when a material has no allocation row for a project."""

    def __init__(self, material_code: str, project_code: str):
        self.material_code = material_code
        self.project_code = project_code
        super().__init__(
            [f"Material {material_code} is not allocated to project {project_code}"]
        )


class AllocationExceededError(ValidationError):
    """Raised when a movement would push a project total past its allocation.

    Args:
        action: "Ordering", "Receiving" or "Issuing"
        material_code: Offending material
        allocation: The cap
        requested_total: Total the movement would reach
    """

    def __init__(self, action: str, material_code: str, allocation: float, requested_total: float):
        self.action = action
        self.material_code = material_code
        self.allocation = allocation
        self.requested_total = requested_total
        super().__init__(
            [
                f"{action} {material_code} exceeds the allocated requirement "
                f"({allocation:g}); requested total would be {requested_total:g}"
            ]
        )


class InsufficientBalanceError(ValidationError):
    """Raised when project balance or global stock cannot cover an issue."""

    def __init__(self, message: str, material_code: str, available: float):
        self.material_code = material_code
        self.available = available
        super().__init__([message])


class RecordLockedError(ValidationError):
    """Raised when attempting to change lines of a validated record."""

    def __init__(self, kind: str, code: str):
        self.kind = kind
        self.code = code
        super().__init__([f"{kind.capitalize()} record {code} is validated and cannot be edited"])


# =============================================================================
# Access / conflicts / storage
# =============================================================================


class ForbiddenError(ServiceError):
    """Raised when the acting user lacks access to a project."""

    def __init__(self, message: str = "You do not have access to this project"):
        super().__init__(message)


class ConflictError(ServiceError):
    """Raised when a write would violate a uniqueness rule."""

    pass


class DuplicateCodeError(ConflictError):
    """Raised when a code is already in use.

    Example:
        >>> raise DuplicateCodeError("inward", "I0001")
        DuplicateCodeError: Inward code 'I0001' already exists
    """

    def __init__(self, kind: str, code: str):
        self.kind = kind
        self.code = code
        super().__init__(f"{kind.capitalize()} code '{code}' already exists")


class MaterialInUse(ConflictError):
    """Raised when deleting a material that allocations or movements reference."""

    def __init__(self, material_code: str, dependencies: dict):
        self.material_code = material_code
        self.dependencies = dependencies

        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Cannot delete material {material_code}: used in {details}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails unexpectedly."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
