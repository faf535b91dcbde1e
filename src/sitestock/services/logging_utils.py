"""Service layer logging utilities.

Provides structured logging functions for service operations, giving
ledger operations a consistent log format and context.

Usage:
    from sitestock.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="register_inward",
        outcome="success",
        project_id=3,
        code="I0007",
    )

    log_operation(
        logger,
        operation="register_outward",
        outcome="allocation_exceeded",
        level=logging.WARNING,
        project_id=3,
        material_code="CEM-50",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger under the 'sitestock.services' prefix.

    Example:
        >>> logger = get_service_logger("sitestock.services.inventory_service")
        >>> logger.name
        'sitestock.services.inventory_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"sitestock.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "register_outward")
        outcome: Outcome description (e.g., "success", "no_balance")
        level: Log level (default: INFO)
        **context: Additional context fields (project_id, material_code, ...)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
