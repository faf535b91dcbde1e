"""
Constants for the SiteStock application.

This module defines system-wide constants including:
- Application metadata
- Movement code prefixes
- Inward types
- Field length limits
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "SiteStock"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "sitestock.db"

ENV_VAR_ENVIRONMENT = "SITESTOCK_ENV"
ENV_VAR_DATABASE_URL = "SITESTOCK_DATABASE_URL"

# ============================================================================
# Movement Codes
# ============================================================================

MOVEMENT_INWARD = "inward"
MOVEMENT_OUTWARD = "outward"
MOVEMENT_TRANSFER = "transfer"

CODE_PREFIXES: Dict[str, str] = {
    MOVEMENT_INWARD: "I",
    MOVEMENT_OUTWARD: "O",
    MOVEMENT_TRANSFER: "T",
}

# Sequence part of generated codes is zero padded to this width (I0001)
CODE_SEQUENCE_WIDTH = 4

# ============================================================================
# Inward Types
# ============================================================================

INWARD_TYPE_SUPPLY = "SUPPLY"
INWARD_TYPES: List[str] = [INWARD_TYPE_SUPPLY]

# ============================================================================
# Quantities
# ============================================================================

# Cap and balance checks allow this much float noise (0.1 + 0.2 vs 0.3)
QUANTITY_TOLERANCE = 1e-6

# ============================================================================
# Field Limits
# ============================================================================

MAX_CODE_LENGTH = 50
MAX_NAME_LENGTH = 200
MAX_UNIT_LENGTH = 30
MAX_CATEGORY_LENGTH = 100
MAX_SITE_LENGTH = 200
MAX_REFERENCE_LENGTH = 100

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "{field} is required"
ERROR_INVALID_NON_NEGATIVE = "{field} must be zero or greater"
ERROR_INVALID_NUMBER = "{field} must be a valid number"
ERROR_TOO_LONG = "{field} must be {max_length} characters or less"
ERROR_INVALID_DATE = "Invalid date format. Please use YYYY-MM-DD."
