"""
Constants for JSONDB_ENGINE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# PERSISTENCE CONSTANTS
# ============================================================================

DEFAULT_DATA_DIR: Final[str] = "data"
"""Default directory holding one backing file per collection."""

BACKING_FILE_SUFFIX: Final[str] = ".json"
"""Suffix of collection backing files (data/<collection>.json)."""

DEFAULT_INDENT_SPACE: Final[int] = 2
"""Default JSON indentation used when flushing a collection."""

MAX_INDENT_SPACE: Final[int] = 10
"""Largest indentation accepted in connect options."""

DEFAULT_WRITE_SYNC: Final[bool] = True
"""Whether mutations block on the disk write by default."""

FILE_ENCODING: Final[str] = "utf-8"
"""Encoding of backing files."""

# ============================================================================
# VALIDATION CONSTANTS
# ============================================================================

MAX_COLLECTION_NAME_LENGTH: Final[int] = 255
"""Maximum length for collection names."""

MIN_COLLECTION_NAME_LENGTH: Final[int] = 1
"""Minimum length for collection names."""

COLLECTION_NAME_PATTERN: Final[str] = r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$"
"""Collection names double as file names, so no separators or leading dot."""

# ============================================================================
# UPDATE OPERATOR CONSTANTS
# ============================================================================

OPERATOR_MARKER: Final[str] = "$"
"""Prefix that distinguishes an operator directive from a literal field."""

NUMERIC_OPERATORS: Final[tuple[str, ...]] = ("$inc", "$dec")
"""Directives that add to or subtract from numeric fields."""

ARRAY_OPERATORS: Final[tuple[str, ...]] = ("$push", "$pop")
"""Directives that append to or remove from array fields."""

UPDATE_OPERATORS: Final[tuple[str, ...]] = NUMERIC_OPERATORS + ARRAY_OPERATORS
"""All recognized update directives, in application order."""

# ============================================================================
# ERROR CODES
# ============================================================================

ERROR_CODE_INVALID_DATA_TYPE: Final[int] = 611
ERROR_CODE_NOT_FOUND: Final[int] = 612
ERROR_CODE_CONNECTION: Final[int] = 613
ERROR_CODE_INVALID_SCHEMA: Final[int] = 614
ERROR_CODE_BAD_REQUEST: Final[int] = 615
ERROR_CODE_NO_CONNECTION: Final[int] = 616
ERROR_CODE_PERSISTENCE: Final[int] = 617
ERROR_CODE_CONFIGURATION: Final[int] = 618

# ============================================================================
# METRICS CONSTANTS
# ============================================================================

MAX_TRACKED_METRICS: Final[int] = 10000
"""Maximum number of distinct metric keys kept before LRU eviction."""
