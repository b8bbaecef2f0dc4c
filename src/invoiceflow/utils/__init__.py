"""Utility functions and helpers."""

from invoiceflow.utils.db_compat import DbDialect, detect_dialect
from invoiceflow.utils.validation import (
    slugify,
    validate_currency,
    validate_email,
    validate_slug,
)

__all__ = [
    "DbDialect",
    "detect_dialect",
    "slugify",
    "validate_currency",
    "validate_email",
    "validate_slug",
]
