"""Validation utilities for organization and customer data."""
from __future__ import annotations

import re

_SLUG_RE = re.compile(r"^[a-z][a-z0-9\-]{1,61}[a-z0-9]$")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

_MAX_INPUT = 512  # hard cap before regex to prevent ReDoS on huge inputs


def validate_slug(slug: str) -> bool:
    """Validate an organization slug: lowercase, letters/digits/hyphens, 3-63 chars."""
    if not slug or not isinstance(slug, str):
        return False
    if len(slug) > _MAX_INPUT:
        return False
    return bool(_SLUG_RE.match(slug))


def validate_email(email: str) -> bool:
    """Return True if email has a valid format."""
    if not email or not isinstance(email, str):
        return False
    if len(email) > _MAX_INPUT:
        return False
    return bool(_EMAIL_RE.match(email))


def validate_currency(code: str) -> bool:
    """Return True for a three-letter upper-case ISO 4217 style code."""
    if not code or not isinstance(code, str):
        return False
    return bool(_CURRENCY_RE.match(code))


def slugify(name: str) -> str:
    """Derive a slug candidate from a display name.

    >>> slugify("Acme Traders Pvt. Ltd.")
    'acme-traders-pvt-ltd'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    if slug and not slug[0].isalpha():
        slug = f"o-{slug}"
    return slug[:63].rstrip("-")


__all__ = [
    "slugify",
    "validate_currency",
    "validate_email",
    "validate_slug",
]
