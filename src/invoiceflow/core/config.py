"""Configuration management for invoiceflow.

Settings are read from the environment (``INVOICEFLOW_`` prefix) or a
``.env`` file, validated by Pydantic Settings.
"""

from __future__ import annotations

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InvoicingConfig(BaseSettings):
    """Main configuration for invoiceflow.

    Example:
        ```python
        # INVOICEFLOW_DATABASE_URL=postgresql+asyncpg://...
        # INVOICEFLOW_INVOICE_NUMBER_PREFIX=INV-
        config = InvoicingConfig()

        # Or programmatically
        config = InvoicingConfig(
            database_url="sqlite+aiosqlite:///./invoices.db",
            default_currency="EUR",
        )
        ```

    Attributes:
        database_url: Async SQLAlchemy URL of the invoice database
        invoice_number_prefix: Literal prefix of every invoice number
        invoice_number_width: Minimum zero-padded width of the counter
        default_currency: ISO 4217 code stamped on new invoices
        default_due_days: Days between issue date and default due date
    """

    model_config = SettingsConfigDict(
        env_prefix="INVOICEFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __str__(self) -> str:
        """String representation with masked credentials."""
        result = super().__repr__()
        return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", result)

    ##########################
    # Database Configuration #
    ##########################

    database_url: str = Field(
        ...,
        description="Invoice database connection URL (required)",
    )

    database_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Database connection pool size",
    )

    database_max_overflow: int = Field(
        default=20,
        ge=0,
        le=200,
        description="Max overflow connections beyond pool size",
    )

    database_echo: bool = Field(
        default=False,
        description="Enable SQL query logging (use only in development)",
    )

    #####################
    # Invoice Numbering #
    #####################

    invoice_number_prefix: str = Field(
        default="INV-",
        max_length=20,
        description="Prefix prepended to the zero-padded counter",
    )

    invoice_number_width: int = Field(
        default=4,
        ge=1,
        le=12,
        description="Minimum digits of the counter; longer counters are never truncated",
    )

    ####################
    # Invoice Defaults #
    ####################

    default_currency: str = Field(
        default="INR",
        description="Currency code for new invoices",
    )

    default_due_days: int = Field(
        default=30,
        ge=0,
        le=3650,
        description="Days added to the issue date when no due date is given",
    )

    recent_invoices_limit: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of recent invoices on the dashboard",
    )

    ############
    # HTTP API #
    ############

    organization_header_name: str = Field(
        default="X-Organization-ID",
        description="Header carrying the caller's organization id",
    )

    ##############
    # Validators #
    ##############

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL and warn about sync drivers.

        Args:
            v: Database URL to validate

        Returns:
            Normalised URL string
        """
        import warnings

        url_str = str(v).rstrip("/")
        if not url_str:
            raise ValueError("database_url must not be empty")

        _SYNC_ONLY_SCHEMES = ("postgresql://", "sqlite://", "mysql://")
        if any(url_str.startswith(s) for s in _SYNC_ONLY_SCHEMES):
            warnings.warn(
                "Database URL uses a synchronous driver scheme. "
                "Use an async driver instead (e.g. postgresql+asyncpg, sqlite+aiosqlite).",
                stacklevel=4,
            )
        return url_str

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate currency is a three-letter upper-case code.

        Raises:
            ValueError: If the code is malformed
        """
        if not re.fullmatch(r"[A-Z]{3}", v):
            raise ValueError("default_currency must be a three-letter upper-case code")
        return v

    @field_validator("organization_header_name")
    @classmethod
    def validate_header_name(cls, v: str) -> str:
        if not re.fullmatch(r"[A-Za-z0-9\-]+", v):
            raise ValueError("organization_header_name must be a valid HTTP header name")
        return v

    def model_post_init(self, __context: object) -> None:
        """Run cross-field validation after model construction."""
        self.validate_configuration()

    def validate_configuration(self) -> None:
        """Validate complete configuration consistency.

        Raises:
            ValueError: If configuration is inconsistent
        """
        if any(ch.isdigit() for ch in self.invoice_number_prefix[-1:]):
            # A trailing digit would run into the counter ("A1" + "0001").
            raise ValueError("invoice_number_prefix must not end with a digit")


__all__ = ["InvoicingConfig"]
