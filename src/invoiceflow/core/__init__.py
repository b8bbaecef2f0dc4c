"""Core invoicing components: configuration, domain types and exceptions."""

from invoiceflow.core.config import InvoicingConfig
from invoiceflow.core.exceptions import *  # noqa: F403
from invoiceflow.core.exceptions import __all__ as exceptions__all__
from invoiceflow.core.types import *  # noqa: F403
from invoiceflow.core.types import __all__ as types__all__

__all__ = ["InvoicingConfig"]

__all__ += exceptions__all__
__all__ += types__all__
