"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Stock ledger errors additionally carry a machine-readable ``code`` and a
``details`` mapping, plus the HTTP status an outer API would answer with.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


# ---------------------------------------------------------------------------
# Stock ledger errors
# ---------------------------------------------------------------------------


class StockLedgerError(DomainException):
    """Base class for every failure raised by the stock ledger."""

    code = "STOCK_LEDGER_ERROR"
    http_status = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class InvalidProductId(StockLedgerError, ValidationError):
    code = "INVALID_PRODUCT_ID"
    http_status = 400


class MissingVariantSize(StockLedgerError, ValidationError):
    code = "MISSING_VARIANT_SIZE"
    http_status = 400


class InvalidQuantity(StockLedgerError, ValidationError):
    code = "INVALID_QUANTITY"
    http_status = 400


class ProductNotFound(StockLedgerError, EntityNotFoundError):
    code = "PRODUCT_NOT_FOUND"
    http_status = 404


class VariantColorNotFound(StockLedgerError, EntityNotFoundError):
    code = "VARIANT_COLOR_NOT_FOUND"
    http_status = 404


class VariantSizeNotFound(StockLedgerError, EntityNotFoundError):
    code = "VARIANT_SIZE_NOT_FOUND"
    http_status = 404


class InsufficientStock(StockLedgerError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409

    @property
    def requested(self) -> int:
        return self.details["requested"]

    @property
    def available(self) -> int:
        return self.details["available"]


class PersistenceFailure(StockLedgerError):
    """The product store failed to load or write rows.

    Writes go through an atomic batch, so when this is raised from a
    commit no row of that batch was written.
    """

    code = "PERSISTENCE_FAILURE"
    http_status = 503


class ConcurrentModificationError(StockLedgerError):
    """A product's revision changed between read and write."""

    code = "CONCURRENT_MODIFICATION"
    http_status = 409
