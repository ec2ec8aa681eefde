"""
Failure classification for the shop API.

Every failure a client can see is raised as a KnownError subclass and
serialized at the application boundary as:

    {"error": "<human readable message>", "kind": "<failure kind>"}

The message text is what the UI displays. The kind is a stable,
machine-readable discriminator so clients never parse messages.

Anything that is not a KnownError is an unknown failure and is reported
with a fixed message and status 500.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"

    # Catalog is not set up to support the operation
    CONFIGURATION_ERROR = "configuration_error"

    # Ledger constraints
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    INSUFFICIENT_FUNDS = "insufficient_funds"

    # Unknown
    UNKNOWN = "unknown"


UNKNOWN_FAILURE_MESSAGE = "Something went wrong. Please try again."


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    model_config = ConfigDict(extra="allow")

    error: str = Field(..., description="User-appropriate explanation of what went wrong")
    kind: FailureKind = Field(..., description="Classification of the failure")


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    `extra` fields are merged into the error envelope.
    """

    kind: FailureKind = FailureKind.UNKNOWN
    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse."""
        return ErrorResponse(error=self.message, kind=self.kind, **self.extra)


class ValidationError(KnownError):
    """Missing or malformed request input."""

    kind = FailureKind.INVALID_INPUT
    status_code = 400


class NotFoundError(KnownError):
    """A referenced product, product set or card does not exist."""

    kind = FailureKind.NOT_FOUND
    status_code = 404


class ConflictError(KnownError):
    """A create would collide with an existing record."""

    kind = FailureKind.CONFLICT
    status_code = 409


class ConfigurationError(KnownError):
    """
    The catalog cannot support the requested operation.

    Example: a product with no base set, or a base set too small
    to fill a pack.
    """

    kind = FailureKind.CONFIGURATION_ERROR
    status_code = 500


class InsufficientInventoryError(KnownError):
    """The user has no sealed packs of the product."""

    kind = FailureKind.INSUFFICIENT_INVENTORY
    status_code = 500

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("You do not own any packs of this product.")


class InsufficientFundsError(KnownError):
    """The user's balance does not cover a purchase."""

    kind = FailureKind.INSUFFICIENT_FUNDS
    status_code = 400

    def __init__(self, balance_cents: int, cost_cents: int):
        self.balance_cents = balance_cents
        self.cost_cents = cost_cents
        super().__init__(
            "Insufficient funds",
            extra={"balanceCents": balance_cents, "costCents": cost_cents},
        )


class ProductNotFoundError(NotFoundError):
    """Raised when a product id does not resolve."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")
