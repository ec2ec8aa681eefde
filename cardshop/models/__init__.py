from cardshop.models.failure import (
    UNKNOWN_FAILURE_MESSAGE,
    ConfigurationError,
    ConflictError,
    ErrorResponse,
    FailureKind,
    InsufficientFundsError,
    InsufficientInventoryError,
    KnownError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from cardshop.models.pack import (
    InsertPool,
    PackResult,
    PackSelection,
    PoolCard,
    PulledCard,
)

__all__ = [
    "UNKNOWN_FAILURE_MESSAGE",
    "ConfigurationError",
    "ConflictError",
    "ErrorResponse",
    "FailureKind",
    "InsertPool",
    "InsufficientFundsError",
    "InsufficientInventoryError",
    "KnownError",
    "NotFoundError",
    "PackResult",
    "PackSelection",
    "PoolCard",
    "ProductNotFoundError",
    "PulledCard",
    "ValidationError",
]
