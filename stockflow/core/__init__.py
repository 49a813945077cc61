"""
Core module exports.
"""
from .enums import (
    OrderStatus,
    ORDER_TRANSITIONS,
    Role
)

from .exceptions import (
    BaseServiceError,
    NotFoundError,
    InsufficientStockError,
    InvalidTransitionError,
    ConflictError,
    AuthenticationError,
    AuthorizationError
)

from .utils import (
    paginate_query
)
