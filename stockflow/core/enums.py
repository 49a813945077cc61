"""
Shared enums and constants used across the application.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle values used in both models and schemas"""
    PLACED = "PLACED"
    PAID = "PAID"
    DISPATCHED = "DISPATCHED"


# Forward-only lifecycle. DISPATCHED is terminal.
ORDER_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.PAID},
    OrderStatus.PAID: {OrderStatus.DISPATCHED},
    OrderStatus.DISPATCHED: set(),
}


class Role(str, Enum):
    ADMIN = "ADMIN"
    SELLER = "SELLER"
