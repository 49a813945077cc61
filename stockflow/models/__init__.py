from .product import Product, ProductVariation, VariationAttribute, RawMaterial, BOM
from .order import Order, OrderItem
from .webhook import WebhookSubscription
from .user import User, RefreshToken

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Product',
    'ProductVariation',
    'VariationAttribute',
    'RawMaterial',
    'BOM',
    'Order',
    'OrderItem',
    'WebhookSubscription',
    'User',
    'RefreshToken',
]
