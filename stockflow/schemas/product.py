"""
Schemas for product-related API endpoints: products, variations, variation
attributes, raw materials and bill-of-materials lines.
"""

from typing import Optional, List

from pydantic import Field, field_validator

from stockflow.schemas.base import BaseSchema, TimestampedSchema


class PriceValidationMixin(BaseSchema):
    """Shared validation for price-like fields."""

    @field_validator('price', mode='before', check_fields=False)
    @classmethod
    def validate_price(cls, v):
        if v is None:
            return None
        try:
            price = float(v)
        except (ValueError, TypeError):
            raise ValueError(f'Price must be a valid number, got: {v}')
        if price < 0:
            raise ValueError('Price cannot be negative')
        return price


# --- Variation attributes ---

class VariationAttributeInput(BaseSchema):
    name: str = Field(min_length=1)
    value: str

class VariationAttributeCreate(VariationAttributeInput):
    variation_id: str

class VariationAttributeUpdate(BaseSchema):
    name: Optional[str] = None
    value: Optional[str] = None

class VariationAttributeRead(BaseSchema):
    id: str
    name: str
    value: str
    variation_id: str


# --- Raw materials ---

class RawMaterialCreate(BaseSchema):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    unit: str = Field(min_length=1)
    quantity: Optional[float] = Field(default=0, ge=0)
    supplier: Optional[str] = None

class RawMaterialUpdate(BaseSchema):
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None

class RawMaterialRead(TimestampedSchema):
    id: str
    name: str
    description: Optional[str] = None
    unit: str
    quantity: float
    supplier: Optional[str] = None


# --- Bill of materials ---

class BOMInput(BaseSchema):
    raw_material_id: str
    quantity_required: float = Field(gt=0)

class BOMCreate(BOMInput):
    variation_id: str

class BOMUpdate(BaseSchema):
    raw_material_id: Optional[str] = None
    quantity_required: Optional[float] = Field(default=None, gt=0)

class BOMRead(BaseSchema):
    id: str
    variation_id: str
    raw_material_id: str
    quantity_required: float

class BOMDetail(BOMRead):
    raw_material: Optional[RawMaterialRead] = None


# --- Variations ---

class VariationCreate(PriceValidationMixin):
    sku: str = Field(min_length=1)
    price: float
    stock: int = Field(default=0, ge=0)
    attributes: Optional[List[VariationAttributeInput]] = None
    bom: Optional[List[BOMInput]] = None

class VariationRead(TimestampedSchema):
    id: str
    sku: str
    price: float
    stock: int
    product_id: str
    attributes: List[VariationAttributeRead] = []
    bom: List[BOMDetail] = []


# --- Products ---

class ProductCreate(BaseSchema):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    variations: Optional[List[VariationCreate]] = None

class ProductUpdate(BaseSchema):
    """All fields optional; only the ones sent are changed."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None

class ProductOrVariationUpdate(PriceValidationMixin):
    """Body for update-by-id-or-SKU: product fields or variation price/stock."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = Field(default=None, ge=0)

class ProductRead(TimestampedSchema):
    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None

class ProductDetail(ProductRead):
    variations: List[VariationRead] = []


class PaginationMeta(BaseSchema):
    page: int
    per_page: int
    total: int

class ProductPage(BaseSchema):
    data: List[ProductDetail]
    meta: PaginationMeta
