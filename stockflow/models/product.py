"""
Models for the product catalogue.

A Product is the sellable item; each ProductVariation is a concrete SKU with its
own price and stock level. Variations carry free-form attributes (size, colour)
and a bill of materials listing the raw materials needed to make one unit.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from stockflow.database import Base
from stockflow.core.utils import utcnow, new_uuid


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    variations = relationship(
        "ProductVariation",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariation.created_at",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name})>"


class ProductVariation(Base):
    __tablename__ = "product_variations"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_variations_stock_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    sku = Column(String, unique=True, nullable=False, index=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("Product", back_populates="variations")
    attributes = relationship("VariationAttribute", back_populates="variation", cascade="all, delete-orphan")
    bom = relationship("BOM", back_populates="variation", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<ProductVariation(sku={self.sku}, stock={self.stock})>"


class VariationAttribute(Base):
    __tablename__ = "variation_attributes"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    value = Column(String, nullable=False)
    variation_id = Column(String(36), ForeignKey("product_variations.id", ondelete="CASCADE"), nullable=False, index=True)

    variation = relationship("ProductVariation", back_populates="attributes")


class RawMaterial(Base):
    __tablename__ = "raw_materials"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    unit = Column(String, nullable=False)
    quantity = Column(Float, nullable=False, default=0)
    supplier = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    bom_lines = relationship("BOM", back_populates="raw_material")


class BOM(Base):
    """One bill-of-materials line: raw material quantity needed per unit of a variation."""
    __tablename__ = "bom"

    id = Column(String(36), primary_key=True, default=new_uuid)
    variation_id = Column(String(36), ForeignKey("product_variations.id", ondelete="CASCADE"), nullable=False, index=True)
    raw_material_id = Column(String(36), ForeignKey("raw_materials.id"), nullable=False, index=True)
    quantity_required = Column(Float, nullable=False)

    variation = relationship("ProductVariation", back_populates="bom")
    raw_material = relationship("RawMaterial", back_populates="bom_lines")
