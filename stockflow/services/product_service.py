"""
Purpose: The central service for managing the product catalogue.

This is a class which provides standard CRUD operations for:
- Products, created together with their variations, variation attributes and BOM lines
- Lookups and updates addressed by either a product id or a variation SKU
- Variation attributes, raw materials and bill-of-materials lines on their own

Reads that return a product always eager-load variations, attributes and BOM
lines (with their raw material), since lazy loading is not available on an
AsyncSession.
"""

import logging
from typing import Optional, Dict, Any, List

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stockflow.core.exceptions import NotFoundError, ConflictError
from stockflow.core.utils import paginate_query, utcnow
from stockflow.models.product import Product, ProductVariation, VariationAttribute, RawMaterial, BOM
from stockflow.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductOrVariationUpdate,
    VariationAttributeCreate,
    VariationAttributeUpdate,
    RawMaterialCreate,
    RawMaterialUpdate,
    BOMCreate,
    BOMUpdate,
)

logger = logging.getLogger(__name__)


def product_detail_options():
    return [
        selectinload(Product.variations).options(
            selectinload(ProductVariation.attributes),
            selectinload(ProductVariation.bom).selectinload(BOM.raw_material),
        )
    ]


def apply_changes(instance, changes: Dict[str, Any]) -> None:
    """Copy sent fields onto a model; null clears nullable columns and is ignored elsewhere."""
    columns = instance.__table__.columns
    for key, value in changes.items():
        if key not in columns:
            continue
        if value is None and not columns[key].nullable:
            continue
        setattr(instance, key, value)


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, conflict_message: str = "Duplicate or conflicting record") -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"{conflict_message}: {e.orig}")
            raise ConflictError(conflict_message)
        except Exception:
            await self.db.rollback()
            raise

    async def _require_raw_materials(self, raw_material_ids: set) -> None:
        if not raw_material_ids:
            return
        result = await self.db.execute(select(RawMaterial.id).where(RawMaterial.id.in_(raw_material_ids)))
        missing = raw_material_ids - set(result.scalars().all())
        if missing:
            raise NotFoundError(f"Raw Material not found: {', '.join(sorted(missing))}")

    async def _get_variation(self, variation_id: str) -> ProductVariation:
        variation = await self.db.get(ProductVariation, variation_id)
        if variation is None:
            raise NotFoundError(f"Variation {variation_id} not found")
        return variation

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    async def create_product(self, product_data: ProductCreate) -> Product:
        """
        Create a product together with its variations, attributes and BOM lines.

        Raises:
            ConflictError: If a SKU is repeated or already exists
            NotFoundError: If a BOM line references an unknown raw material
        """
        variations = product_data.variations or []

        skus = [v.sku for v in variations]
        if len(skus) != len(set(skus)):
            raise ConflictError("Duplicate SKU in request")
        if skus:
            taken = await self.db.execute(select(ProductVariation.sku).where(ProductVariation.sku.in_(skus)))
            taken_skus = list(taken.scalars().all())
            if taken_skus:
                raise ConflictError(f"SKU already exists: {', '.join(taken_skus)}")

        await self._require_raw_materials(
            {line.raw_material_id for v in variations for line in (v.bom or [])}
        )

        product = Product(
            name=product_data.name,
            description=product_data.description,
            category=product_data.category,
            variations=[
                ProductVariation(
                    sku=v.sku,
                    price=v.price,
                    stock=v.stock,
                    attributes=[VariationAttribute(name=a.name, value=a.value) for a in (v.attributes or [])],
                    bom=[
                        BOM(raw_material_id=line.raw_material_id, quantity_required=line.quantity_required)
                        for line in (v.bom or [])
                    ],
                )
                for v in variations
            ],
        )
        self.db.add(product)
        await self._commit("SKU already exists")

        logger.info(f"Created product {product.id} with {len(variations)} variation(s)")
        return await self.find_one(product.id)

    async def find_all(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        List products with filtering and pagination.

        Args:
            page: Page number (1-indexed)
            limit: Items per page
            search: Case-insensitive match on name, description or any variation SKU
            category: Exact category filter

        Returns:
            ``{"data": [...], "meta": {"page", "per_page", "total"}}``
        """
        query = select(Product).options(*product_detail_options())

        if search:
            query = query.where(
                or_(
                    Product.name.icontains(search, autoescape=True),
                    Product.description.icontains(search, autoescape=True),
                    Product.variations.any(ProductVariation.sku.icontains(search, autoescape=True)),
                )
            )

        if category:
            query = query.where(Product.category == category)

        query = query.order_by(Product.created_at.desc(), Product.id.desc())

        pagination_result = await paginate_query(query, self.db, page=page, page_size=limit)

        return {
            "data": pagination_result["items"],
            "meta": {
                "page": page,
                "per_page": limit,
                "total": pagination_result["total"],
            },
        }

    async def find_one(self, product_id: str) -> Product:
        query = (
            select(Product)
            .options(*product_detail_options())
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = (await self.db.execute(query)).scalar_one_or_none()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def find_by_id_or_sku(self, product_id_or_sku: str) -> Product:
        """Resolve a variation SKU first, then fall back to a product id."""
        product_id = await self.db.scalar(
            select(ProductVariation.product_id).where(ProductVariation.sku == product_id_or_sku)
        )
        return await self.find_one(product_id or product_id_or_sku)

    async def update_product(self, product_id: str, product_data: ProductUpdate) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        apply_changes(product, product_data.model_dump(exclude_unset=True))
        product.updated_at = utcnow()

        await self._commit()
        return product

    async def update_by_id_or_sku(self, product_id_or_sku: str, data: ProductOrVariationUpdate) -> bool:
        """
        Update a variation's price/stock when given a SKU, else a product's
        name/description/category when given a product id.
        """
        variation = await self.db.scalar(
            select(ProductVariation).where(ProductVariation.sku == product_id_or_sku)
        )
        if variation is not None:
            if data.price is not None:
                variation.price = data.price
            if data.stock is not None:
                variation.stock = data.stock
            variation.updated_at = utcnow()
            await self._commit()
            return True

        product = await self.db.get(Product, product_id_or_sku)
        if product is not None:
            for key in ("name", "description", "category"):
                value = getattr(data, key)
                if value is not None:
                    setattr(product, key, value)
            product.updated_at = utcnow()
            await self._commit()
            return True

        raise NotFoundError(f"No product or variation matches {product_id_or_sku}")

    async def remove(self, product_id: str) -> bool:
        """
        Delete a product and its variations.

        Raises:
            NotFoundError: If the product does not exist
            ConflictError: If orders still reference the product
        """
        product = await self.find_one(product_id)
        await self.db.delete(product)
        await self._commit("Product is referenced by existing orders")
        logger.info(f"Deleted product {product_id}")
        return True

    # ------------------------------------------------------------------
    # Variation attributes
    # ------------------------------------------------------------------
    async def create_variation_attribute(self, data: VariationAttributeCreate) -> VariationAttribute:
        await self._get_variation(data.variation_id)
        attribute = VariationAttribute(name=data.name, value=data.value, variation_id=data.variation_id)
        self.db.add(attribute)
        await self._commit()
        return attribute

    async def update_variation_attribute(self, attribute_id: str, data: VariationAttributeUpdate) -> VariationAttribute:
        attribute = await self.db.get(VariationAttribute, attribute_id)
        if attribute is None:
            raise NotFoundError(f"Variation attribute {attribute_id} not found")
        if data.name is not None:
            attribute.name = data.name
        if data.value is not None:
            attribute.value = data.value
        await self._commit()
        return attribute

    async def delete_variation_attribute(self, attribute_id: str) -> bool:
        attribute = await self.db.get(VariationAttribute, attribute_id)
        if attribute is None:
            raise NotFoundError(f"Variation attribute {attribute_id} not found")
        await self.db.delete(attribute)
        await self._commit()
        return True

    # ------------------------------------------------------------------
    # Raw materials
    # ------------------------------------------------------------------
    async def create_raw_material(self, data: RawMaterialCreate) -> RawMaterial:
        raw_material = RawMaterial(**data.model_dump(exclude_none=True))
        self.db.add(raw_material)
        await self._commit()
        return raw_material

    async def raw_material_list(self) -> List[RawMaterial]:
        result = await self.db.execute(select(RawMaterial).order_by(RawMaterial.name))
        return list(result.scalars().all())

    async def raw_material(self, raw_material_id: str) -> RawMaterial:
        raw_material = await self.db.get(RawMaterial, raw_material_id)
        if raw_material is None:
            raise NotFoundError("Raw Material not found")
        return raw_material

    async def update_raw_material(self, raw_material_id: str, data: RawMaterialUpdate) -> RawMaterial:
        raw_material = await self.raw_material(raw_material_id)
        apply_changes(raw_material, data.model_dump(exclude_unset=True))
        raw_material.updated_at = utcnow()
        await self._commit()
        return raw_material

    # ------------------------------------------------------------------
    # Bill of materials
    # ------------------------------------------------------------------
    async def create_bom(self, data: BOMCreate) -> BOM:
        await self._get_variation(data.variation_id)
        await self._require_raw_materials({data.raw_material_id})
        line = BOM(
            variation_id=data.variation_id,
            raw_material_id=data.raw_material_id,
            quantity_required=data.quantity_required,
        )
        self.db.add(line)
        await self._commit()
        return line

    async def bom_list(self) -> List[BOM]:
        result = await self.db.execute(select(BOM))
        return list(result.scalars().all())

    async def update_bom(self, bom_id: str, data: BOMUpdate) -> BOM:
        line = await self.db.get(BOM, bom_id)
        if line is None:
            raise NotFoundError(f"BOM line {bom_id} not found")
        if data.raw_material_id is not None and data.raw_material_id != line.raw_material_id:
            await self._require_raw_materials({data.raw_material_id})
            line.raw_material_id = data.raw_material_id
        if data.quantity_required is not None:
            line.quantity_required = data.quantity_required
        await self._commit()
        return line
