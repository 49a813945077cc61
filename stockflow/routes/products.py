"""
API routes for the product catalogue: products with their variations, variation
attributes, raw materials and bill-of-materials lines.

Static sub-paths are declared before ``/{product_id}`` so they are not captured
as product ids.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from stockflow.core.exceptions import NotFoundError, ConflictError
from stockflow.dependencies import get_product_service
from stockflow.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductOrVariationUpdate,
    ProductRead,
    ProductDetail,
    ProductPage,
    PaginationMeta,
    VariationAttributeCreate,
    VariationAttributeUpdate,
    VariationAttributeRead,
    RawMaterialCreate,
    RawMaterialUpdate,
    RawMaterialRead,
    BOMCreate,
    BOMUpdate,
    BOMRead,
)
from stockflow.services.product_service import ProductService

router = APIRouter(prefix="/v1/products", tags=["products"])


@router.get("", response_model=ProductPage)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = None,
    product_service: ProductService = Depends(get_product_service)
):
    """
    List products with filtering and pagination.
    """
    result = await product_service.find_all(page=page, limit=limit, search=search, category=category)
    return ProductPage(
        data=[ProductDetail.from_orm_model(product) for product in result["data"]],
        meta=PaginationMeta(**result["meta"]),
    )


@router.post("", response_model=ProductDetail, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    product_service: ProductService = Depends(get_product_service)
):
    """
    Create a new product with its variations.
    """
    try:
        return await product_service.create_product(product_data)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Variation attributes ---

@router.post("/variation-attributes", response_model=VariationAttributeRead, status_code=status.HTTP_201_CREATED)
async def create_variation_attribute(
    data: VariationAttributeCreate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.create_variation_attribute(data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/variation-attributes/{attribute_id}", response_model=VariationAttributeRead)
async def update_variation_attribute(
    attribute_id: str,
    data: VariationAttributeUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.update_variation_attribute(attribute_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/variation-attributes/{attribute_id}", response_model=bool)
async def delete_variation_attribute(
    attribute_id: str,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.delete_variation_attribute(attribute_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Raw materials ---

@router.post("/raw-material", response_model=RawMaterialRead, status_code=status.HTTP_201_CREATED)
async def create_raw_material(
    data: RawMaterialCreate,
    product_service: ProductService = Depends(get_product_service)
):
    return await product_service.create_raw_material(data)


@router.get("/raw-material", response_model=List[RawMaterialRead])
async def list_raw_materials(product_service: ProductService = Depends(get_product_service)):
    return await product_service.raw_material_list()


@router.get("/raw-material/{raw_material_id}", response_model=RawMaterialRead)
async def get_raw_material(
    raw_material_id: str,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.raw_material(raw_material_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/raw-material/{raw_material_id}", response_model=RawMaterialRead)
async def update_raw_material(
    raw_material_id: str,
    data: RawMaterialUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.update_raw_material(raw_material_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Bill of materials ---

@router.post("/bom", response_model=BOMRead, status_code=status.HTTP_201_CREATED)
async def create_bom(
    data: BOMCreate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.create_bom(data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/bom", response_model=List[BOMRead])
async def list_bom(product_service: ProductService = Depends(get_product_service)):
    return await product_service.bom_list()


@router.put("/bom/{bom_id}", response_model=BOMRead)
async def update_bom(
    bom_id: str,
    data: BOMUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        return await product_service.update_bom(bom_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Lookups by product id or SKU ---

@router.get("/byIdOrSku/{value}", response_model=ProductDetail)
async def get_by_id_or_sku(
    value: str,
    product_service: ProductService = Depends(get_product_service)
):
    """
    Get a product by one of its variation SKUs, or by its id.
    """
    try:
        return await product_service.find_by_id_or_sku(value)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/updateByIdOrSku/{value}", response_model=bool)
async def update_by_id_or_sku(
    value: str,
    data: ProductOrVariationUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    """
    A SKU updates that variation's price and stock; a product id updates the
    product's name, description and category.
    """
    try:
        return await product_service.update_by_id_or_sku(value, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Single product ---

@router.get("/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: str,
    product_service: ProductService = Depends(get_product_service)
):
    """
    Get a product by ID.
    """
    try:
        return await product_service.find_one(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    product_service: ProductService = Depends(get_product_service)
):
    """
    Update a product.
    """
    try:
        return await product_service.update_product(product_id, product_data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{product_id}", response_model=bool)
async def delete_product(
    product_id: str,
    product_service: ProductService = Depends(get_product_service)
):
    """
    Delete a product.
    """
    try:
        return await product_service.remove(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
