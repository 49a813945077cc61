# tests/unit/services/test_product_service.py
import pytest
from sqlalchemy import select, func

from stockflow.core.exceptions import NotFoundError, ConflictError
from stockflow.models.product import Product, ProductVariation, VariationAttribute, BOM
from stockflow.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductOrVariationUpdate,
    VariationAttributeCreate,
    RawMaterialCreate,
    RawMaterialUpdate,
    BOMCreate,
    BOMUpdate,
)
from stockflow.services.product_service import ProductService


async def make_raw_material(service, name="Cotton"):
    return await service.create_raw_material(RawMaterialCreate(name=name, unit="kg", quantity=50))


def shirt_payload(raw_material_id=None, skus=("SHIRT-S", "SHIRT-M")):
    return ProductCreate(
        name="Blue Shirt",
        description="Plain cotton shirt",
        category="apparel",
        variations=[
            {
                "sku": sku,
                "price": 19.99,
                "stock": 4,
                "attributes": [{"name": "size", "value": sku[-1]}],
                "bom": [{"rawMaterialId": raw_material_id, "quantityRequired": 0.3}] if raw_material_id else None,
            }
            for sku in skus
        ],
    )


# --- create_product ---

@pytest.mark.asyncio
async def test_create_product_with_variations_attributes_and_bom(db_session):
    # 1. Arrange
    service = ProductService(db_session)
    cotton = await make_raw_material(service)

    # 2. Act
    product = await service.create_product(shirt_payload(cotton.id))

    # 3. Assert
    assert product.name == "Blue Shirt"
    assert sorted(v.sku for v in product.variations) == ["SHIRT-M", "SHIRT-S"]
    variation = next(v for v in product.variations if v.sku == "SHIRT-S")
    assert [(a.name, a.value) for a in variation.attributes] == [("size", "S")]
    assert variation.bom[0].raw_material.name == "Cotton"
    assert variation.bom[0].quantity_required == 0.3


@pytest.mark.asyncio
async def test_create_product_rejects_existing_sku(db_session):
    service = ProductService(db_session)
    await service.create_product(shirt_payload())

    with pytest.raises(ConflictError, match="SHIRT-S"):
        await service.create_product(shirt_payload(skus=("SHIRT-S", "SHIRT-L")))

    assert await db_session.scalar(select(func.count()).select_from(Product)) == 1


@pytest.mark.asyncio
async def test_create_product_rejects_repeated_sku_in_request(db_session):
    service = ProductService(db_session)
    with pytest.raises(ConflictError):
        await service.create_product(shirt_payload(skus=("SAME", "SAME")))


@pytest.mark.asyncio
async def test_create_product_unknown_raw_material(db_session):
    service = ProductService(db_session)
    with pytest.raises(NotFoundError, match="Raw Material not found"):
        await service.create_product(shirt_payload("missing-raw-material"))


# --- reads ---

@pytest.mark.asyncio
async def test_find_all_filters_and_paginates(db_session):
    service = ProductService(db_session)
    await service.create_product(shirt_payload())
    await service.create_product(ProductCreate(
        name="Coffee Mug", category="kitchen", variations=[{"sku": "MUG-1", "price": 8}],
    ))

    everything = await service.find_all(page=1, limit=1)
    assert everything["meta"] == {"page": 1, "per_page": 1, "total": 2}
    assert len(everything["data"]) == 1

    by_sku = await service.find_all(search="mug-1")
    assert [p.name for p in by_sku["data"]] == ["Coffee Mug"]

    by_category = await service.find_all(category="apparel")
    assert [p.name for p in by_category["data"]] == ["Blue Shirt"]


@pytest.mark.asyncio
async def test_find_one_missing(db_session):
    with pytest.raises(NotFoundError):
        await ProductService(db_session).find_one("no-such-product")


@pytest.mark.asyncio
async def test_find_by_id_or_sku(db_session):
    service = ProductService(db_session)
    product = await service.create_product(shirt_payload())

    assert (await service.find_by_id_or_sku("SHIRT-M")).id == product.id
    assert (await service.find_by_id_or_sku(product.id)).id == product.id
    with pytest.raises(NotFoundError):
        await service.find_by_id_or_sku("UNKNOWN")


# --- updates ---

@pytest.mark.asyncio
async def test_update_product_changes_only_sent_fields(db_session):
    service = ProductService(db_session)
    product = await service.create_product(shirt_payload())

    updated = await service.update_product(product.id, ProductUpdate(category="sale"))

    assert updated.category == "sale"
    assert updated.name == "Blue Shirt"


@pytest.mark.asyncio
async def test_update_by_id_or_sku_targets_variation_for_sku(db_session):
    service = ProductService(db_session)
    await service.create_product(shirt_payload())

    assert await service.update_by_id_or_sku("SHIRT-S", ProductOrVariationUpdate(price=25, stock=11)) is True

    row = (await db_session.execute(
        select(ProductVariation.price, ProductVariation.stock).where(ProductVariation.sku == "SHIRT-S")
    )).one()
    assert (row.price, row.stock) == (25.0, 11)


@pytest.mark.asyncio
async def test_update_by_id_or_sku_targets_product_for_id(db_session):
    service = ProductService(db_session)
    product = await service.create_product(shirt_payload())

    await service.update_by_id_or_sku(product.id, ProductOrVariationUpdate(name="Navy Shirt"))

    name = await db_session.scalar(select(Product.name).where(Product.id == product.id))
    assert name == "Navy Shirt"


@pytest.mark.asyncio
async def test_update_by_id_or_sku_not_found(db_session):
    with pytest.raises(NotFoundError):
        await ProductService(db_session).update_by_id_or_sku("nothing", ProductOrVariationUpdate(stock=1))


# --- remove ---

@pytest.mark.asyncio
async def test_remove_deletes_product_and_children(db_session):
    service = ProductService(db_session)
    cotton = await make_raw_material(service)
    product = await service.create_product(shirt_payload(cotton.id))

    assert await service.remove(product.id) is True

    assert await db_session.scalar(select(func.count()).select_from(ProductVariation)) == 0
    assert await db_session.scalar(select(func.count()).select_from(VariationAttribute)) == 0
    assert await db_session.scalar(select(func.count()).select_from(BOM)) == 0
    # Raw materials are shared and survive
    assert (await service.raw_material(cotton.id)).name == "Cotton"


# --- attributes, raw materials, BOM ---

@pytest.mark.asyncio
async def test_variation_attribute_crud(db_session):
    service = ProductService(db_session)
    product = await service.create_product(shirt_payload())
    variation_id = product.variations[0].id

    attribute = await service.create_variation_attribute(
        VariationAttributeCreate(variation_id=variation_id, name="colour", value="blue")
    )
    assert attribute.variation_id == variation_id

    assert await service.delete_variation_attribute(attribute.id) is True
    with pytest.raises(NotFoundError):
        await service.delete_variation_attribute(attribute.id)

    with pytest.raises(NotFoundError):
        await service.create_variation_attribute(
            VariationAttributeCreate(variation_id="missing", name="colour", value="blue")
        )


@pytest.mark.asyncio
async def test_raw_material_update_and_list(db_session):
    service = ProductService(db_session)
    cotton = await make_raw_material(service)
    await make_raw_material(service, name="Buttons")

    updated = await service.update_raw_material(cotton.id, RawMaterialUpdate(quantity=12.5))

    assert updated.quantity == 12.5
    assert [m.name for m in await service.raw_material_list()] == ["Buttons", "Cotton"]
    with pytest.raises(NotFoundError, match="Raw Material not found"):
        await service.raw_material("missing")


@pytest.mark.asyncio
async def test_bom_create_and_update(db_session):
    service = ProductService(db_session)
    cotton = await make_raw_material(service)
    buttons = await make_raw_material(service, name="Buttons")
    product = await service.create_product(shirt_payload())
    variation_id = product.variations[0].id

    line = await service.create_bom(BOMCreate(variation_id=variation_id, raw_material_id=cotton.id, quantity_required=0.4))
    updated = await service.update_bom(line.id, BOMUpdate(raw_material_id=buttons.id, quantity_required=6))

    assert updated.raw_material_id == buttons.id
    assert updated.quantity_required == 6
    assert len(await service.bom_list()) == 1

    with pytest.raises(NotFoundError):
        await service.update_bom(line.id, BOMUpdate(raw_material_id="missing"))


@pytest.mark.asyncio
@pytest.mark.parametrize("search", ["%", "_", "Blue_Shirt", "SHIRT_S"])
async def test_find_all_search_treats_wildcards_literally(db_session, search):
    service = ProductService(db_session)
    await service.create_product(shirt_payload())

    result = await service.find_all(search=search)

    assert result["meta"]["total"] == 0
    assert result["data"] == []


@pytest.mark.asyncio
async def test_find_all_search_matches_literal_underscore(db_session):
    service = ProductService(db_session)
    await service.create_product(shirt_payload())
    await service.create_product(ProductCreate(
        name="Mug", category="kitchen", variations=[{"sku": "MUG_LARGE", "price": 8}],
    ))

    result = await service.find_all(search="mug_l")

    assert [p.name for p in result["data"]] == ["Mug"]


@pytest.mark.asyncio
async def test_update_product_null_clears_optional_fields_only(db_session):
    service = ProductService(db_session)
    product = await service.create_product(shirt_payload())

    updated = await service.update_product(product.id, ProductUpdate(name=None, description=None))

    assert updated.description is None
    assert updated.name == "Blue Shirt"
    assert updated.category == "apparel"


@pytest.mark.asyncio
async def test_update_raw_material_null_clears_supplier(db_session):
    service = ProductService(db_session)
    cotton = await service.create_raw_material(
        RawMaterialCreate(name="Cotton", unit="kg", quantity=50, supplier="Mill Co")
    )

    updated = await service.update_raw_material(cotton.id, RawMaterialUpdate(supplier=None, unit=None))

    assert updated.supplier is None
    assert updated.unit == "kg"
