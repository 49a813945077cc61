# tests/test_routes/test_webhooks_routes.py
import pytest


@pytest.mark.asyncio
async def test_create_webhook(client):
    response = await client.post(
        "/v1/webhooks", json={"endpoint": "http://hooks.example.com/stock", "minStock": 3}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["endpoint"] == "http://hooks.example.com/stock"
    assert body["minStock"] == 3
    assert body["sku"] is None


@pytest.mark.asyncio
async def test_create_webhook_snake_case_input(client):
    response = await client.post(
        "/v1/webhooks", json={"endpoint": "https://hooks.example.com/a", "sku": "SKU-1", "min_stock": 0}
    )
    assert response.status_code == 201
    assert response.json()["sku"] == "SKU-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"endpoint": "not a url", "minStock": 3},
    {"endpoint": "http://hooks.example.com/stock"},
])
async def test_create_webhook_validation(client, payload):
    response = await client.post("/v1/webhooks", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_webhook_keeps_endpoint_as_sent(client):
    response = await client.post("/v1/webhooks", json={"endpoint": "http://hooks.example.com", "minStock": 1})

    assert response.status_code == 201
    assert response.json()["endpoint"] == "http://hooks.example.com"


@pytest.mark.asyncio
async def test_create_webhook_rejects_non_http_scheme(client):
    response = await client.post("/v1/webhooks", json={"endpoint": "ftp://hooks.example.com/x", "minStock": 1})
    assert response.status_code == 400
