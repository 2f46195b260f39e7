# tests/test_routes/test_product_routes.py
import pytest
from httpx import ASGITransport, AsyncClient

from stockroom.main import app
from stockroom.routes import products as products_routes


async def _create(client, **overrides):
    payload = {"name": "Widget", "stock": 5}
    payload.update(overrides)
    response = await client.post("/api/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["product"]


@pytest.mark.asyncio
async def test_create_product(test_client, sample_product_data):
    response = await test_client.post("/api/products", json=sample_product_data)

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Product created successfully"
    assert data["product"]["name"] == sample_product_data["name"]
    assert data["product"]["stock"] == sample_product_data["stock"]
    assert isinstance(data["product"]["id"], int)


@pytest.mark.asyncio
async def test_create_product_negative_stock_is_400(test_client):
    response = await test_client.post("/api/products", json={"name": "Widget", "stock": -1})

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert {"field": "stock", "message": "Stock must be a number >= 0"} in errors


@pytest.mark.asyncio
async def test_create_product_missing_name_is_400(test_client):
    response = await test_client.post("/api/products", json={"stock": 3})

    assert response.status_code == 400
    assert "name" in [error["field"] for error in response.json()["errors"]]


@pytest.mark.asyncio
async def test_create_duplicate_name_is_400(test_client):
    await _create(test_client)

    response = await test_client.post("/api/products", json={"name": "Widget", "stock": 1})

    assert response.status_code == 400
    assert response.json()["detail"] == "Product name already exists"


@pytest.mark.asyncio
async def test_get_product(test_client):
    product = await _create(test_client)

    response = await test_client.get(f"/api/products/{product['id']}")

    assert response.status_code == 200
    assert response.json() == {"product": product}


@pytest.mark.asyncio
async def test_get_missing_product_is_404(test_client):
    response = await test_client.get("/api/products/999")

    assert response.status_code == 404
    assert response.json()["detail"] == "Product not found"


@pytest.mark.asyncio
async def test_list_products_with_query_parameters(test_client):
    await _create(test_client, name="Hammer", category="Tools", stock=4)
    await _create(test_client, name="Paint", category="Decor", stock=9)
    await _create(test_client, name="Anvil", category="Tools", stock=1)

    response = await test_client.get("/api/products", params={"category": "Tools", "sort": "name"})
    data = response.json()
    assert response.status_code == 200
    assert data["count"] == 2
    assert [p["name"] for p in data["products"]] == ["Anvil", "Hammer"]

    response = await test_client.get(
        "/api/products", params={"sort": "stock", "order": "desc", "page": 1, "limit": 2}
    )
    assert [p["name"] for p in response.json()["products"]] == ["Paint", "Hammer"]

    response = await test_client.get("/api/products", params={"page": 5, "limit": 2})
    assert response.json() == {"products": [], "count": 0}


@pytest.mark.asyncio
async def test_search_requires_name(test_client):
    response = await test_client.get("/api/products/search")

    assert response.status_code == 400
    assert response.json()["detail"] == "Search query is required"


@pytest.mark.asyncio
async def test_search_without_match_is_empty(test_client):
    await _create(test_client)

    response = await test_client.get("/api/products/search", params={"name": "sprocket"})

    assert response.status_code == 200
    assert response.json() == {"products": [], "count": 0}


@pytest.mark.asyncio
async def test_search_matches_case_insensitively(test_client):
    await _create(test_client, name="Blue Widget")

    response = await test_client.get("/api/products/search", params={"name": "widget"})

    assert response.json()["count"] == 1


@pytest.mark.asyncio
async def test_update_product_and_conflicts(test_client):
    widget = await _create(test_client)
    gadget = await _create(test_client, name="Gadget")

    response = await test_client.put(
        f"/api/products/{widget['id']}", json={"name": "Widget", "stock": 6, "brand": "Acme"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Product updated successfully"
    assert response.json()["product"]["brand"] == "Acme"

    response = await test_client.put(f"/api/products/{gadget['id']}", json={"name": "Widget", "stock": 1})
    assert response.status_code == 400

    response = await test_client.put("/api/products/999", json={"name": "Nope", "stock": 1})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_history_for_new_product_is_empty(test_client):
    product = await _create(test_client)

    response = await test_client.get(f"/api/products/{product['id']}/history")

    assert response.status_code == 200
    data = response.json()
    assert data["product"] == {"id": product["id"], "name": "Widget"}
    assert data["history"] == []
    assert data["count"] == 0


@pytest.mark.asyncio
async def test_widget_lifecycle_end_to_end(test_client):
    create = await test_client.post("/api/products", json={"name": "Widget", "stock": 5})
    assert create.status_code == 201
    product_id = create.json()["product"]["id"]

    update = await test_client.put(f"/api/products/{product_id}", json={"name": "Widget", "stock": 8})
    assert update.status_code == 200

    history = await test_client.get(f"/api/products/{product_id}/history")
    entries = history.json()["history"]
    assert history.json()["count"] == 1
    assert entries[0]["old_quantity"] == 5
    assert entries[0]["new_quantity"] == 8
    assert entries[0]["actor"] == "admin"
    assert entries[0]["product_id"] == product_id

    delete = await test_client.delete(f"/api/products/{product_id}")
    assert delete.status_code == 200
    assert delete.json()["message"] == "Product deleted successfully"
    assert delete.json()["deletedProduct"]["stock"] == 8

    history = await test_client.get(f"/api/products/{product_id}/history")
    assert history.status_code == 404


@pytest.mark.asyncio
async def test_delete_missing_product_is_404(test_client):
    response = await test_client.delete("/api/products/31")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_export_products_csv(test_client):
    await _create(test_client, name="Widget, large", stock=2)

    response = await test_client.get("/api/products/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="products.csv"'
    lines = response.text.splitlines()
    assert lines[0].split(",") == ["id", "name", "unit", "category", "brand", "stock", "status", "image"]
    assert lines[1] == '1,"Widget, large",,,,2,,'


@pytest.mark.asyncio
async def test_import_products_csv(test_client, upload_dir):
    await _create(test_client, name="Widget")
    content = (
        "name,unit,category,brand,stock,status,image\n"
        "widget,pcs,,,3,,\n"
        "Gadget,pcs,Tools,Acme,7,,\n"
        ",pcs,,,1,,\n"
    )

    response = await test_client.post(
        "/api/products/import",
        files={"csvFile": ("products.csv", content.encode(), "text/csv")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["added"] == 1
    assert data["skipped"] == 2
    assert data["duplicates"] == [{"name": "widget", "existingId": 1}]
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_import_without_file_is_400(test_client):
    response = await test_client.post("/api/products/import")

    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded"


@pytest.mark.asyncio
async def test_import_empty_file_is_400_and_cleaned_up(test_client, upload_dir):
    response = await test_client.post(
        "/api/products/import",
        files={"csvFile": ("empty.csv", b"", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "CSV file is empty"
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_create_product_with_out_of_range_stock_is_400(test_client):
    response = await test_client.post("/api/products", json={"name": "Huge", "stock": 10**20})

    assert response.status_code == 400
    assert {"field": "stock", "message": "Stock must be a number >= 0"} in response.json()["errors"]

    listing = await test_client.get("/api/products")
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_update_product_invalid_body_is_400(test_client):
    product = await _create(test_client)

    response = await test_client.put(f"/api/products/{product['id']}", json={"name": "", "stock": -1})

    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["errors"]]
    assert "name" in fields
    assert "stock" in fields

    unchanged = await test_client.get(f"/api/products/{product['id']}")
    assert unchanged.json()["product"]["stock"] == 5


@pytest.mark.asyncio
async def test_list_products_with_limit_only_returns_everything(test_client):
    for name in ("Anvil", "Bolt", "Chisel"):
        await _create(test_client, name=name)

    response = await test_client.get("/api/products", params={"limit": 2})

    assert response.json()["count"] == 3


@pytest.mark.asyncio
async def test_import_unparseable_csv_is_400(test_client, upload_dir):
    content = "name,stock\nAnvil,1\nBolt,2,3,4\n"

    response = await test_client.post(
        "/api/products/import",
        files={"csvFile": ("broken.csv", content.encode(), "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Error parsing CSV file")
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_import_removes_partial_upload_when_save_fails(test_client, upload_dir, monkeypatch):
    async def failing_save(upload_file, filepath):
        with open(filepath, "wb") as fh:
            fh.write(b"name,st")
        raise OSError("No space left on device")

    monkeypatch.setattr(products_routes, "save_upload_file", failing_save)

    # test_client has already pointed get_db at the test database
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/products/import",
            files={"csvFile": ("products.csv", b"name,stock\nAnvil,1\n", "text/csv")},
        )

    assert response.status_code == 500
    assert list(upload_dir.iterdir()) == []
