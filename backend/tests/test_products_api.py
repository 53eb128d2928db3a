"""
Storefront Backend — Product & Category API Tests
===================================================

What:  End-to-end tests for /api/products and /api/categories against a
       real SQLite database and a temporary upload directory.

What we test:
    ✅ Image upload → public paths; non-images (by name, type or bytes) and
       empty requests → 400
    ✅ Create computes totalprice and joins the matching category
    ✅ Delete leaves the other members of the category untouched
    ✅ Malformed id → 400, unknown id → 404
    ✅ Partial update (JSON and multipart) keeps absent fields, recomputes
       totalprice, and replaces images only when files are uploaded
"""

import json
from uuid import uuid4

import pytest

PRODUCT = {
    "title": "Linen Shirt",
    "description": "Breathable summer shirt",
    "category": "Shirts",
    "type": "casual",
    "sizes": ["S", "M", "L"],
    "images": ["/uploads/products/seed.png"],
    "stock": 12,
    "price": 100,
    "prevprice": 120,
    "qty": 1,
    "discount": 20,
    "rating": {"rate": 4.5, "count": 10},
}


async def create_product(client, **overrides):
    response = await client.post("/api/products", json={**PRODUCT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


async def create_category(client, title="Shirts"):
    response = await client.post("/api/categories", json={"title": title})
    assert response.status_code == 201, response.text
    return response.json()


class TestImageUpload:

    @pytest.mark.asyncio
    async def test_upload_returns_paths(self, test_client, sample_image_bytes, sample_jpeg_bytes):
        response = await test_client.post(
            "/api/products/upload",
            files=[
                ("images", ("front.png", sample_image_bytes, "image/png")),
                ("images", ("back.jpg", sample_jpeg_bytes, "image/jpeg")),
            ],
        )

        assert response.status_code == 200
        urls = response.json()["imageUrls"]
        assert len(urls) == 2
        assert all(url.startswith("/uploads/products/") for url in urls)
        assert urls[0].endswith(".png") and urls[1].endswith(".jpg")

        served = await test_client.get(urls[0])
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_text_file_rejected_and_nothing_stored(
        self, test_client, sample_image_bytes, tmp_path
    ):
        response = await test_client.post(
            "/api/products/upload",
            files=[
                ("images", ("front.png", sample_image_bytes, "image/png")),
                ("images", ("notes.txt", b"hello", "text/plain")),
            ],
        )

        assert response.status_code == 400
        assert not (tmp_path / "uploads" / "products").exists()

    @pytest.mark.asyncio
    async def test_script_disguised_as_png_rejected(self, test_client, tmp_path):
        response = await test_client.post(
            "/api/products/upload",
            files=[("images", ("evil.png", b"#!/bin/sh\nrm -rf /\n", "image/png"))],
        )

        assert response.status_code == 400
        assert response.json()["details"]["detected_mime"] != "image/png"
        assert not (tmp_path / "uploads" / "products").exists()

    @pytest.mark.asyncio
    async def test_no_files(self, test_client):
        response = await test_client.post("/api/products/upload", data={"note": "nothing attached"})
        assert response.status_code == 400
        assert response.json()["message"] == "No files uploaded"


class TestCreateAndRead:

    @pytest.mark.asyncio
    async def test_create_computes_total_and_stores_fields(self, test_client):
        product = await create_product(test_client)

        assert product["totalprice"] == pytest.approx(80)
        assert product["stock"] == "12"
        assert product["sizes"] == ["S", "M", "L"]
        assert product["rating"] == {"rate": 4.5, "count": 10}

        fetched = await test_client.get(f"/api/products/{product['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Linen Shirt"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": ""},
            {"category": ""},
            {"price": 0},
            {"images": []},
            {"discount": 150},
        ],
    )
    async def test_create_invalid(self, test_client, overrides):
        response = await test_client.post("/api/products", json={**PRODUCT, **overrides})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_requires_title(self, test_client):
        payload = {k: v for k, v in PRODUCT.items() if k != "title"}
        response = await test_client.post("/api/products", json=payload)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_products(self, test_client):
        await create_product(test_client, title="One")
        await create_product(test_client, title="Two")

        response = await test_client.get("/api/products")

        assert response.status_code == 200
        assert sorted(p["title"] for p in response.json()) == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_malformed_id(self, test_client):
        response = await test_client.get("/api/products/abc")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID"

    @pytest.mark.asyncio
    async def test_unknown_id(self, test_client):
        response = await test_client.get(f"/api/products/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"


class TestCategoryMembership:

    @pytest.mark.asyncio
    async def test_create_appends_to_matching_category(self, test_client):
        category = await create_category(test_client)
        first = await create_product(test_client, title="A")
        second = await create_product(test_client, title="B")

        response = await test_client.get(f"/api/categories/{category['id']}")

        assert response.status_code == 200
        assert response.json()["products"] == [first["id"], second["id"]]

    @pytest.mark.asyncio
    async def test_product_without_category_record(self, test_client):
        await create_category(test_client, title="Shoes")
        await create_product(test_client, category="Hats")

        categories = (await test_client.get("/api/categories")).json()
        assert [c["products"] for c in categories] == [[]]

    @pytest.mark.asyncio
    async def test_delete_removes_only_that_product(self, test_client):
        category = await create_category(test_client)
        first = await create_product(test_client, title="A")
        second = await create_product(test_client, title="B")

        response = await test_client.delete(f"/api/products/{first['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Product deleted"}
        assert (await test_client.get(f"/api/products/{first['id']}")).status_code == 404
        members = (await test_client.get(f"/api/categories/{category['id']}")).json()["products"]
        assert members == [second["id"]]

    @pytest.mark.asyncio
    async def test_delete_unknown(self, test_client):
        response = await test_client.delete(f"/api/products/{uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_category_bad_ids(self, test_client):
        assert (await test_client.get("/api/categories/xyz")).status_code == 400
        assert (await test_client.get(f"/api/categories/{uuid4()}")).status_code == 404


class TestUpdate:

    @pytest.mark.asyncio
    async def test_json_update_recomputes_total_and_keeps_other_fields(self, test_client):
        product = await create_product(test_client)

        response = await test_client.put(
            f"/api/products/{product['id']}",
            json={"price": 200, "images": ["/uploads/products/ignored.png"]},
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["price"] == 200
        assert updated["totalprice"] == pytest.approx(160)
        assert updated["title"] == product["title"]
        assert updated["images"] == product["images"]

    @pytest.mark.asyncio
    async def test_discount_only_update(self, test_client):
        product = await create_product(test_client)

        response = await test_client.put(f"/api/products/{product['id']}", json={"discount": 50})

        assert response.json()["totalprice"] == pytest.approx(50)

    @pytest.mark.asyncio
    async def test_multipart_update_replaces_images(self, test_client, sample_image_bytes):
        product = await create_product(test_client)

        response = await test_client.put(
            f"/api/products/{product['id']}",
            data={
                "title": "Linen Shirt v2",
                "sizes": ["M", "XL"],
                "rating": json.dumps({"rate": 3.5, "count": 2}),
            },
            files=[("images", ("new.png", sample_image_bytes, "image/png"))],
        )

        assert response.status_code == 200, response.text
        updated = response.json()
        assert updated["title"] == "Linen Shirt v2"
        assert updated["sizes"] == ["M", "XL"]
        assert updated["rating"] == {"rate": 3.5, "count": 2}
        assert len(updated["images"]) == 1
        assert updated["images"][0].startswith("/uploads/products/")
        assert updated["images"] != product["images"]
        assert updated["totalprice"] == pytest.approx(80)

    @pytest.mark.asyncio
    async def test_multipart_update_with_bad_file(self, test_client):
        product = await create_product(test_client)

        response = await test_client.put(
            f"/api/products/{product['id']}",
            data={"title": "Renamed"},
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
        )

        assert response.status_code == 400
        unchanged = (await test_client.get(f"/api/products/{product['id']}")).json()
        assert unchanged["title"] == product["title"]

    @pytest.mark.asyncio
    async def test_update_unknown_and_malformed(self, test_client):
        assert (await test_client.put(f"/api/products/{uuid4()}", json={"price": 5})).status_code == 404
        assert (await test_client.put("/api/products/nope", json={"price": 5})).status_code == 400

    @pytest.mark.asyncio
    async def test_update_invalid_value(self, test_client):
        product = await create_product(test_client)
        response = await test_client.put(f"/api/products/{product['id']}", json={"price": -1})
        assert response.status_code == 400


class TestProductWireNames:

    @pytest.mark.asyncio
    async def test_timestamps_are_camel_case(self, test_client):
        product = await create_product(test_client)
        category = await create_category(test_client, title="Hats")

        for body in (product, category):
            assert {"createdAt", "updatedAt"} <= set(body)
            assert "created_at" not in body
