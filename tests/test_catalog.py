import json

import pytest

from app.models.category import Category
from app.utils.slug import generate_slug

from conftest import PNG, JPEG


@pytest.fixture
def category_id(db):
    c = Category(name="Chairs", slug="chairs", isActive=True)
    db.add(c)
    db.commit()
    return c.id


def _create_product(client, headers, category_id, n_images=1, **fields):
    payload = {"name": "Oak chair", "price": 120.5, "quantity": 3, "categoryIds": [category_id], **fields}
    files = [("images", (f"{i}.png", PNG, "image/png")) for i in range(n_images)]
    return client.post("/admin/products", data={"data": json.dumps(payload)}, files=files, headers=headers)


# ─── Slugs ────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("name, slug", [
    ("Chaise Élégante 2", "chaise-elegante-2"),
    ("  Table -- Basse!! ", "table-basse"),
    ("Ça coûte", "ca-coute"),
    ("***", ""),
])
def test_generate_slug(name, slug):
    assert generate_slug(name) == slug


# ─── Categories ───────────────────────────────────────────────────────────────
def test_create_category_without_image(client, admin_headers):
    resp = client.post("/admin/categories", data={"data": json.dumps({"name": "Tables Basses"})},
                       headers=admin_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["slug"] == "tables-basses"
    assert data["image"] is None
    assert data["isActive"] is False


def test_create_category_duplicate_slug(client, admin_headers, category_id):
    resp = client.post("/admin/categories", data={"data": json.dumps({"name": "Chairs"})},
                       headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["field"] == "slug"


def test_create_category_missing_data(client, admin_headers):
    resp = client.post("/admin/categories", files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["field"] == "data"


def test_create_category_malformed_data(client, admin_headers):
    resp = client.post("/admin/categories", data={"data": json.dumps({"name": ""})}, headers=admin_headers)
    assert resp.status_code == 422


def test_update_category_without_changes(client, admin_headers, category_id):
    resp = client.patch(f"/admin/categories/{category_id}", data={"data": "{}"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "no updates provided"


def test_update_category_remove_image(client, admin_headers, store):
    created = client.post("/admin/categories", data={"data": json.dumps({"name": "Lamps"})},
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]

    resp = client.patch(f"/admin/categories/{created['id']}",
                        data={"data": json.dumps({"removeImage": True, "isActive": True})},
                        headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["image"] is None
    assert resp.json()["data"]["isActive"] is True
    assert store.objects == {}


def test_list_and_get_categories(client, category_id, db):
    db.add(Category(name="Armoires", slug="armoires", isActive=False))
    db.commit()

    listed = client.get("/categories").json()
    assert [c["slug"] for c in listed["data"]] == ["armoires", "chairs"]
    assert listed["meta"]["total"] == 2

    active = client.get("/categories", params={"isActive": True}).json()
    assert [c["slug"] for c in active["data"]] == ["chairs"]

    assert client.get("/categories", params={"q": "ARM"}).json()["meta"]["total"] == 1
    assert client.get(f"/categories/{category_id}").json()["data"]["slug"] == "chairs"
    assert client.get("/categories/slug/chairs").json()["data"]["id"] == category_id
    assert client.get("/categories/999").status_code == 404


def test_out_of_range_limit_falls_back_to_default(client, category_id):
    meta = client.get("/categories", params={"limit": 10_000, "page": 0}).json()["meta"]
    assert meta["limit"] == 20
    assert meta["page"] == 1


# ─── Products ─────────────────────────────────────────────────────────────────
def test_create_product(client, admin_headers, category_id, store):
    resp = _create_product(client, admin_headers, category_id, n_images=2,
                           materials=["oak"], colors=["natural"], isTrending=True)

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["slug"] == "oak-chair"
    assert data["price"] == 120.5
    assert [c["id"] for c in data["categories"]] == [category_id]
    assert len(data["images"]) == 2
    assert all(img["objectKey"].startswith("products/oak-chair/") for img in data["images"])
    assert len(store.objects) == 2


def test_create_product_requires_an_image(client, admin_headers, category_id):
    resp = _create_product(client, admin_headers, category_id, n_images=0)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_FILE"


def test_create_product_unknown_category(client, admin_headers, category_id, store):
    resp = _create_product(client, admin_headers, category_id + 1)
    assert resp.status_code == 404
    assert store.puts == []


def test_create_product_invalid_fields(client, admin_headers, category_id):
    resp = _create_product(client, admin_headers, category_id, price=0)
    assert resp.status_code == 422


def test_update_product_images(client, admin_headers, category_id, store):
    created = _create_product(client, admin_headers, category_id, n_images=4).json()["data"]
    urls = [img["url"] for img in created["images"]]

    # 4 existing - 1 removed + 2 added = 5 > 4
    too_many = client.patch(
        f"/admin/products/{created['id']}",
        data={"data": json.dumps({"removedImageUrls": urls[:1]})},
        files=[("images", ("n1.jpg", JPEG, "image/jpeg")), ("images", ("n2.jpg", JPEG, "image/jpeg"))],
        headers=admin_headers,
    )
    assert too_many.status_code == 400
    assert len(store.puts) == 4

    # 4 - 2 + 2 = 4
    resp = client.patch(
        f"/admin/products/{created['id']}",
        data={"data": json.dumps({"removedImageUrls": urls[:2], "price": 99})},
        files=[("images", ("n1.jpg", JPEG, "image/jpeg")), ("images", ("n2.jpg", JPEG, "image/jpeg"))],
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["price"] == 99
    assert [img["url"] for img in data["images"]][:2] == urls[2:]
    assert [img["mimeType"] for img in data["images"]][2:] == ["image/jpeg", "image/jpeg"]
    assert len(store.objects) == 4
    assert sorted(store.deletes) == sorted(u.split("/bucket/", 1)[1] for u in urls[:2])


def test_update_product_cannot_remove_last_image(client, admin_headers, category_id):
    created = _create_product(client, admin_headers, category_id).json()["data"]
    resp = client.patch(
        f"/admin/products/{created['id']}",
        data={"data": json.dumps({"removedImageUrls": [created["images"][0]["url"]]})},
        headers=admin_headers,
    )
    assert resp.status_code == 400


def test_list_hides_disabled_products(client, admin_headers, category_id):
    _create_product(client, admin_headers, category_id, name="Visible chair", isTrending=True)
    _create_product(client, admin_headers, category_id, name="Hidden chair", isDisabled=True)

    assert client.get("/products").json()["meta"]["total"] == 1
    assert client.get("/products", params={"includeDisabled": True}).json()["meta"]["total"] == 2
    assert client.get("/products", params={"categoryId": category_id}).json()["meta"]["total"] == 1
    assert [p["slug"] for p in client.get("/products/featured").json()["data"]] == ["visible-chair"]
    assert client.get("/products/slug/hidden-chair").status_code == 200


def test_delete_product_removes_all_images(client, admin_headers, category_id, store):
    created = _create_product(client, admin_headers, category_id, n_images=3).json()["data"]

    resp = client.delete(f"/admin/products/{created['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert store.objects == {}
    assert client.get(f"/products/{created['id']}").status_code == 404
