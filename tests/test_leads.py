import json
from decimal import Decimal

import pytest

from app.models.attachment import StoredAttachment
from app.models.product import Product
from app.models.product_request import ProductRequest

from conftest import PNG, PDF


@pytest.fixture
def product(db):
    p = Product(name="Oak chair", slug="oak-chair", price=Decimal("120.00"), quantity=3,
                materials=[], colors=[])
    db.add(p)
    db.commit()
    return p


def _quote(client, product_id, **fields):
    body = {"fullName": "Jane Buyer", "email": "Jane@Buyer.com",
            "items": [{"productId": product_id, "quantity": 2}], **fields}
    return client.post("/quote-requests", json=body)


def _product_request_form(**fields):
    body = {"fullName": "Jane Buyer", "email": "jane@buyer.com",
            "description": "A walnut table for twelve people", **fields}
    return {"data": json.dumps(body)}


# ─── Quote requests ───────────────────────────────────────────────────────────
def test_create_quote_snapshots_product(client, product):
    resp = _quote(client, product.id, message="Need it by May")

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["status"] == "NEW"
    assert data["email"] == "jane@buyer.com"
    assert data["items"] == [{
        "productId": product.id, "productName": "Oak chair", "productSlug": "oak-chair",
        "unitPrice": 120.0, "quantity": 2,
    }]


def test_create_quote_unknown_product(client, product):
    resp = _quote(client, product.id + 1)
    assert resp.status_code == 404


def test_create_quote_needs_items(client):
    resp = client.post("/quote-requests", json={"fullName": "Jane", "email": "jane@buyer.com", "items": []})
    assert resp.status_code == 422


def test_admin_lists_and_filters_quotes(client, product, admin_headers):
    _quote(client, product.id)
    _quote(client, product.id, fullName="Bob Other", email="bob@other.com")

    assert client.get("/admin/quote-requests").status_code == 401

    listed = client.get("/admin/quote-requests", headers=admin_headers).json()
    assert listed["meta"]["total"] == 2
    assert listed["data"][0]["fullName"] == "Bob Other"

    by_email = client.get("/admin/quote-requests", params={"email": "JANE@buyer.com"}, headers=admin_headers)
    assert by_email.json()["meta"]["total"] == 1
    by_q = client.get("/admin/quote-requests", params={"q": "bob"}, headers=admin_headers)
    assert by_q.json()["meta"]["total"] == 1
    by_status = client.get("/admin/quote-requests", params={"status": "QUOTED"}, headers=admin_headers)
    assert by_status.json()["meta"]["total"] == 0


def test_quote_status_quoted_stamps_date(client, product, admin_headers):
    quote_id = _quote(client, product.id).json()["data"]["id"]

    resp = client.patch(f"/admin/quote-requests/{quote_id}/status", json={"status": "QUOTED"},
                        headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "QUOTED"
    assert resp.json()["data"]["quotedAt"]

    bad = client.patch(f"/admin/quote-requests/{quote_id}/status", json={"status": "SHIPPED"},
                       headers=admin_headers)
    assert bad.status_code == 422


def test_quote_status_db_failure_is_reported(client, product, admin_headers, fail_commit):
    quote_id = _quote(client, product.id).json()["data"]["id"]
    fail_commit(1)

    resp = client.patch(f"/admin/quote-requests/{quote_id}/status", json={"status": "QUOTED"},
                        headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "PERSISTENCE_FAILED"

    detail = client.get(f"/admin/quote-requests/{quote_id}", headers=admin_headers).json()["data"]
    assert detail["status"] == "NEW"
    assert detail["quotedAt"] is None


def test_quote_note_with_pdf_advances_status(client, product, admin_headers, store):
    quote_id = _quote(client, product.id).json()["data"]["id"]

    resp = client.post(f"/admin/quote-requests/{quote_id}/notes",
                       data={"data": json.dumps({"content": "Quote attached"})},
                       files={"pdf": ("quote.pdf", PDF, "application/pdf")},
                       headers=admin_headers)

    assert resp.status_code == 201, resp.text
    note = resp.json()["data"]
    assert note["authorEmail"] == "a@b.com"
    assert note["pdf"]["objectKey"].startswith(f"quotes/{quote_id}/")
    assert list(store.objects) == [note["pdf"]["objectKey"]]

    detail = client.get(f"/admin/quote-requests/{quote_id}", headers=admin_headers).json()["data"]
    assert detail["status"] == "IN_PROGRESS"
    assert [n["content"] for n in detail["notes"]] == ["Quote attached"]


def test_quote_note_rejects_non_pdf(client, product, admin_headers, store):
    quote_id = _quote(client, product.id).json()["data"]["id"]

    resp = client.post(f"/admin/quote-requests/{quote_id}/notes",
                       data={"data": json.dumps({"content": "Photo instead"})},
                       files={"pdf": ("photo.png", PNG, "image/png")},
                       headers=admin_headers)

    assert resp.status_code == 400
    assert store.puts == []


def test_quote_note_db_failure_compensates(client, product, admin_headers, store, db, fail_commit):
    quote_id = _quote(client, product.id).json()["data"]["id"]
    fail_commit(1)

    resp = client.post(f"/admin/quote-requests/{quote_id}/notes",
                       data={"data": json.dumps({"content": "Quote attached"})},
                       files={"pdf": ("quote.pdf", PDF, "application/pdf")},
                       headers=admin_headers)

    assert resp.status_code == 500
    assert store.objects == {}
    assert db.query(StoredAttachment).count() == 0


# ─── Product requests ─────────────────────────────────────────────────────────
def test_create_product_request_with_reference_image(client, store):
    resp = client.post("/product-requests", data=_product_request_form(company="Acme"),
                       files={"image": ("ref.png", PNG, "image/png")})

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["quantity"] == 1
    assert data["status"] == "NEW"
    assert data["referenceImage"]["objectKey"].startswith(f"product-requests/{data['id']}/")
    assert len(store.objects) == 1


def test_create_product_request_without_file(client, store):
    resp = client.post("/product-requests", data=_product_request_form(quantity=5))
    assert resp.status_code == 201
    assert resp.json()["data"]["quantity"] == 5
    assert resp.json()["data"]["referenceImage"] is None


def test_create_product_request_invalid_file_stores_nothing(client, store, db):
    resp = client.post("/product-requests", data=_product_request_form(),
                       files={"image": ("ref.exe", b"MZ\x90\x00", "application/octet-stream")})

    assert resp.status_code == 400
    assert store.puts == []
    assert db.query(ProductRequest).count() == 0


def test_create_product_request_short_description(client):
    resp = client.post("/product-requests", data=_product_request_form(description="tiny"))
    assert resp.status_code == 422


def test_product_request_admin_flow(client, admin_headers, store):
    request_id = client.post("/product-requests", data=_product_request_form(company="Acme")).json()["data"]["id"]

    listed = client.get("/admin/product-requests", params={"q": "acme"}, headers=admin_headers).json()
    assert [r["id"] for r in listed["data"]] == [request_id]

    note = client.post(f"/admin/product-requests/{request_id}/notes",
                       data={"data": json.dumps({"content": "Sketch attached"})},
                       files={"file": ("sketch.png", PNG, "image/png")},
                       headers=admin_headers)
    assert note.status_code == 201
    assert note.json()["data"]["attachment"]["mimeType"] == "image/png"

    detail = client.get(f"/admin/product-requests/{request_id}", headers=admin_headers).json()["data"]
    assert detail["status"] == "IN_PROGRESS"

    answered = client.patch(f"/admin/product-requests/{request_id}/status", json={"status": "ANSWERED"},
                            headers=admin_headers).json()["data"]
    assert answered["status"] == "ANSWERED"
    assert answered["answeredAt"]


def test_product_request_note_requires_content(client, admin_headers):
    request_id = client.post("/product-requests", data=_product_request_form()).json()["data"]["id"]
    resp = client.post(f"/admin/product-requests/{request_id}/notes",
                       data={"data": json.dumps({"content": "   "})}, headers=admin_headers)
    assert resp.status_code == 422


def test_product_request_status_db_failure_is_reported(client, admin_headers, fail_commit):
    request_id = client.post("/product-requests", data=_product_request_form()).json()["data"]["id"]
    fail_commit(1)

    resp = client.patch(f"/admin/product-requests/{request_id}/status", json={"status": "ANSWERED"},
                        headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "PERSISTENCE_FAILED"

    detail = client.get(f"/admin/product-requests/{request_id}", headers=admin_headers).json()["data"]
    assert detail["status"] == "NEW"
    assert detail["answeredAt"] is None
