import io
import json

import pytest
from fastapi import UploadFile

from app.config import AttachmentConfig
from app.models.attachment import StoredAttachment
from app.models.category import Category
from app.models.product import Product
from app.services.attachment_service import AttachmentHelper, PendingFile
from app.utils.storage import ObjectStore
from app.utils.exceptions import (
    InvalidFileException, PersistenceFailedException, StorageUnavailableException,
    DuplicateEntryException,
)

from conftest import PNG, JPEG, PDF

CFG = AttachmentConfig(max_size_bytes=1024, max_product_images=4)


@pytest.fixture
def helper(store):
    return AttachmentHelper(CFG, store)


def _upload(name: str, data: bytes) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name)


def _category_form(**data):
    return {"data": json.dumps({"name": "Chairs", **data})}


# ─── Validation ───────────────────────────────────────────────────────────────
def test_validate_returns_sniffed_type(helper):
    assert helper.validate("photo.png", PNG) == "image/png"
    assert helper.validate("photo.JPG", JPEG) == "image/jpeg"
    assert helper.validate("quote.pdf", PDF) == "application/pdf"


@pytest.mark.parametrize("name, data", [
    ("notes.txt", b"hello world"),             # extension not allowed
    ("fake.png", b"just some text, no image"), # content does not match
    ("empty.png", b""),
    ("huge.png", PNG + b"\x00" * 2048),
])
def test_validate_rejects(helper, name, data):
    with pytest.raises(InvalidFileException):
        helper.validate(name, data)


def test_read_strips_client_path(helper):
    pending = helper.read(_upload("../../etc/photo.png", PNG))
    assert pending.file_name == "photo.png"
    assert pending.extension == ".png"


def test_store_missing_a_method_cannot_be_created():
    class PutOnly(ObjectStore):
        def put(self, key, data, content_type):
            pass

    with pytest.raises(TypeError):
        PutOnly()


def test_object_key_layout(helper):
    a = helper.object_key("products/chair/", ".png")
    b = helper.object_key("products/chair/", ".png")
    assert a.startswith("products/chair/") and a.endswith(".png")
    assert a != b


# ─── Capacity ─────────────────────────────────────────────────────────────────
def test_capacity_counts_removed_files(helper):
    helper.ensure_capacity(existing=4, removed=2, added=2)
    with pytest.raises(InvalidFileException):
        helper.ensure_capacity(existing=4, removed=1, added=2)


def test_ceiling_checked_before_any_upload(helper, store, db):
    files = [PendingFile(f"{i}.png", PNG, "image/png", ".png") for i in range(6)]

    with pytest.raises(InvalidFileException):
        helper.replace_attachment(db, "categories/chairs", files, lambda stored: None,
                                  existing_count=0)
    assert store.puts == []


# ─── Compensation ─────────────────────────────────────────────────────────────
def test_failed_commit_removes_fresh_uploads(helper, store, db, fail_commit):
    c = Category(name="Chairs", slug="chairs")
    fail_commit(1)

    def apply(stored):
        c.image = stored[0].to_model()
        db.add(c)

    with pytest.raises(PersistenceFailedException):
        helper.replace_attachment(db, "categories/chairs", [_upload("a.png", PNG)], apply)

    assert len(store.puts) == 1
    assert store.deletes == store.puts
    assert store.objects == {}
    assert db.query(StoredAttachment).count() == 0
    assert db.query(Category).count() == 0


def test_failing_apply_removes_fresh_uploads(helper, store, db):
    def apply(stored):
        raise ValueError("boom")

    with pytest.raises(ValueError):
        helper.replace_attachment(db, "x", [_upload("a.png", PNG)], apply)
    assert store.objects == {}


def test_slug_clash_on_commit_is_a_duplicate(helper, store, db):
    db.add(Category(name="Chairs", slug="chairs"))
    db.commit()

    def apply(stored):
        db.add(Category(name="Chairs again", slug="chairs", image=stored[0].to_model()))

    with pytest.raises(DuplicateEntryException):
        helper.replace_attachment(db, "categories/chairs", [_upload("a.png", PNG)], apply,
                                  duplicate_field="slug")
    assert store.objects == {}


def test_other_integrity_errors_are_not_reported_as_duplicates(helper, store, db):
    def apply(stored):
        # no owner set, so the one-owner check fails
        db.add(stored[0].to_model())

    with pytest.raises(PersistenceFailedException):
        helper.replace_attachment(db, "categories/chairs", [_upload("a.png", PNG)], apply,
                                  duplicate_field="slug")
    assert store.objects == {}
    assert db.query(StoredAttachment).count() == 0


def test_partial_batch_upload_is_compensated(helper, store, db):
    store.fail_put_after = 2
    files = [_upload(f"{i}.png", PNG) for i in range(3)]

    with pytest.raises(StorageUnavailableException):
        helper.replace_attachment(db, "products/p", files, lambda stored: None)
    assert sorted(store.deletes) == sorted(store.puts)
    assert store.objects == {}


def test_discard_reports_failures_without_raising(helper, store):
    store.fail_delete = True
    report = helper.discard(["a", "", "b"])
    assert report.failed == ["a", "b"]
    assert not report.ok


# ─── Through the HTTP layer ───────────────────────────────────────────────────
def test_create_category_with_image(client, admin_headers, store, db):
    resp = client.post("/admin/categories", data=_category_form(),
                       files={"image": ("chairs.png", PNG, "image/png")}, headers=admin_headers)

    assert resp.status_code == 201, resp.text
    image = resp.json()["data"]["image"]
    assert image["objectKey"].startswith("categories/chairs/")
    assert image["url"] == f"https://cdn.shop.com/bucket/{image['objectKey']}"
    assert image["mimeType"] == "image/png"
    assert list(store.objects) == [image["objectKey"]]


def test_create_category_db_failure_leaves_nothing_behind(client, admin_headers, store, db, fail_commit):
    fail_commit(1)
    resp = client.post("/admin/categories", data=_category_form(),
                       files={"image": ("chairs.png", PNG, "image/png")}, headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "PERSISTENCE_FAILED"
    assert store.objects == {}
    assert db.query(StoredAttachment).count() == 0
    assert db.query(Category).count() == 0


def test_replace_image_deletes_old_object_after_commit(client, admin_headers, store, db):
    created = client.post("/admin/categories", data=_category_form(),
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]
    old_key = created["image"]["objectKey"]

    resp = client.patch(f"/admin/categories/{created['id']}",
                        files={"image": ("b.jpg", JPEG, "image/jpeg")}, headers=admin_headers)

    assert resp.status_code == 200, resp.text
    new_key = resp.json()["data"]["image"]["objectKey"]
    assert new_key != old_key
    assert list(store.objects) == [new_key]
    assert store.deletes == [old_key]
    assert [a.objectKey for a in db.query(StoredAttachment).all()] == [new_key]


def test_replace_image_db_failure_keeps_old_reference_and_object(client, admin_headers, store, db, fail_commit):
    created = client.post("/admin/categories", data=_category_form(),
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]
    old_key = created["image"]["objectKey"]
    fail_commit(1)

    resp = client.patch(f"/admin/categories/{created['id']}",
                        files={"image": ("b.jpg", JPEG, "image/jpeg")}, headers=admin_headers)

    assert resp.status_code == 500
    assert list(store.objects) == [old_key]
    db.expire_all()
    assert db.query(Category).one().image.objectKey == old_key


def test_cleanup_failure_does_not_fail_the_request(client, admin_headers, store):
    created = client.post("/admin/categories", data=_category_form(),
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]
    store.fail_delete = True

    resp = client.patch(f"/admin/categories/{created['id']}",
                        files={"image": ("b.png", PNG, "image/png")}, headers=admin_headers)

    assert resp.status_code == 200
    # The old object is orphaned, never the new reference dangling
    assert resp.json()["data"]["image"]["objectKey"] in store.objects


def test_upload_failure_is_502_and_stores_nothing(client, admin_headers, store, db):
    store.fail_put_after = 0
    resp = client.post("/admin/categories", data=_category_form(),
                       files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers)

    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "STORAGE_UNAVAILABLE"
    assert db.query(Category).count() == 0


def test_invalid_file_rejected_before_storage(client, admin_headers, store, db):
    resp = client.post("/admin/categories", data=_category_form(),
                       files={"image": ("a.png", b"plain text", "image/png")}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_FILE"
    assert store.puts == []
    assert db.query(Category).count() == 0


def test_sixth_image_rejected_before_any_storage_call(client, admin_headers, store, db):
    db.add(Category(name="Chairs", slug="chairs"))
    db.commit()
    category_id = db.query(Category).one().id

    payload = {"name": "Oak chair", "price": 120, "quantity": 3, "categoryIds": [category_id]}
    files = [("images", (f"{i}.png", PNG, "image/png")) for i in range(6)]
    resp = client.post("/admin/products", data={"data": json.dumps(payload)}, files=files, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_FILE"
    assert store.puts == []
    assert db.query(Product).count() == 0


def test_delete_category_removes_object_after_row(client, admin_headers, store, db):
    created = client.post("/admin/categories", data=_category_form(),
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]

    resp = client.delete(f"/admin/categories/{created['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert store.objects == {}
    assert db.query(StoredAttachment).count() == 0


def test_delete_db_failure_keeps_object(client, admin_headers, store, fail_commit):
    created = client.post("/admin/categories", data=_category_form(),
                          files={"image": ("a.png", PNG, "image/png")}, headers=admin_headers).json()["data"]
    fail_commit(1)

    resp = client.delete(f"/admin/categories/{created['id']}", headers=admin_headers)

    assert resp.status_code == 500
    assert created["image"]["objectKey"] in store.objects
