from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.models.category import Category
from app.schemas.category import CategoryCreateRequest, CategoryUpdateRequest
from app.services.attachment_service import AttachmentHelper, StoredFile, serialize_attachment
from app.utils.slug import generate_slug
from app.utils.exceptions import NotFoundException, DuplicateEntryException, BadRequestException


def _serialize(c: Category) -> dict:
    return {
        "id":          c.id,
        "name":        c.name,
        "slug":        c.slug,
        "description": c.description,
        "isActive":    c.isActive,
        "image":       serialize_attachment(c.image),
        "createdAt":   c.createdAt.isoformat() if c.createdAt else None,
        "updatedAt":   c.updatedAt.isoformat() if c.updatedAt else None,
    }


def _resolve_slug(raw: str | None, name: str) -> str:
    slug = generate_slug(raw or name)
    if not slug:
        raise BadRequestException("slug could not be generated from name", field="slug")
    return slug


class CategoryService:

    def _get(self, db: Session, category_id: int) -> Category:
        c = db.query(Category).filter(Category.id == category_id).first()
        if not c:
            raise NotFoundException("Category")
        return c

    def _ensure_slug_free(self, db: Session, slug: str, exclude_id: int | None = None) -> None:
        q = db.query(Category.id).filter(Category.slug == slug)
        if exclude_id is not None:
            q = q.filter(Category.id != exclude_id)
        if q.first():
            raise DuplicateEntryException("slug already exists", field="slug")

    # ─── Read ─────────────────────────────────────────────────────────────────
    def list_categories(
        self, db: Session, page: int, limit: int,
        search: str | None, is_active: bool | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Category)
        if search:
            q = q.filter(Category.name.ilike(f"%{search.strip()}%"))
        if is_active is not None:
            q = q.filter(Category.isActive == is_active)

        total = q.count()
        items = q.order_by(Category.name).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(c) for c in items], total

    def get_category(self, db: Session, category_id: int) -> dict:
        return _serialize(self._get(db, category_id))

    def get_by_slug(self, db: Session, slug: str) -> dict:
        c = db.query(Category).filter(Category.slug == slug.strip().lower()).first()
        if not c:
            raise NotFoundException("Category")
        return _serialize(c)

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_category(
        self, db: Session, helper: AttachmentHelper,
        data: CategoryCreateRequest, image: UploadFile | None,
    ) -> dict:
        slug = _resolve_slug(data.slug, data.name)
        self._ensure_slug_free(db, slug)

        c = Category(name=data.name, slug=slug, description=data.description, isActive=data.isActive)

        def apply(stored: list[StoredFile]) -> None:
            if stored:
                c.image = stored[0].to_model()
            db.add(c)

        files = [image] if image else []
        helper.replace_attachment(db, f"categories/{slug}", files, apply, duplicate_field="slug")
        db.refresh(c)
        return _serialize(c)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_category(
        self, db: Session, helper: AttachmentHelper, category_id: int,
        data: CategoryUpdateRequest, image: UploadFile | None,
    ) -> dict:
        c = self._get(db, category_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"removeImage"})
        if not changes and not image and not data.removeImage:
            raise BadRequestException("no updates provided")

        # Renaming keeps the slug unless a new one is sent explicitly
        if "slug" in changes:
            changes["slug"] = _resolve_slug(data.slug, c.name)
            if changes["slug"] != c.slug:
                self._ensure_slug_free(db, changes["slug"], exclude_id=c.id)

        old_keys = [c.image.objectKey] if c.image and (image or data.removeImage) else []

        def apply(stored: list[StoredFile]) -> None:
            for field, value in changes.items():
                setattr(c, field, value)
            if stored:
                c.image = stored[0].to_model()
            elif data.removeImage:
                c.image = None

        files = [image] if image else []
        helper.replace_attachment(db, f"categories/{changes.get('slug', c.slug)}", files, apply,
                                  old_keys, duplicate_field="slug")
        db.refresh(c)
        return _serialize(c)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_category(self, db: Session, helper: AttachmentHelper, category_id: int) -> None:
        c = self._get(db, category_id)
        keys = [c.image.objectKey] if c.image else []
        db.delete(c)
        helper.delete_attachment(db, keys)


category_service = CategoryService()
