from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.category import Category
from app.models.product import Product
from app.schemas.product import ProductCreateRequest, ProductUpdateRequest
from app.services.attachment_service import AttachmentHelper, StoredFile, serialize_attachment
from app.utils.slug import generate_slug
from app.utils.exceptions import (
    NotFoundException, DuplicateEntryException, BadRequestException, InvalidFileException,
)


def _serialize(p: Product) -> dict:
    return {
        "id":              p.id,
        "name":            p.name,
        "slug":            p.slug,
        "price":           float(p.price) if p.price is not None else None,
        "quantity":        p.quantity,
        "description":     p.description,
        "descriptionFull": p.descriptionFull,
        "dimensions":      p.dimensions,
        "weight":          p.weight,
        "materials":       p.materials or [],
        "colors":          p.colors or [],
        "isTrending":      p.isTrending,
        "isDisabled":      p.isDisabled,
        "categories":      [{"id": c.id, "name": c.name, "slug": c.slug} for c in p.categories],
        "images":          [serialize_attachment(a) for a in p.images],
        "createdAt":       p.createdAt.isoformat() if p.createdAt else None,
        "updatedAt":       p.updatedAt.isoformat() if p.updatedAt else None,
    }


class ProductService:

    def _get(self, db: Session, product_id: int) -> Product:
        p = db.query(Product).filter(Product.id == product_id).first()
        if not p:
            raise NotFoundException("Product")
        return p

    def _categories(self, db: Session, ids: list[int]) -> list[Category]:
        wanted = set(ids)
        found = db.query(Category).filter(Category.id.in_(list(wanted))).all()
        if len(found) != len(wanted):
            raise NotFoundException("Category")
        return found

    def _ensure_slug_free(self, db: Session, slug: str, exclude_id: int | None = None) -> None:
        q = db.query(Product.id).filter(Product.slug == slug)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise DuplicateEntryException("slug already exists", field="slug")

    # ─── Read ─────────────────────────────────────────────────────────────────
    def list_products(
        self, db: Session, page: int, limit: int,
        search: str | None, category_id: int | None,
        is_trending: bool | None, include_disabled: bool,
    ) -> tuple[list[dict], int]:
        q = db.query(Product)

        if search:
            kw = f"%{search.strip()}%"
            q = q.filter(or_(Product.name.ilike(kw), Product.description.ilike(kw)))
        if category_id is not None:
            q = q.filter(Product.categories.any(Category.id == category_id))
        if is_trending is not None:
            q = q.filter(Product.isTrending == is_trending)
        if not include_disabled:
            q = q.filter(Product.isDisabled.is_(False))

        total = q.count()
        items = q.order_by(Product.createdAt.desc(), Product.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(p) for p in items], total

    def featured(self, db: Session, limit: int) -> list[dict]:
        items = (
            db.query(Product)
            .filter(Product.isTrending.is_(True), Product.isDisabled.is_(False))
            .order_by(Product.createdAt.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )
        return [_serialize(p) for p in items]

    def get_product(self, db: Session, product_id: int) -> dict:
        return _serialize(self._get(db, product_id))

    def get_by_slug(self, db: Session, slug: str) -> dict:
        p = db.query(Product).filter(Product.slug == slug.strip().lower()).first()
        if not p:
            raise NotFoundException("Product")
        return _serialize(p)

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_product(
        self, db: Session, helper: AttachmentHelper,
        data: ProductCreateRequest, images: list[UploadFile],
    ) -> dict:
        if not images:
            raise InvalidFileException("at least one image is required", field="images")

        slug = generate_slug(data.slug or data.name)
        if not slug:
            raise BadRequestException("slug could not be generated from name", field="slug")
        self._ensure_slug_free(db, slug)
        categories = self._categories(db, data.categoryIds)

        p = Product(
            name=data.name,
            slug=slug,
            price=data.price,
            quantity=data.quantity,
            description=data.description,
            descriptionFull=data.descriptionFull,
            dimensions=data.dimensions,
            weight=data.weight,
            materials=data.materials,
            colors=data.colors,
            isTrending=data.isTrending,
            isDisabled=data.isDisabled,
        )

        def apply(stored: list[StoredFile]) -> None:
            p.categories = categories
            p.images = [s.to_model(position=i) for i, s in enumerate(stored)]
            db.add(p)

        helper.replace_attachment(
            db, f"products/{slug}", images, apply,
            existing_count=0, duplicate_field="slug",
        )
        db.refresh(p)
        return _serialize(p)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_product(
        self, db: Session, helper: AttachmentHelper, product_id: int,
        data: ProductUpdateRequest, images: list[UploadFile],
    ) -> dict:
        p = self._get(db, product_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True,
                                  exclude={"removedImageUrls", "categoryIds"})
        if not changes and data.categoryIds is None and not data.removedImageUrls and not images:
            raise BadRequestException("no updates provided")

        if "slug" in changes:
            changes["slug"] = generate_slug(changes["slug"])
            if not changes["slug"]:
                raise BadRequestException("invalid slug", field="slug")
            if changes["slug"] != p.slug:
                self._ensure_slug_free(db, changes["slug"], exclude_id=p.id)
        categories = self._categories(db, data.categoryIds) if data.categoryIds is not None else None

        to_remove = set(data.removedImageUrls)
        removed = [a for a in p.images if a.publicUrl in to_remove]
        existing = len(p.images)
        if existing - len(removed) + len(images) < 1:
            raise InvalidFileException("a product needs at least one image", field="images")

        def apply(stored: list[StoredFile]) -> None:
            for field, value in changes.items():
                setattr(p, field, value)
            if categories is not None:
                p.categories = categories
            kept = [a for a in p.images if a not in removed]
            for i, a in enumerate(kept):
                a.position = i
            p.images = kept + [s.to_model(position=len(kept) + i) for i, s in enumerate(stored)]

        helper.replace_attachment(
            db, f"products/{changes.get('slug', p.slug)}", images, apply,
            [a.objectKey for a in removed],
            existing_count=existing, removed_count=len(removed), duplicate_field="slug",
        )
        db.refresh(p)
        return _serialize(p)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_product(self, db: Session, helper: AttachmentHelper, product_id: int) -> None:
        p = self._get(db, product_id)
        keys = [a.objectKey for a in p.images]
        db.delete(p)
        helper.delete_attachment(db, keys)


product_service = ProductService()
