"""
Keeps rows that reference stored files consistent with the object store.

The database and the bucket share no transaction, so every write follows a
fixed order:

    validate -> upload new -> commit row changes -> delete old

A failed commit deletes what was just uploaded (compensation); old objects
are only deleted once the new state is committed. Both directions prefer an
orphaned object to a row pointing at nothing. Deletes are best effort: they
are logged and reported, never raised.
"""
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

import filetype
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import AttachmentConfig
from app.models.attachment import StoredAttachment
from app.utils.storage import ObjectStore, StorageError
from app.utils.exceptions import (
    InvalidFileException, PersistenceFailedException,
    DuplicateEntryException, StorageUnavailableException,
)

logger = logging.getLogger(__name__)


def _violates_column(exc: IntegrityError, column: str) -> bool:
    """
    True when the failed constraint is on `column`. Postgres reports the
    constraint name (ix_categories_slug), SQLite the column (categories.slug).
    """
    diag = getattr(exc.orig, "diag", None)
    name = getattr(diag, "constraint_name", None) or str(exc.orig)
    return re.search(rf"[._]{re.escape(column)}\b", name) is not None


@dataclass(frozen=True)
class PendingFile:
    """An upload that passed validation and is held in memory."""
    file_name: str
    data:      bytes
    mime_type: str
    extension: str


@dataclass(frozen=True)
class StoredFile:
    public_url:  str
    object_key:  str
    mime_type:   str
    size_bytes:  int
    file_name:   str | None
    uploaded_at: datetime

    def to_model(self, position: int = 0) -> StoredAttachment:
        return StoredAttachment(
            publicUrl=self.public_url,
            objectKey=self.object_key,
            mimeType=self.mime_type,
            sizeBytes=self.size_bytes,
            fileName=self.file_name,
            position=position,
            uploadedAt=self.uploaded_at,
        )


@dataclass
class CleanupReport:
    """Outcome of a best-effort delete. Callers may ignore it."""
    deleted: list[str] = field(default_factory=list)
    failed:  list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def serialize_attachment(a: StoredAttachment | None) -> dict | None:
    if a is None:
        return None
    return {
        "url":        a.publicUrl,
        "objectKey":  a.objectKey,
        "mimeType":   a.mimeType,
        "sizeBytes":  a.sizeBytes,
        "fileName":   a.fileName,
        "uploadedAt": a.uploadedAt.isoformat() if a.uploadedAt else None,
    }


class AttachmentHelper:

    def __init__(self, cfg: AttachmentConfig, store: ObjectStore):
        self.cfg = cfg
        self.store = store

    # ─── Validation ───────────────────────────────────────────────────────────
    def validate(self, file_name: str, data: bytes) -> str:
        """Size, extension and sniffed content type. Returns the sniffed MIME type."""
        if len(data) > self.cfg.max_size_bytes:
            raise InvalidFileException(f"file too large (max {self.cfg.max_size_bytes >> 20} MB)")
        if not data:
            raise InvalidFileException("file is empty")

        ext = os.path.splitext(file_name or "")[1].lower()
        if ext not in self.cfg.allowed_extensions:
            raise InvalidFileException("invalid file extension")

        mime = (filetype.guess_mime(data) or "").lower()
        if mime not in self.cfg.allowed_mime_types:
            raise InvalidFileException("invalid file type")
        return mime

    def read(self, upload: UploadFile) -> PendingFile:
        # One byte past the limit is enough to know the file is too large
        data = upload.file.read(self.cfg.max_size_bytes + 1)
        name = os.path.basename(upload.filename or "")
        mime = self.validate(name, data)
        return PendingFile(
            file_name=name,
            data=data,
            mime_type=mime,
            extension=os.path.splitext(name)[1].lower(),
        )

    def ensure_capacity(self, existing: int, removed: int, added: int, ceiling: int | None = None) -> None:
        ceiling = self.cfg.max_product_images if ceiling is None else ceiling
        total = existing - removed + added
        if total > ceiling:
            raise InvalidFileException(f"at most {ceiling} files allowed, got {total}")

    # ─── Storage ──────────────────────────────────────────────────────────────
    @staticmethod
    def object_key(prefix: str, extension: str) -> str:
        return f"{prefix.strip('/')}/{time.time_ns()}-{uuid.uuid4().hex}{extension}"

    def upload(self, prefix: str, pending: PendingFile) -> StoredFile:
        key = self.object_key(prefix, pending.extension)
        self.store.put(key, pending.data, pending.mime_type)
        return StoredFile(
            public_url=self.store.public_url(key),
            object_key=key,
            mime_type=pending.mime_type,
            size_bytes=len(pending.data),
            file_name=pending.file_name or None,
            uploaded_at=datetime.now(timezone.utc),
        )

    def upload_all(self, prefix: str, pending: Sequence[PendingFile]) -> list[StoredFile]:
        uploaded: list[StoredFile] = []
        for p in pending:
            try:
                uploaded.append(self.upload(prefix, p))
            except StorageError:
                logger.exception(f"Upload under {prefix} failed after {len(uploaded)} file(s)")
                self.discard([u.object_key for u in uploaded])
                raise StorageUnavailableException()
        return uploaded

    def discard(self, keys: Iterable[str]) -> CleanupReport:
        report = CleanupReport()
        for key in keys:
            if not key:
                continue
            try:
                self.store.delete(key)
                report.deleted.append(key)
            except StorageError:
                logger.warning(f"Could not delete stored object {key}, left orphaned", exc_info=True)
                report.failed.append(key)
        return report

    # ─── Database + storage ───────────────────────────────────────────────────
    def commit(
        self,
        db: Session,
        uploaded: Sequence[StoredFile] = (),
        old_keys: Iterable[str] = (),
        duplicate_field: str | None = None,
    ) -> CleanupReport:
        """
        Commit whatever the caller staged on `db`. On failure the fresh uploads
        are deleted and the error is raised; on success the old objects are.
        """
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            self.discard([u.object_key for u in uploaded])
            if duplicate_field and _violates_column(exc, duplicate_field):
                raise DuplicateEntryException(f"{duplicate_field} already exists", field=duplicate_field)
            logger.exception("Integrity error while saving attachment references")
            raise PersistenceFailedException()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Database write failed, compensating uploads")
            self.discard([u.object_key for u in uploaded])
            raise PersistenceFailedException()

        return self.discard(old_keys)

    def replace_attachment(
        self,
        db: Session,
        prefix: str,
        files: Sequence[UploadFile | PendingFile],
        apply: Callable[[list[StoredFile]], None],
        old_keys: Iterable[str] = (),
        *,
        existing_count: int | None = None,
        removed_count: int = 0,
        ceiling: int | None = None,
        duplicate_field: str | None = None,
    ) -> list[StoredFile]:
        """
        Full write sequence for a row carrying attachments.

        `apply` receives the stored files and stages the row changes on `db`
        (set new references, drop old ones); it must not commit. When
        `existing_count` is given the ceiling is enforced before any upload.
        """
        pending = [f if isinstance(f, PendingFile) else self.read(f) for f in files]
        if existing_count is not None:
            self.ensure_capacity(existing_count, removed_count, len(pending), ceiling)

        uploaded = self.upload_all(prefix, pending)
        try:
            apply(uploaded)
        except Exception:
            db.rollback()
            self.discard([u.object_key for u in uploaded])
            raise

        self.commit(db, uploaded, old_keys, duplicate_field=duplicate_field)
        return uploaded

    def delete_attachment(self, db: Session, keys: Iterable[str]) -> CleanupReport:
        """
        The caller has staged the removal of the owning row or reference. It is
        committed first; objects are deleted only after that succeeds.
        """
        keys = list(keys)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Could not remove attachment references")
            raise PersistenceFailedException()
        return self.discard(keys)
