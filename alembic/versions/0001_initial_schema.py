"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TS = sa.TIMESTAMP(timezone=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("createdAt", TS, server_default=sa.func.now(), nullable=False),
        sa.Column("updatedAt", TS, server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", name="rolename"), nullable=False),
        sa.Column("isActive", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("userId", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.Text, nullable=False, unique=True),
        sa.Column("expiresAt", TS, nullable=False),
        sa.Column("createdAt", TS, nullable=False),
        sa.Column("revokedAt", TS, nullable=True),
        sa.Column("replacedBy", sa.Text, nullable=True),
    )
    op.create_index("ix_refresh_tokens_userId", "refresh_tokens", ["userId"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(220), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("isActive", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(220), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("descriptionFull", sa.Text, nullable=True),
        sa.Column("dimensions", sa.String(200), nullable=True),
        sa.Column("weight", sa.String(100), nullable=True),
        sa.Column("materials", sa.JSON, nullable=False),
        sa.Column("colors", sa.JSON, nullable=False),
        sa.Column("isTrending", sa.Boolean, nullable=False),
        sa.Column("isDisabled", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_products_slug", "products", ["slug"], unique=True)
    op.create_index("ix_products_isTrending", "products", ["isTrending"])

    op.create_table(
        "product_categories",
        sa.Column("productId", sa.Integer, sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("categoryId", sa.Integer, sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    quote_status = sa.Enum("NEW", "IN_PROGRESS", "QUOTED", "REJECTED", "CLOSED", name="quotestatus")
    op.create_table(
        "quote_requests",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("fullName", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("address", sa.String(300), nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("status", quote_status, nullable=False),
        sa.Column("quotedAt", TS, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_quote_requests_email", "quote_requests", ["email"])
    op.create_index("ix_quote_requests_status", "quote_requests", ["status"])

    op.create_table(
        "quote_request_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("quoteRequestId", sa.Integer, sa.ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("productId", sa.Integer, sa.ForeignKey("products.id", ondelete="SET NULL"), nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("productName", sa.String(200), nullable=True),
        sa.Column("productSlug", sa.String(220), nullable=True),
        sa.Column("unitPrice", sa.Numeric(12, 2), nullable=True),
    )

    op.create_table(
        "quote_notes",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("quoteRequestId", sa.Integer, sa.ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("authorId", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("authorEmail", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("createdAt", TS, nullable=False),
    )

    request_status = sa.Enum("NEW", "IN_PROGRESS", "ANSWERED", "REJECTED", "CLOSED", name="productrequeststatus")
    op.create_table(
        "product_requests",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("fullName", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("company", sa.String(200), nullable=True),
        sa.Column("vatNumber", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("desiredDeadline", TS, nullable=True),
        sa.Column("budget", sa.String(100), nullable=True),
        sa.Column("referenceUrl", sa.String(1000), nullable=True),
        sa.Column("status", request_status, nullable=False),
        sa.Column("answeredAt", TS, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_product_requests_email", "product_requests", ["email"])
    op.create_index("ix_product_requests_status", "product_requests", ["status"])

    op.create_table(
        "product_request_notes",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("productRequestId", sa.Integer,
                  sa.ForeignKey("product_requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("authorId", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("authorEmail", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("createdAt", TS, nullable=False),
    )

    op.create_table(
        "stored_attachments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("categoryId", sa.Integer, sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=True),
        sa.Column("productId", sa.Integer, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=True),
        sa.Column("productRequestId", sa.Integer,
                  sa.ForeignKey("product_requests.id", ondelete="CASCADE"), nullable=True),
        sa.Column("quoteNoteId", sa.Integer, sa.ForeignKey("quote_notes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("productRequestNoteId", sa.Integer,
                  sa.ForeignKey("product_request_notes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("publicUrl", sa.String(1000), nullable=False),
        sa.Column("objectKey", sa.String(500), nullable=False, unique=True),
        sa.Column("mimeType", sa.String(100), nullable=False),
        sa.Column("sizeBytes", sa.BigInteger, nullable=False),
        sa.Column("fileName", sa.String(255), nullable=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("uploadedAt", TS, nullable=False),
        sa.CheckConstraint(
            '(CASE WHEN "categoryId"           IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productId"            IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productRequestId"     IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "quoteNoteId"          IS NOT NULL THEN 1 ELSE 0 END +'
            ' CASE WHEN "productRequestNoteId" IS NOT NULL THEN 1 ELSE 0 END) = 1',
            name="chk_one_owner",
        ),
    )


def downgrade() -> None:
    for table in (
        "stored_attachments", "product_request_notes", "product_requests",
        "quote_notes", "quote_request_items", "quote_requests",
        "product_categories", "products", "categories",
        "refresh_tokens", "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_name in ("productrequeststatus", "quotestatus", "rolename"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
