"""
Initial MemberHub schema.

- users (tier, role, purchases)
- content + content_likes + poll_votes + comments + feed_entries
- products + orders + order_items
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision = "20261019_01_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str = "id", **kw) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kw)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        _uuid(primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=True),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default=sa.text("'member'")),
        sa.Column("tier", sa.String(length=32), nullable=False, server_default=sa.text("'basic'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "purchased_product_ids",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_timestamps(),
        sa.CheckConstraint("length(btrim(email)) > 0", name="ck_users_email_not_blank"),
        sa.CheckConstraint("(username IS NULL) OR (length(btrim(username)) > 0)", name="ck_users_username_not_blank"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("uq_users_email_lower", "users", [sa.text("lower(email)")], unique=True)
    op.create_index(
        "uq_users_username_lower",
        "users",
        [sa.text("lower(username)")],
        unique=True,
        postgresql_where=sa.text("username IS NOT NULL"),
    )
    op.create_index("ix_users_tier", "users", ["tier"])

    # --- content ---
    op.create_table(
        "content",
        _uuid(primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("tier", sa.String(length=32), nullable=False, server_default=sa.text("'basic'")),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("video_id", sa.String(length=64), nullable=True),
        sa.Column("media_url", sa.String(length=1024), nullable=True),
        sa.Column("poll_options", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("poll_multiple_choice", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("poll_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _uuid("created_by", nullable=True),
        *_timestamps(),
        sa.CheckConstraint("likes_count >= 0", name="ck_content_likes_non_negative"),
        sa.CheckConstraint("comments_count >= 0", name="ck_content_comments_non_negative"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_content_created_by_users", ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_content"),
    )
    op.create_index("ix_content_created_at", "content", ["created_at"])
    op.create_index("ix_content_type_tier", "content", ["type", "tier"])
    op.create_index("ix_content_video_id", "content", ["video_id"])

    op.create_table(
        "content_likes",
        _uuid(primary_key=True, nullable=False),
        _uuid("content_id", nullable=False),
        _uuid("user_id", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], name="fk_content_likes_content_id_content", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_content_likes_user_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_content_likes"),
        sa.UniqueConstraint("content_id", "user_id", name="uq_content_likes_content_user"),
    )

    op.create_table(
        "poll_votes",
        _uuid(primary_key=True, nullable=False),
        _uuid("content_id", nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("option", sa.String(length=200), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], name="fk_poll_votes_content_id_content", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_poll_votes_user_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_poll_votes"),
        sa.UniqueConstraint("content_id", "user_id", "option", name="uq_poll_votes_content_user_option"),
    )
    op.create_index("ix_poll_votes_content_user", "poll_votes", ["content_id", "user_id"])

    op.create_table(
        "comments",
        _uuid(primary_key=True, nullable=False),
        _uuid("content_id", nullable=False),
        _uuid("user_id", nullable=False),
        _uuid("parent_id", nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("length(text) BETWEEN 1 AND 1000", name="ck_comments_text_length"),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], name="fk_comments_content_id_content", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_comments_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["comments.id"], name="fk_comments_parent_id_comments", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index("ix_comments_content_created", "comments", ["content_id", "created_at"])

    op.create_table(
        "feed_entries",
        _uuid(primary_key=True, nullable=False),
        _uuid("content_id", nullable=False),
        _uuid("added_by", nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], name="fk_feed_entries_content_id_content", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["added_by"], ["users.id"], name="fk_feed_entries_added_by_users", ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_feed_entries"),
        sa.UniqueConstraint("content_id", name="uq_feed_entries_content_id"),
    )
    op.create_index("ix_feed_entries_created_at", "feed_entries", ["created_at"])

    # --- storefront ---
    op.create_table(
        "products",
        _uuid(primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("in_stock", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("free_shipping", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("shipping_info", sa.String(length=200), nullable=True),
        sa.Column("rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("reviews_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_tier", sa.String(length=32), nullable=True),
        sa.Column("discount_percentage", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint(
            "(discount_percentage IS NULL) OR (discount_percentage BETWEEN 0 AND 100)",
            name="ck_products_discount_percentage_range",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
    )
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "orders",
        _uuid(primary_key=True, nullable=False),
        sa.Column("order_number", sa.String(length=32), nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("payment_status", sa.String(length=16), nullable=False),
        sa.Column("shipping_method", sa.String(length=16), nullable=False),
        sa.Column("shipping_address", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.Numeric(10, 2), nullable=False),
        sa.Column("shipping", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_orders_user_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_orders"),
        sa.UniqueConstraint("order_number", name="uq_orders_order_number"),
    )
    op.create_index("ix_orders_user_created", "orders", ["user_id", "created_at"])

    op.create_table(
        "order_items",
        _uuid(primary_key=True, nullable=False),
        _uuid("order_id", nullable=False),
        _uuid("product_id", nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("line_total", sa.Numeric(10, 2), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], name="fk_order_items_order_id_orders", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], name="fk_order_items_product_id_products", ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_order_items"),
    )


def downgrade() -> None:
    op.drop_table("order_items")
    op.drop_index("ix_orders_user_created", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_products_category", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_feed_entries_created_at", table_name="feed_entries")
    op.drop_table("feed_entries")
    op.drop_index("ix_comments_content_created", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_poll_votes_content_user", table_name="poll_votes")
    op.drop_table("poll_votes")
    op.drop_table("content_likes")
    op.drop_index("ix_content_video_id", table_name="content")
    op.drop_index("ix_content_type_tier", table_name="content")
    op.drop_index("ix_content_created_at", table_name="content")
    op.drop_table("content")
    op.drop_index("ix_users_tier", table_name="users")
    op.drop_index("uq_users_username_lower", table_name="users")
    op.drop_index("uq_users_email_lower", table_name="users")
    op.drop_table("users")
