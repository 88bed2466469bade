"""create share link tables

Requires the organization and horse tables from 000.

Revision ID: 001
Revises: 000
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = "000"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "share_links",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "horse_id", sa.String(36),
            sa.ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
        sa.Column(
            "organization_id", sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
        sa.Column("created_by", sa.String(36), nullable=False, index=True),
        sa.Column("token", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("recipient_name", sa.String(255), nullable=False),
        sa.Column(
            "link_type",
            sa.Enum("standard", "one_time", "password_protected", name="linktype"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_views", sa.Integer, nullable=True),
        sa.Column("shared_fields", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "(link_type = 'one_time') = (max_views IS NOT NULL)",
            name="ck_share_links_max_views_one_time",
        ),
        sa.CheckConstraint(
            "(link_type = 'password_protected') = (password_hash IS NOT NULL)",
            name="ck_share_links_password_hash",
        ),
    )
    op.create_table(
        "share_link_views",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "share_link_id", sa.String(36),
            sa.ForeignKey("share_links.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("referer", sa.String(1024), nullable=True),
        sa.Column("country", sa.String(64), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("region", sa.String(128), nullable=True),
    )
    op.create_table(
        "rate_limits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("identifier", sa.String(128), nullable=False, index=True),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("window_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("blocked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("action", "identifier"),
    )


def downgrade():
    op.drop_table("rate_limits")
    op.drop_table("share_link_views")
    op.drop_table("share_links")
    op.execute("DROP TYPE IF EXISTS linktype")
