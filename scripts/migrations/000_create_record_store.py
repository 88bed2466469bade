"""create organization and horse record tables

Share links reference these; 001 builds on top of them.

Revision ID: 000
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "000"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.String(36), primary_key=True)


def _fk(name, target):
    return sa.Column(
        name, sa.String(36),
        sa.ForeignKey(f"{target}.id", ondelete="CASCADE"), nullable=False, index=True,
    )


def upgrade():
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        sa.Column("postal_code", sa.String(32), nullable=True),
        sa.Column("country", sa.String(128), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("logo_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "organization_contacts",
        _id(),
        _fk("organization_id", "organizations"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(128), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "organization_users",
        _id(),
        _fk("organization_id", "organizations"),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column(
            "role",
            sa.Enum("admin", "read_only", name="memberrole"),
            nullable=False,
            server_default="read_only",
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("organization_id", "user_id"),
    )

    pedigree = [
        sa.Column(f"pedigree_{name}", sa.String(255), nullable=True)
        for name in (
            "sire", "dam",
            "sire_sire", "sire_dam", "dam_sire", "dam_dam",
            "sire_sire_sire", "sire_sire_dam", "sire_dam_sire", "sire_dam_dam",
            "dam_sire_sire", "dam_sire_dam", "dam_dam_sire", "dam_dam_dam",
        )
    ]
    op.create_table(
        "horses",
        _id(),
        _fk("organization_id", "organizations"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("breed", sa.String(128), nullable=False, server_default=""),
        sa.Column("birth_year", sa.Integer, nullable=True),
        sa.Column("color", sa.String(64), nullable=False, server_default=""),
        sa.Column("gender", sa.String(16), nullable=False, server_default=""),
        sa.Column("height", sa.String(32), nullable=False, server_default=""),
        sa.Column("weight", sa.Integer, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="Available"),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        *pedigree,
        sa.Column("health_vaccinations", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("health_coggins", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("health_last_vet_check", sa.Date, nullable=True),
        sa.Column("training_level", sa.String(64), nullable=False, server_default=""),
        sa.Column("training_disciplines", sa.JSON, nullable=False),
        sa.Column("date_added", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "horse_images",
        _id(),
        _fk("horse_id", "horses"),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("caption", sa.String(512), nullable=True),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "horse_videos",
        _id(),
        _fk("horse_id", "horses"),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("caption", sa.String(512), nullable=True),
        sa.Column("thumbnail", sa.String(1024), nullable=True),
    )
    op.create_table(
        "competitions",
        _id(),
        _fk("horse_id", "horses"),
        sa.Column("event", sa.String(255), nullable=False),
        sa.Column("date", sa.Date, nullable=True),
        sa.Column("discipline", sa.String(128), nullable=False, server_default=""),
        sa.Column("placement", sa.String(64), nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("equipe_link", sa.String(1024), nullable=True),
    )
    op.create_table(
        "horse_xrays",
        _id(),
        _fk("horse_id", "horses"),
        _fk("organization_id", "organizations"),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column(
            "file_type",
            sa.Enum("upload", "url", name="xrayfiletype"),
            nullable=False,
            server_default="upload",
        ),
        sa.Column("format", sa.String(16), nullable=False, server_default="dicom"),
        sa.Column("date_taken", sa.Date, nullable=True),
        sa.Column("body_part", sa.String(128), nullable=True),
        sa.Column("veterinarian_name", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
    )


def downgrade():
    for table in (
        "horse_xrays", "competitions", "horse_videos", "horse_images",
        "horses", "organization_users", "organization_contacts", "organizations",
    ):
        op.drop_table(table)
    op.execute("DROP TYPE IF EXISTS xrayfiletype")
    op.execute("DROP TYPE IF EXISTS memberrole")
