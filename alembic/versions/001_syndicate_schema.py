"""Create the Syndicate+ schema: firms, deals, invitations, NDAs, interest.

Revision ID: 001_syndicate_schema
Revises:
Create Date: 2026-10-19

Foreign keys cascade on delete so removing a firm removes its deals,
invitations and NDAs. NDAs are unique per (deal_id, firm_id), and
at most one invitation per (deal_id, to_firm_id) may be pending.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers, used by Alembic.
revision: str = "001_syndicate_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ── firms table ─────────────────────────────────────────────────────

    op.create_table(
        "firms",
        _id_column(),
        sa.Column("firm_name", sa.String(300), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), server_default=sa.text("'user'"), nullable=False),
        sa.Column("status", sa.String(20), server_default=sa.text("'active'"), nullable=False),
        sa.Column("profile", sa.JSON(), server_default=sa.text("'{}'::json"), nullable=False),
        _created_at_column(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── deals table ─────────────────────────────────────────────────────

    op.create_table(
        "deals",
        _id_column(),
        sa.Column(
            "owner_firm_id",
            UUID(as_uuid=True),
            sa.ForeignKey("firms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("deal_name", sa.String(300), nullable=False),
        sa.Column("sector", sa.String(200), nullable=False),
        sa.Column("jurisdiction", sa.String(200), nullable=False),
        sa.Column("deal_type", sa.String(200), nullable=False),
        sa.Column("target_amount", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("target_investor_profile", sa.Text(), nullable=True),
        sa.Column("status", sa.String(30), server_default=sa.text("'draft'"), nullable=False),
        sa.Column(
            "syndicate_members", JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        sa.Column(
            "invited_firms", JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        _created_at_column(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_deals_owner_firm_id", "deals", ["owner_firm_id"])

    # ── invitations table ───────────────────────────────────────────────

    op.create_table(
        "invitations",
        _id_column(),
        sa.Column(
            "deal_id",
            UUID(as_uuid=True),
            sa.ForeignKey("deals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "from_firm_id",
            UUID(as_uuid=True),
            sa.ForeignKey("firms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "to_firm_id",
            UUID(as_uuid=True),
            sa.ForeignKey("firms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        _created_at_column(),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_invitations_to_firm_id", "invitations", ["to_firm_id"])
    op.create_index("ix_invitations_from_firm_id", "invitations", ["from_firm_id"])
    op.create_index("ix_invitations_deal_id", "invitations", ["deal_id"])
    op.create_index(
        "uq_invitations_pending_deal_firm",
        "invitations",
        ["deal_id", "to_firm_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    # ── ndas table ──────────────────────────────────────────────────────

    op.create_table(
        "ndas",
        _id_column(),
        sa.Column(
            "deal_id",
            UUID(as_uuid=True),
            sa.ForeignKey("deals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "firm_id",
            UUID(as_uuid=True),
            sa.ForeignKey("firms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "signed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("deal_id", "firm_id", name="uq_nda_deal_firm"),
    )

    # ── interest_registrations table ────────────────────────────────────

    op.create_table(
        "interest_registrations",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("company", sa.String(300), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        _created_at_column(),
    )


def downgrade() -> None:
    op.drop_table("interest_registrations")
    op.drop_table("ndas")
    op.drop_index("uq_invitations_pending_deal_firm", table_name="invitations")
    op.drop_index("ix_invitations_deal_id", table_name="invitations")
    op.drop_index("ix_invitations_from_firm_id", table_name="invitations")
    op.drop_index("ix_invitations_to_firm_id", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("ix_deals_owner_firm_id", table_name="deals")
    op.drop_table("deals")
    op.drop_table("firms")
