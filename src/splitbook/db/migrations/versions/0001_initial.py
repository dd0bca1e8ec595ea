"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "participants",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("conversation_id", "name", name="participants_conversation_name_key"),
    )

    op.create_table(
        "aliases",
        sa.Column("participant_id", sa.BigInteger(), sa.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("alias", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("conversation_id", "alias", name="aliases_pkey"),
    )

    op.create_table(
        "participant_groups",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.UniqueConstraint("conversation_id", "name", name="participant_groups_conversation_name_key"),
    )

    op.create_table(
        "group_members",
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("participant_groups.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("participant_id", sa.BigInteger(), sa.ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("total_cents", sa.BigInteger(), nullable=False),
        sa.Column("message", sa.Text()),
        sa.CheckConstraint("total_cents >= 0", name="expenses_total_cents_check"),
    )

    op.create_table(
        "expense_entries",
        sa.Column("expense_id", sa.BigInteger(), sa.ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("participant_id", sa.BigInteger(), sa.ForeignKey("participants.id"), primary_key=True),
        sa.Column("role", sa.Text(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("cents", sa.BigInteger(), nullable=False),
        sa.CheckConstraint("role in ('creditor','debtor')", name="expense_entries_role_check"),
        sa.CheckConstraint(
            "(role = 'creditor' AND cents >= 0) OR (role = 'debtor' AND cents <= 0)",
            name="expense_entries_sign_check",
        ),
    )

    op.create_index("idx_participants_conversation", "participants", ["conversation_id"])
    op.create_index("idx_aliases_participant", "aliases", ["participant_id"])
    op.create_index("idx_expenses_conversation", "expenses", ["conversation_id", "id"])
    op.create_index("idx_expense_entries_participant", "expense_entries", ["participant_id"])


def downgrade() -> None:
    op.drop_index("idx_expense_entries_participant", table_name="expense_entries")
    op.drop_index("idx_expenses_conversation", table_name="expenses")
    op.drop_index("idx_aliases_participant", table_name="aliases")
    op.drop_index("idx_participants_conversation", table_name="participants")

    op.drop_table("expense_entries")
    op.drop_table("expenses")
    op.drop_table("group_members")
    op.drop_table("participant_groups")
    op.drop_table("aliases")
    op.drop_table("participants")
