"""create_review_assignment_tables

Create teams, users, prs, pr_reviewers and pr_events.

Revision ID: 7c1e0a9d4b21
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "7c1e0a9d4b21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "teams" not in existing_tables:
        op.create_table(
            "teams",
            sa.Column("team_name", sa.String(length=255), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("team_name"),
        )

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("user_id", sa.String(length=255), nullable=False),
            sa.Column("username", sa.String(length=255), nullable=False),
            sa.Column("team_name", sa.String(length=255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["team_name"], ["teams.team_name"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("user_id"),
        )
        op.create_index("idx_users_team_name", "users", ["team_name"])
        op.create_index("idx_users_team_active", "users", ["team_name", "is_active"])

    if "prs" not in existing_tables:
        op.create_table(
            "prs",
            sa.Column("pr_id", sa.String(length=255), nullable=False),
            sa.Column("pr_name", sa.String(length=500), nullable=False),
            sa.Column("author_id", sa.String(length=255), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="OPEN"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("merged_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint("status IN ('OPEN', 'MERGED')", name="ck_prs_status"),
            sa.ForeignKeyConstraint(["author_id"], ["users.user_id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("pr_id"),
        )
        op.create_index("idx_prs_author", "prs", ["author_id"])

    if "pr_reviewers" not in existing_tables:
        op.create_table(
            "pr_reviewers",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("pr_id", sa.String(length=255), nullable=False),
            sa.Column("user_id", sa.String(length=255), nullable=False),
            sa.Column("slot", sa.SmallInteger(), nullable=False),
            sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["pr_id"], ["prs.pr_id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("pr_id", "slot", name="uq_pr_reviewers_slot"),
            sa.UniqueConstraint("pr_id", "user_id", name="uq_pr_reviewers_user"),
        )
        op.create_index("idx_pr_reviewers_user", "pr_reviewers", ["user_id"])

    if "pr_events" not in existing_tables:
        op.create_table(
            "pr_events",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("pr_id", sa.String(length=255), nullable=False),
            sa.Column("event_type", sa.String(length=32), nullable=False),
            sa.Column("actor_user_id", sa.String(length=255), nullable=True),
            sa.Column("old_user_id", sa.String(length=255), nullable=True),
            sa.Column("new_user_id", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["pr_id"], ["prs.pr_id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_pr_events_pr", "pr_events", ["pr_id"])
        op.create_index("idx_pr_events_type", "pr_events", ["event_type"])


def downgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "pr_events" in existing_tables:
        op.drop_index("idx_pr_events_type", table_name="pr_events")
        op.drop_index("idx_pr_events_pr", table_name="pr_events")
        op.drop_table("pr_events")
    if "pr_reviewers" in existing_tables:
        op.drop_index("idx_pr_reviewers_user", table_name="pr_reviewers")
        op.drop_table("pr_reviewers")
    if "prs" in existing_tables:
        op.drop_index("idx_prs_author", table_name="prs")
        op.drop_table("prs")
    if "users" in existing_tables:
        op.drop_index("idx_users_team_active", table_name="users")
        op.drop_index("idx_users_team_name", table_name="users")
        op.drop_table("users")
    if "teams" in existing_tables:
        op.drop_table("teams")
