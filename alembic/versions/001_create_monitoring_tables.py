"""create subjects, trusted_contacts, check_ins and alerts_log tables

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("monitoring_enabled", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("inactivity_threshold_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("grace_period_hours", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("reminder_frequency_hours", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("quiet_start", sa.String(5), nullable=True),
        sa.Column("quiet_end", sa.String(5), nullable=True),
        sa.Column("alert_status", sa.String(20), nullable=False, server_default="ok"),
        sa.Column("warning_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("push_token", sa.String(512), nullable=True),
        sa.Column("reminded_intervals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("state_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claim_token", sa.String(36), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_subjects_email"),
        sa.CheckConstraint(
            "alert_status IN ('ok', 'warning_sent', 'alert_sent')",
            name="ck_subjects_alert_status",
        ),
        sa.CheckConstraint(
            "(alert_status = 'warning_sent') = (warning_sent_at IS NOT NULL)",
            name="ck_subjects_warning_sent_at",
        ),
    )
    op.create_index("ix_subjects_monitoring_status", "subjects", ["monitoring_enabled", "alert_status"])

    op.create_table(
        "trusted_contacts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("country_code", sa.String(2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_trusted_contacts_subject_id"), "trusted_contacts", ["subject_id"])

    op.create_table(
        "check_ins",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_check_ins_subject_id"), "check_ins", ["subject_id"])

    op.create_table(
        "alerts_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_alerts_log_subject_id"), "alerts_log", ["subject_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_alerts_log_subject_id"), table_name="alerts_log")
    op.drop_table("alerts_log")
    op.drop_index(op.f("ix_check_ins_subject_id"), table_name="check_ins")
    op.drop_table("check_ins")
    op.drop_index(op.f("ix_trusted_contacts_subject_id"), table_name="trusted_contacts")
    op.drop_table("trusted_contacts")
    op.drop_index("ix_subjects_monitoring_status", table_name="subjects")
    op.drop_table("subjects")
