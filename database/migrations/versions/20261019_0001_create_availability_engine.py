"""create availability engine tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = postgresql.ENUM("admin", "user", "staff", "substitute", name="user_role", create_type=False)
weekday = postgresql.ENUM(
    "monday", "tuesday", "wednesday", "thursday", "friday", name="weekday", create_type=False
)
time_slot = postgresql.ENUM("morning", "afternoon", "full_day", name="time_slot", create_type=False)
half_day = postgresql.ENUM("morning", "afternoon", name="half_day", create_type=False)
absence_person_type = postgresql.ENUM("staff", "substitute", name="absence_person_type", create_type=False)
absence_reason = postgresql.ENUM(
    "illness", "leave", "training", "other", name="absence_reason", create_type=False
)

ENUMS = (user_role, weekday, time_slot, half_day, absence_person_type, absence_reason)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "substitutes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_substitutes_last_name", "substitutes", ["last_name"])
    op.create_index("ix_substitutes_is_active", "substitutes", ["is_active"])

    op.create_table(
        "staff_members",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_staff_members_last_name", "staff_members", ["last_name"])

    op.create_table(
        "schools",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("replacement_after_days", sa.Numeric(5, 1), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "staff_id",
            sa.String(length=36),
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "substitute_id",
            sa.String(length=36),
            sa.ForeignKey("substitutes.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role != 'substitute' OR substitute_id IS NOT NULL", name="ck_users_substitute_link"),
        sa.CheckConstraint("role != 'staff' OR staff_id IS NOT NULL", name="ck_users_staff_link"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "availability_periods",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "substitute_id",
            sa.String(length=36),
            sa.ForeignKey("substitutes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("date_start", sa.Date(), nullable=False),
        sa.Column("date_end", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("date_start <= date_end", name="ck_availability_periods_range"),
    )
    op.create_index("ix_availability_periods_substitute_id", "availability_periods", ["substitute_id"])
    op.create_index(
        "ix_availability_periods_substitute_range",
        "availability_periods",
        ["substitute_id", "date_start", "date_end"],
    )

    op.create_table(
        "recurrence_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "period_id",
            sa.String(length=36),
            sa.ForeignKey("availability_periods.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("weekday", weekday, nullable=False),
        sa.Column("slot", time_slot, nullable=False),
        sa.UniqueConstraint("period_id", "weekday", "slot", name="uq_recurrence_entries_cell"),
    )
    op.create_index("ix_recurrence_entries_period_id", "recurrence_entries", ["period_id"])

    op.create_table(
        "specific_availabilities",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "substitute_id",
            sa.String(length=36),
            sa.ForeignKey("substitutes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("slot", time_slot, nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("substitute_id", "date", "slot", name="uq_specific_availabilities_key"),
    )
    op.create_index("ix_specific_availabilities_substitute_id", "specific_availabilities", ["substitute_id"])
    op.create_index("ix_specific_availabilities_date", "specific_availabilities", ["date"])

    op.create_table(
        "absences",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("person_type", absence_person_type, nullable=False),
        sa.Column(
            "staff_id",
            sa.String(length=36),
            sa.ForeignKey("staff_members.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "substitute_id",
            sa.String(length=36),
            sa.ForeignKey("substitutes.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("date_start", sa.Date(), nullable=False),
        sa.Column("date_end", sa.Date(), nullable=False),
        sa.Column("slot", time_slot, nullable=False),
        sa.Column("reason", absence_reason, nullable=False),
        sa.Column("reason_details", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("date_start <= date_end", name="ck_absences_range"),
        sa.CheckConstraint(
            "(person_type = 'staff' AND staff_id IS NOT NULL AND substitute_id IS NULL) OR "
            "(person_type = 'substitute' AND substitute_id IS NOT NULL AND staff_id IS NULL)",
            name="ck_absences_person",
        ),
    )
    op.create_index("ix_absences_person_type", "absences", ["person_type"])
    op.create_index("ix_absences_staff_id", "absences", ["staff_id"])
    op.create_index("ix_absences_substitute_id", "absences", ["substitute_id"])
    op.create_index("ix_absences_date_start", "absences", ["date_start"])
    op.create_index("ix_absences_date_end", "absences", ["date_end"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "substitute_id",
            sa.String(length=36),
            sa.ForeignKey("substitutes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "staff_id",
            sa.String(length=36),
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "school_id",
            sa.String(length=36),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date_start", sa.Date(), nullable=False),
        sa.Column("date_end", sa.Date(), nullable=False),
        sa.Column("slot", time_slot, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("date_start <= date_end", name="ck_assignments_range"),
    )
    op.create_index("ix_assignments_substitute_id", "assignments", ["substitute_id"])
    op.create_index("ix_assignments_staff_id", "assignments", ["staff_id"])
    op.create_index("ix_assignments_school_id", "assignments", ["school_id"])
    op.create_index("ix_assignments_is_active", "assignments", ["is_active"])
    op.create_index(
        "ix_assignments_substitute_range",
        "assignments",
        ["substitute_id", "date_start", "date_end"],
    )

    op.create_table(
        "assignment_slot_claims",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "assignment_id",
            sa.String(length=36),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("substitute_id", sa.String(length=36), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("half", half_day, nullable=False),
        sa.UniqueConstraint("substitute_id", "day", "half", name="uq_assignment_slot_claims_cell"),
    )
    op.create_index("ix_assignment_slot_claims_assignment_id", "assignment_slot_claims", ["assignment_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("actor_role", sa.String(length=20), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("assignment_slot_claims")
    op.drop_table("assignments")
    op.drop_table("absences")
    op.drop_table("specific_availabilities")
    op.drop_table("recurrence_entries")
    op.drop_table("availability_periods")
    op.drop_table("users")
    op.drop_table("schools")
    op.drop_table("staff_members")
    op.drop_table("substitutes")

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
