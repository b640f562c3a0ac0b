"""Initial database schema for Patient Records

Revision ID: 001
Revises:
Create Date: 2024-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _text(name: str, length: int | None = None) -> sa.Column:
    column_type = sa.String(length) if length else sa.Text()
    return sa.Column(name, column_type, nullable=False, server_default="")


def _patient_fk(table: str) -> list:
    return [
        sa.Column("patient_id", sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name=op.f(f"fk_{table}_patient_id_patients"),
            ondelete="CASCADE",
        ),
    ]


def upgrade() -> None:
    # Create patients table
    op.create_table(
        "patients",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("patient_number", sa.String(32), nullable=False),
        sa.Column("full_name", sa.String(256), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("gender", sa.String(16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_patients")),
    )
    op.create_index(
        op.f("ix_patients_patient_number"), "patients", ["patient_number"], unique=True
    )

    # Per-day counters for patient numbers
    op.create_table(
        "patient_number_sequences",
        sa.Column("day", sa.String(8), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("day", name=op.f("pk_patient_number_sequences")),
    )

    # Create patient_personal_data table
    op.create_table(
        "patient_personal_data",
        sa.Column("id", sa.String(36), nullable=False),
        *_patient_fk("patient_personal_data"),
        _text("first_name", 128),
        _text("middle_name", 128),
        _text("last_name", 128),
        _text("file_number", 64),
        _text("id_number", 64),
        _text("sex", 16),
        sa.Column("birth_date", sa.Date(), nullable=True),
        _text("nationality", 64),
        _text("marital_status", 16),
        _text("city", 128),
        _text("area", 128),
        _text("street", 256),
        _text("home_number", 32),
        _text("mobile", 32),
        _text("telephone", 32),
        sa.Column("registration_date", sa.Date(), nullable=True),
        _text("data_register_name", 128),
        _text("relative_name", 256),
        _text("relative_relation", 64),
        _text("relative_phone", 32),
        _text("relative_city", 128),
        _text("relative_area", 128),
        _text("relative_street", 256),
        _text("relative_home_number", 32),
        _text("relative_mobile", 32),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_patient_personal_data")),
    )
    op.create_index(
        op.f("ix_patient_personal_data_patient_id"),
        "patient_personal_data",
        ["patient_id"],
        unique=True,
    )

    # Create patient_history table, one row per patient and section
    op.create_table(
        "patient_history",
        sa.Column("id", sa.String(36), nullable=False),
        *_patient_fk("patient_history"),
        sa.Column("section_type", sa.String(32), nullable=False),
        _text("content"),
        sa.Column("image_urls", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_patient_history")),
        sa.UniqueConstraint(
            "patient_id",
            "section_type",
            name=op.f("uq_patient_history_patient_id_section_type"),
        ),
    )
    op.create_index(
        op.f("ix_patient_history_patient_id"), "patient_history", ["patient_id"], unique=False
    )

    # Create general_patient_orientation table
    op.create_table(
        "general_patient_orientation",
        sa.Column("id", sa.String(36), nullable=False),
        *_patient_fk("general_patient_orientation"),
        sa.Column("questions", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_general_patient_orientation")),
    )
    op.create_index(
        op.f("ix_general_patient_orientation_patient_id"),
        "general_patient_orientation",
        ["patient_id"],
        unique=True,
    )

    # Create admissions_discharge table
    op.create_table(
        "admissions_discharge",
        sa.Column("id", sa.String(36), nullable=False),
        *_patient_fk("admissions_discharge"),
        sa.Column("admission_date", sa.Date(), nullable=True),
        sa.Column("admission_time", sa.Time(), nullable=True),
        _text("admission_doctor", 256),
        _text("provisional_diagnosis"),
        _text("treatment_plan"),
        _text("expected_duration", 64),
        _text("doctor_sign_admission", 256),
        _text("admission_employee_name", 256),
        sa.Column("admission_employee_date", sa.Date(), nullable=True),
        _text("admission_employee_signature", 256),
        _text("admission_employee_stamp", 256),
        sa.Column("discharge_date", sa.Date(), nullable=True),
        sa.Column("discharge_time", sa.Time(), nullable=True),
        _text("discharge_doctor", 256),
        _text("final_diagnosis"),
        _text("discharge_type", 16),
        _text("discharge_authorized_person", 256),
        _text("discharge_relative_relation", 64),
        _text("discharge_identity", 64),
        _text("doctor_sign_discharge", 256),
        _text("discharge_employee_name", 256),
        sa.Column("discharge_employee_date", sa.Date(), nullable=True),
        _text("discharge_employee_signature", 256),
        _text("discharge_employee_stamp", 256),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_admissions_discharge")),
    )
    op.create_index(
        op.f("ix_admissions_discharge_patient_id"),
        "admissions_discharge",
        ["patient_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_admissions_discharge_patient_id"), table_name="admissions_discharge")
    op.drop_table("admissions_discharge")
    op.drop_index(
        op.f("ix_general_patient_orientation_patient_id"),
        table_name="general_patient_orientation",
    )
    op.drop_table("general_patient_orientation")
    op.drop_index(op.f("ix_patient_history_patient_id"), table_name="patient_history")
    op.drop_table("patient_history")
    op.drop_index(op.f("ix_patient_personal_data_patient_id"), table_name="patient_personal_data")
    op.drop_table("patient_personal_data")
    op.drop_table("patient_number_sequences")
    op.drop_index(op.f("ix_patients_patient_number"), table_name="patients")
    op.drop_table("patients")
