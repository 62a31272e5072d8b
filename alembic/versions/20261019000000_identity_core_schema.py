"""Identity core schema: lifecycle states, roles, credentials, passcodes, role assignments.

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261019000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match ELIMINATED_STATE_ID at the time of migration.
ACTIVE_PAIR_WHERE = sa.text("state_id <> 4")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "lifecycle_states",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lifecycle_states")),
        sa.UniqueConstraint("name", name=op.f("uq_lifecycle_states_name")),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_roles")),
        sa.UniqueConstraint("name", name=op.f("uq_roles_name")),
    )
    op.create_table(
        "credentials",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.String(length=32), nullable=True),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("linked_id", sa.Integer(), nullable=True),
        sa.Column("state_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["state_id"],
            ["lifecycle_states.id"],
            name=op.f("fk_credentials_state_id_lifecycle_states"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_credentials")),
    )
    op.create_index(op.f("ix_credentials_email"), "credentials", ["email"], unique=True)
    op.create_index(op.f("ix_credentials_username"), "credentials", ["username"], unique=True)
    op.create_index(op.f("ix_credentials_contact"), "credentials", ["contact"], unique=False)
    op.create_index(op.f("ix_credentials_state_id"), "credentials", ["state_id"], unique=False)

    op.create_table(
        "one_time_passcodes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contact", sa.String(length=255), nullable=False),
        sa.Column("contact_type", sa.String(length=16), nullable=False),
        sa.Column("otp_code", sa.String(length=16), nullable=False),
        sa.Column("purpose", sa.String(length=32), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_one_time_passcodes")),
    )
    op.create_index(
        "ix_one_time_passcodes_lookup",
        "one_time_passcodes",
        ["contact", "purpose", "otp_code"],
        unique=False,
    )
    op.create_index(
        op.f("ix_one_time_passcodes_expires_at"),
        "one_time_passcodes",
        ["expires_at"],
        unique=False,
    )

    op.create_table(
        "auth_role_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("auth_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("state_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["auth_id"],
            ["credentials.id"],
            name=op.f("fk_auth_role_assignments_auth_id_credentials"),
        ),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["roles.id"],
            name=op.f("fk_auth_role_assignments_role_id_roles"),
        ),
        sa.ForeignKeyConstraint(
            ["state_id"],
            ["lifecycle_states.id"],
            name=op.f("fk_auth_role_assignments_state_id_lifecycle_states"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_auth_role_assignments")),
    )
    op.create_index(op.f("ix_auth_role_assignments_auth_id"), "auth_role_assignments", ["auth_id"])
    op.create_index(op.f("ix_auth_role_assignments_role_id"), "auth_role_assignments", ["role_id"])
    op.create_index(op.f("ix_auth_role_assignments_state_id"), "auth_role_assignments", ["state_id"])
    op.create_index(
        "uq_auth_role_assignments_active_pair",
        "auth_role_assignments",
        ["auth_id", "role_id"],
        unique=True,
        postgresql_where=ACTIVE_PAIR_WHERE,
        sqlite_where=ACTIVE_PAIR_WHERE,
    )


def downgrade() -> None:
    op.drop_index("uq_auth_role_assignments_active_pair", table_name="auth_role_assignments")
    op.drop_index(op.f("ix_auth_role_assignments_state_id"), table_name="auth_role_assignments")
    op.drop_index(op.f("ix_auth_role_assignments_role_id"), table_name="auth_role_assignments")
    op.drop_index(op.f("ix_auth_role_assignments_auth_id"), table_name="auth_role_assignments")
    op.drop_table("auth_role_assignments")
    op.drop_index(op.f("ix_one_time_passcodes_expires_at"), table_name="one_time_passcodes")
    op.drop_index("ix_one_time_passcodes_lookup", table_name="one_time_passcodes")
    op.drop_table("one_time_passcodes")
    op.drop_index(op.f("ix_credentials_state_id"), table_name="credentials")
    op.drop_index(op.f("ix_credentials_contact"), table_name="credentials")
    op.drop_index(op.f("ix_credentials_username"), table_name="credentials")
    op.drop_index(op.f("ix_credentials_email"), table_name="credentials")
    op.drop_table("credentials")
    op.drop_table("roles")
    op.drop_table("lifecycle_states")
