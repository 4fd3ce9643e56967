"""initial schema: users, tokens, verification codes, stores, timeslots, tickets

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ticket_type = sa.Enum("queue", "reservation", name="tickettype")
ticket_status = sa.Enum("valid", "used", "cancelled", name="ticketstatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("surname", sa.String(), nullable=True),
        sa.Column("is_totem", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])

    op.create_table(
        "tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(20), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tokens_id", "tokens", ["id"])
    op.create_index("ix_tokens_token", "tokens", ["token"], unique=True)

    op.create_table(
        "verification_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("code_hash", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_verification_codes_id", "verification_codes", ["id"])
    op.create_index("ix_verification_codes_phone_number", "verification_codes", ["phone_number"])

    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("curr_number", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("curr_number >= 0", name="ck_stores_curr_number_non_negative"),
    )
    op.create_index("ix_stores_id", "stores", ["id"])

    op.create_table(
        "reservation_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("store_id", sa.Integer(), sa.ForeignKey("stores.id"), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("max_people_allowed", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_reservation_slots_id", "reservation_slots", ["id"])
    op.create_index("ix_reservation_slots_store_id", "reservation_slots", ["store_id"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", ticket_type, nullable=False),
        sa.Column("status", ticket_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("store_id", sa.Integer(), sa.ForeignKey("stores.id"), nullable=False),
        sa.Column("user_id", sa.String(20), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reservation_id", sa.Integer(), sa.ForeignKey("reservation_slots.id"), nullable=True),
        sa.Column("reservation_date", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_status", "tickets", ["status"])
    op.create_index("ix_tickets_store_id", "tickets", ["store_id"])
    op.create_index("ix_tickets_user_id", "tickets", ["user_id"])
    op.create_index(
        "uq_tickets_valid_user",
        "tickets",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'valid'"),
        sqlite_where=sa.text("status = 'valid'"),
    )


def downgrade() -> None:
    op.drop_table("tickets")
    op.drop_table("reservation_slots")
    op.drop_table("stores")
    op.drop_table("verification_codes")
    op.drop_table("tokens")
    op.drop_table("users")
    ticket_status.drop(op.get_bind(), checkfirst=True)
    ticket_type.drop(op.get_bind(), checkfirst=True)
