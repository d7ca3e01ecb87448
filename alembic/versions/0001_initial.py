"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("gender", sa.String(length=10), nullable=False, server_default=""),
        sa.Column("date_of_birth", sa.String(length=10), nullable=False, server_default=""),
        sa.Column("marital_status", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("call_up_number", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("state_of_origin", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("lga", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("mcan_reg_no", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("institution", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("emergency_contact_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("emergency_contact_address", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("emergency_contact_phone1", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("emergency_contact_phone2", sa.String(length=40), nullable=True),
        sa.Column("next_of_kin_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("next_of_kin_address", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("next_of_kin_phone1", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("next_of_kin_phone2", sa.String(length=40), nullable=True),
        sa.Column("islamic_knowledge_level", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("dietary_preferences", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("prayer_requirements", sa.Text(), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('user','admin','manager')", name="ck_profiles_role"),
        sa.CheckConstraint("status IN ('active','disabled','deleted')", name="ck_profiles_status"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=False)
    op.create_index("ix_profiles_role", "profiles", ["role"], unique=False)
    op.create_index("ix_profiles_status", "profiles", ["status"], unique=False)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price_per_night", sa.Numeric(12, 2), nullable=False),
        sa.Column("amenities_csv", sa.String(length=600), nullable=False, server_default=""),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("price_per_night >= 0", name="ck_rooms_price_non_negative"),
    )
    op.create_index("ix_rooms_is_available", "rooms", ["is_available"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("price_per_night", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_bookings_dates_ordered"),
        sa.CheckConstraint("total_price >= 0", name="ck_bookings_total_non_negative"),
        sa.CheckConstraint("status IN ('pending','active','approved','completed')", name="ck_bookings_status"),
        sa.CheckConstraint("payment_status IN ('pending','paid','refunded')", name="ck_bookings_payment_status"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"], unique=False)
    op.create_index("ix_bookings_room_id", "bookings", ["room_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"], unique=False)

    op.create_table(
        "payment_receipts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("transaction_reference", sa.String(length=120), nullable=False),
        sa.Column("bank_name", sa.String(length=120), nullable=False),
        sa.Column("account_number", sa.String(length=40), nullable=False),
        sa.Column("receipt_path", sa.String(length=512), nullable=False),
        sa.Column("receipt_url", sa.String(length=1024), nullable=False),
        sa.Column("content_type", sa.String(length=64), nullable=False, server_default="application/pdf"),
        sa.Column("storage_backend", sa.String(length=16), nullable=False, server_default="local"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_payment_receipts_amount_positive"),
    )
    op.create_index("ix_payment_receipts_user_id", "payment_receipts", ["user_id"], unique=False)
    op.create_index("ix_payment_receipts_booking_id", "payment_receipts", ["booking_id"], unique=False)
    op.create_index("ix_payment_receipts_created_at", "payment_receipts", ["created_at"], unique=False)

    op.create_table(
        "payment_decisions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("payment_receipt_id", sa.String(length=36), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("decided_by_user_id", sa.String(length=36), nullable=True),
        sa.Column("verification_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("payment_receipt_id", "seq", name="uq_payment_decisions_receipt_seq"),
        sa.CheckConstraint("status IN ('pending','approved','rejected')", name="ck_payment_decisions_status"),
        sa.CheckConstraint(
            "(status = 'rejected' AND rejection_reason IS NOT NULL AND length(trim(rejection_reason)) > 0)"
            " OR (status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_payment_decisions_reason_iff_rejected",
        ),
    )
    op.create_index("ix_payment_decisions_payment_receipt_id", "payment_decisions", ["payment_receipt_id"], unique=False)

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("template", sa.String(length=40), nullable=False),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("data_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("related_booking_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("attempt", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("retry_of_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_email_logs_template", "email_logs", ["template"], unique=False)
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"], unique=False)
    op.create_index("ix_email_logs_status", "email_logs", ["status"], unique=False)
    op.create_index("ix_email_logs_retry_of_id", "email_logs", ["retry_of_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)

    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_revoked_tokens_user_id", "revoked_tokens", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("revoked_tokens")
    op.drop_table("audit_logs")
    op.drop_table("email_logs")
    op.drop_table("payment_decisions")
    op.drop_table("payment_receipts")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
