"""create visa workflow tables"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "visa_workflow_20261019"
down_revision = None
branch_labels = None
depends_on = None


DOCUMENT_STATUSES = ("pending", "approved", "rejected", "reupload_required")
PAYMENT_STATUSES = ("pending", "confirmed", "refunded")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _names(length: int):
    return [
        sa.Column(f"name_{locale}", sa.String(length=length), nullable=False)
        for locale in ("en", "fr", "ar")
    ]


def _texts(prefix: str):
    return [
        sa.Column(f"{prefix}_{locale}", sa.Text(), nullable=True)
        for locale in ("en", "fr", "ar")
    ]


def upgrade():
    document_status_enum = sa.Enum(*DOCUMENT_STATUSES, name="document_status")
    payment_status_enum = sa.Enum(*PAYMENT_STATUSES, name="payment_status")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("nationality", sa.String(length=120), nullable=True),
        sa.Column("preferred_language", sa.String(length=2), nullable=False, server_default="en"),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "revoked_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("jti", sa.String(length=64), nullable=False, unique=True),
        sa.Column("revoked_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_revoked_tokens_jti", "revoked_tokens", ["jti"])

    op.create_table(
        "countries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=8), nullable=False, unique=True),
        *_names(120),
        sa.Column("flag_emoji", sa.String(length=16), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("processing_time_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("portal_link", sa.String(length=512), nullable=True),
        *_texts("admin_instructions"),
        *_timestamps(),
    )

    op.create_table(
        "visa_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("country_id", sa.Integer(), sa.ForeignKey("countries.id"), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        *_names(120),
        *_texts("description"),
        sa.Column("base_fee", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processing_time_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("requirements", sa.JSON(), nullable=False),
        sa.Column("submission_steps", sa.JSON(), nullable=False),
        sa.Column("status_flow", sa.JSON(), nullable=False),
        sa.Column("validation_rules", sa.JSON(), nullable=False),
        *_texts("helper_notes"),
        *_timestamps(),
        sa.UniqueConstraint("country_id", "code", name="uq_visa_types_country_code"),
    )
    op.create_index("ix_visa_types_country_id", "visa_types", ["country_id"])

    op.create_table(
        "document_requirements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("visa_type_id", sa.Integer(), sa.ForeignKey("visa_types.id"), nullable=False),
        sa.Column("document_type", sa.String(length=64), nullable=False),
        *_names(160),
        *_texts("description"),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("validation_rules", sa.JSON(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("visa_type_id", "order_index", name="uq_document_requirements_order"),
    )
    op.create_index(
        "ix_document_requirements_visa_type_id", "document_requirements", ["visa_type_id"]
    )

    op.create_table(
        "application_counters",
        sa.Column("year", sa.String(length=2), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("country_id", sa.Integer(), sa.ForeignKey("countries.id"), nullable=False),
        sa.Column("visa_type_id", sa.Integer(), sa.ForeignKey("visa_types.id"), nullable=False),
        sa.Column("application_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("status", sa.String(length=64), nullable=False, server_default="submitted"),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("applicant_data", sa.JSON(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("payment_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_visa_type_id", "applications", ["visa_type_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=False),
        sa.Column(
            "document_requirement_id",
            sa.Integer(),
            sa.ForeignKey("document_requirements.id"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=512), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(length=128), nullable=False),
        sa.Column("status", document_status_enum, nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("uploaded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("verified_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "application_id",
            "document_requirement_id",
            name="uq_documents_application_requirement",
        ),
    )
    op.create_index("ix_documents_application_id", "documents", ["application_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("payment_method", sa.String(length=64), nullable=True),
        sa.Column("payment_reference", sa.String(length=255), nullable=True),
        sa.Column("status", payment_status_enum, nullable=False, server_default="pending"),
        sa.Column("confirmed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_application_id", "payments", ["application_id"])
    op.create_index("ix_payments_payment_reference", "payments", ["payment_reference"])

    op.create_table(
        "status_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=False),
        sa.Column("old_status", sa.String(length=64), nullable=True),
        sa.Column("new_status", sa.String(length=64), nullable=False),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_status_logs_application_id", "status_logs", ["application_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title_en", sa.String(length=255), nullable=False),
        sa.Column("title_fr", sa.String(length=255), nullable=True),
        sa.Column("title_ar", sa.String(length=255), nullable=True),
        sa.Column("message_en", sa.Text(), nullable=False),
        sa.Column("message_fr", sa.Text(), nullable=True),
        sa.Column("message_ar", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column(
            "related_application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=True
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade():
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_status_logs_application_id", table_name="status_logs")
    op.drop_table("status_logs")
    op.drop_index("ix_payments_payment_reference", table_name="payments")
    op.drop_index("ix_payments_application_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_documents_application_id", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_visa_type_id", table_name="applications")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_table("applications")
    op.drop_table("application_counters")
    op.drop_index("ix_document_requirements_visa_type_id", table_name="document_requirements")
    op.drop_table("document_requirements")
    op.drop_index("ix_visa_types_country_id", table_name="visa_types")
    op.drop_table("visa_types")
    op.drop_table("countries")
    op.drop_index("ix_revoked_tokens_jti", table_name="revoked_tokens")
    op.drop_table("revoked_tokens")
    op.drop_table("users")

    sa.Enum(name="payment_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="document_status").drop(op.get_bind(), checkfirst=True)
