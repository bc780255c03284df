"""Initial schema: users, runners, errands, transactions, reviews, reports.

Revision ID: 001
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

CATEGORY = sa.Enum(
    "delivery", "shopping", "food_delivery", "documents", "other", name="category"
)
URGENCY = sa.Enum("standard", "urgent", "asap", name="urgency")
ERRAND_STATUS = sa.Enum(
    "pending", "accepted", "in_progress", "completed", "cancelled", name="errandstatus"
)
USER_TYPE = sa.Enum("customer", "runner", "both", name="usertype")
PAYMENT_STATUS = sa.Enum(
    "pending", "completed", "failed", "refunded", name="paymentstatus"
)
PAYMENT_METHOD = sa.Enum("wallet", "mobile_money", "cash", name="paymentmethod")
REPORT_STATUS = sa.Enum("pending", "resolved", "dismissed", name="reportstatus")


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(20), unique=True, nullable=True),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("user_type", USER_TYPE, nullable=False, server_default="customer"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
    )

    # ── runners ───────────────────────────────────────────────────────
    op.create_table(
        "runners",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id"),
            unique=True,
            nullable=False,
        ),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("rating", sa.Float, nullable=False, server_default="5.0"),
        sa.Column("completed_errands", sa.Integer, nullable=False, server_default="0"),
        sa.Column("earnings", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("cancellation_rate", sa.Float, nullable=False, server_default="0"),
        _created_at(),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_runners_rating"),
    )
    op.create_index("idx_runners_available", "runners", ["is_available"])

    # ── errands ───────────────────────────────────────────────────────
    op.create_table(
        "errands",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("runner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "accepted_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", CATEGORY, nullable=False),
        sa.Column("urgency", URGENCY, nullable=False, server_default="standard"),
        sa.Column("location_from", sa.String(255), nullable=False),
        sa.Column("location_to", sa.String(255), nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False, server_default="0"),
        sa.Column("estimated_duration_min", sa.Integer, nullable=True),
        _money("base_price"),
        _money("final_price"),
        _money("platform_fee"),
        _money("runner_earnings"),
        _money("distance_fee"),
        _money("urgency_fee"),
        sa.Column("status", ERRAND_STATUS, nullable=False, server_default="pending"),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("cancelled_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("base_price > 0", name="ck_errands_base_price"),
        sa.CheckConstraint(
            "(runner_id IS NOT NULL) = "
            "(status IN ('accepted', 'in_progress', 'completed'))",
            name="ck_errands_runner_matches_status",
        ),
        sa.CheckConstraint(
            "runner_id IS NULL OR runner_id <> customer_id",
            name="ck_errands_no_self_dealing",
        ),
    )
    op.create_index("idx_errands_status", "errands", ["status"])
    op.create_index("idx_errands_customer", "errands", ["customer_id"])
    op.create_index("idx_errands_runner", "errands", ["runner_id"])
    op.create_index(
        "idx_errands_accepted", "errands", ["accepted_by", "accepted_at"]
    )
    op.create_index(
        "idx_errands_cancelled", "errands", ["cancelled_by", "cancelled_at"]
    )

    # ── transactions ──────────────────────────────────────────────────
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "errand_id",
            sa.Integer,
            sa.ForeignKey("errands.id"),
            unique=True,
            nullable=False,
        ),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("runner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        _money("amount"),
        _money("base_amount"),
        _money("platform_fee"),
        _money("runner_earnings"),
        sa.Column(
            "payment_status", PAYMENT_STATUS, nullable=False, server_default="pending"
        ),
        sa.Column(
            "payment_method", PAYMENT_METHOD, nullable=False, server_default="wallet"
        ),
        _created_at(),
    )

    # ── reviews ───────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "errand_id",
            sa.Integer,
            sa.ForeignKey("errands.id"),
            unique=True,
            nullable=False,
        ),
        sa.Column("reviewer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reviewee_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        _created_at(),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
    )

    # ── reports ───────────────────────────────────────────────────────
    op.create_table(
        "reports",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("reporter_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "reported_user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("errand_id", sa.Integer, sa.ForeignKey("errands.id"), nullable=True),
        sa.Column("report_type", sa.String(50), nullable=False),
        sa.Column("status", REPORT_STATUS, nullable=False, server_default="pending"),
        _created_at(),
    )
    op.create_index(
        "idx_reports_reported", "reports", ["reported_user_id", "status"]
    )


def downgrade() -> None:
    op.drop_table("reports")
    op.drop_table("reviews")
    op.drop_table("transactions")
    op.drop_table("errands")
    op.drop_table("runners")
    op.drop_table("users")
    for enum_name in (
        "reportstatus",
        "paymentmethod",
        "paymentstatus",
        "usertype",
        "errandstatus",
        "urgency",
        "category",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
