"""create leads, competitor snapshots/runs, embeddings, analytics, system state, emails, opportunities

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # ---------------------------------------------------------------------------
    # leads
    # Duplicate suppression looks up (email, created_at) inside a trailing window.
    # ---------------------------------------------------------------------------
    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "email",
            sa.String(length=320),
            nullable=False,
            comment="Lowercased; duplicate key within the dedup window",
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=16),
            nullable=False,
            comment="new, contacted, qualified, converted, lost",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_leads_email_created_at", "leads", ["email", "created_at"])
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_score", "leads", ["score"])

    # ---------------------------------------------------------------------------
    # competitor_snapshots
    # One row per normalized URL, overwritten on every successful check.
    # ---------------------------------------------------------------------------
    op.create_table(
        "competitor_snapshots",
        sa.Column(
            "doc_id",
            sa.String(length=512),
            nullable=False,
            comment="Normalized URL; one row per monitored URL",
        ),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content_hash", sa.String(length=32), nullable=False),
        sa.Column("key_phrases", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("pricing_mentions", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("doc_id"),
    )

    op.create_table(
        "competitor_watch_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("check_type", sa.String(length=16), nullable=False, comment="quick, full"),
        sa.Column("competitors", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("failed_urls", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("changes", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("action_required", sa.Boolean(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_competitor_watch_runs_created_at", "competitor_watch_runs", ["created_at"])

    # ---------------------------------------------------------------------------
    # embedding_documents
    # ---------------------------------------------------------------------------
    op.create_table(
        "embedding_documents",
        sa.Column("id", sa.String(length=255), nullable=False, comment="Caller-supplied identity"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "embedding",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Fixed-length float vector from the embedding model",
        ),
        sa.Column("metadata_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ---------------------------------------------------------------------------
    # analytics_cache / analytics_daily_reports
    # ---------------------------------------------------------------------------
    op.create_table(
        "analytics_cache",
        sa.Column("cache_key", sa.String(length=255), nullable=False, comment="{property}_{dateRange}"),
        sa.Column("property_name", sa.String(length=120), nullable=False),
        sa.Column("date_range", sa.String(length=32), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("cached_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("cache_key"),
    )

    op.create_table(
        "analytics_daily_reports",
        sa.Column("doc_id", sa.String(length=255), nullable=False, comment="{property}_{YYYY-MM-DD}"),
        sa.Column("property_name", sa.String(length=120), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("top_pages", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("traffic_sources", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("sync_type", sa.String(length=32), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("doc_id"),
    )
    op.create_index(
        "ix_analytics_daily_reports_property_date",
        "analytics_daily_reports",
        ["property_name", "report_date"],
    )

    # ---------------------------------------------------------------------------
    # system_state
    # ---------------------------------------------------------------------------
    op.create_table(
        "system_state",
        sa.Column("key", sa.String(length=120), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("key"),
    )

    # ---------------------------------------------------------------------------
    # scheduled_emails
    # Drained by the email dispatch job: status=pending AND send_after <= now().
    # ---------------------------------------------------------------------------
    op.create_table(
        "scheduled_emails",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("template", sa.String(length=64), nullable=False),
        sa.Column("variables", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("send_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, comment="pending, sent, failed"),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_scheduled_emails_status_send_after",
        "scheduled_emails",
        ["status", "send_after"],
    )

    # ---------------------------------------------------------------------------
    # opportunities
    # ---------------------------------------------------------------------------
    op.create_table(
        "opportunities",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False, comment="nglcc, events, news, linkedin"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("relevance_score", sa.Float(), nullable=False),
        sa.Column("estimated_value", sa.String(length=120), nullable=False),
        sa.Column("deadline", sa.String(length=64), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_opportunities_status", "opportunities", ["status"])
    op.create_index("ix_opportunities_relevance_score", "opportunities", ["relevance_score"])


def downgrade() -> None:
    op.drop_index("ix_opportunities_relevance_score", table_name="opportunities")
    op.drop_index("ix_opportunities_status", table_name="opportunities")
    op.drop_table("opportunities")

    op.drop_index("ix_scheduled_emails_status_send_after", table_name="scheduled_emails")
    op.drop_table("scheduled_emails")

    op.drop_table("system_state")

    op.drop_index("ix_analytics_daily_reports_property_date", table_name="analytics_daily_reports")
    op.drop_table("analytics_daily_reports")
    op.drop_table("analytics_cache")

    op.drop_table("embedding_documents")

    op.drop_index("ix_competitor_watch_runs_created_at", table_name="competitor_watch_runs")
    op.drop_table("competitor_watch_runs")
    op.drop_table("competitor_snapshots")

    op.drop_index("ix_leads_score", table_name="leads")
    op.drop_index("ix_leads_status", table_name="leads")
    op.drop_index("ix_leads_email_created_at", table_name="leads")
    op.drop_table("leads")
