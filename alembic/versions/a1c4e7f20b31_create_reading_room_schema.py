"""create reading room schema

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates visitors and their activity log, global and client rule sets,
room thresholds, prompt templates, content links and prospects.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7f20b31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ROOM_CHECK = "room_type IN ('problem', 'solution', 'offer')"
_CURRENT_ROOM_CHECK = "current_room IN ('none', 'problem', 'solution', 'offer')"


def _uuid_pk(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "visitors",
        _uuid_pk("visitor_id"),
        sa.Column("client_id", sa.Integer()),
        sa.Column("company_name", sa.String(255)),
        sa.Column("estimated_revenue", sa.String(100)),
        sa.Column("estimated_employee_count", sa.String(50)),
        sa.Column("industry", sa.String(255)),
        sa.Column("state", sa.String(50)),
        sa.Column("job_title", sa.String(255)),
        sa.Column("lead_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_room", sa.String(20), nullable=False, server_default="none"),
        sa.Column("score_calculated_at", sa.DateTime(timezone=True)),
        sa.Column("score_breakdown", postgresql.JSONB()),
        *_timestamps(),
        sa.CheckConstraint("lead_score >= 0", name="ck_visitor_lead_score_non_negative"),
        sa.CheckConstraint(_CURRENT_ROOM_CHECK, name="ck_visitor_current_room"),
    )
    op.create_index("ix_visitors_client_id", "visitors", ["client_id"])
    op.create_index(
        "idx_visitors_score_calculated_at", "visitors", ["score_calculated_at"]
    )

    op.create_table(
        "visitor_activities",
        _uuid_pk("activity_id"),
        sa.Column(
            "visitor_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("visitors.visitor_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("url", sa.Text()),
        sa.Column("referrer", sa.Text()),
        sa.Column("utm_source", sa.String(255)),
        sa.Column("utm_medium", sa.String(255)),
        sa.Column("utm_campaign", sa.String(255)),
        sa.Column("utm_content", sa.String(255)),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "type IN ('page_visit', 'email_open', 'email_click')",
            name="ck_visitor_activity_type",
        ),
    )
    op.create_index(
        "idx_visitor_activities_visitor_occurred",
        "visitor_activities",
        ["visitor_id", "occurred_at"],
    )

    op.create_table(
        "global_scoring_rules",
        _uuid_pk("rule_set_id"),
        sa.Column("room_type", sa.String(20), nullable=False, unique=True),
        sa.Column("rules_config", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(_ROOM_CHECK, name="ck_global_rules_room_type"),
    )

    op.create_table(
        "client_scoring_rules",
        _uuid_pk("rule_set_id"),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("room_type", sa.String(20), nullable=False),
        sa.Column("rules_config", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("client_id", "room_type", name="uq_client_rules_client_room"),
        sa.CheckConstraint(_ROOM_CHECK, name="ck_client_rules_room_type"),
    )

    op.create_table(
        "room_thresholds",
        _uuid_pk("threshold_id"),
        sa.Column("client_id", sa.Integer()),
        sa.Column("problem_max", sa.Integer(), nullable=False),
        sa.Column("solution_max", sa.Integer(), nullable=False),
        sa.Column("offer_min", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "problem_max > 0 AND solution_max > 0 AND offer_min > 0",
            name="ck_room_thresholds_positive",
        ),
        sa.CheckConstraint(
            "problem_max < solution_max AND solution_max < offer_min",
            name="ck_room_thresholds_order",
        ),
    )
    op.create_index(
        "uq_room_thresholds_client",
        "room_thresholds",
        ["client_id"],
        unique=True,
        postgresql_where=sa.text("client_id IS NOT NULL"),
    )
    op.create_index(
        "uq_room_thresholds_global",
        "room_thresholds",
        [sa.text("(client_id IS NULL)")],
        unique=True,
        postgresql_where=sa.text("client_id IS NULL"),
    )

    op.create_table(
        "email_templates",
        _uuid_pk("template_id"),
        sa.Column("campaign_id", sa.Integer()),
        sa.Column("room_type", sa.String(20), nullable=False),
        sa.Column("template_name", sa.String(255), nullable=False),
        sa.Column("prompt_template", postgresql.JSONB(), nullable=False),
        sa.Column("is_global", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("template_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_ROOM_CHECK, name="ck_email_templates_room_type"),
        sa.CheckConstraint(
            "(is_global AND campaign_id IS NULL) OR (NOT is_global AND campaign_id IS NOT NULL)",
            name="ck_email_templates_scope",
        ),
    )
    op.create_index(
        "idx_email_templates_campaign_room",
        "email_templates",
        ["campaign_id", "room_type"],
    )

    op.create_table(
        "room_content_links",
        _uuid_pk("link_id"),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("room_type", sa.String(20), nullable=False),
        sa.Column("link_title", sa.String(255), nullable=False),
        sa.Column("link_url", sa.Text(), nullable=False),
        sa.Column("url_summary", sa.Text()),
        sa.Column("link_description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("link_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_ROOM_CHECK, name="ck_content_links_room_type"),
    )
    op.create_index(
        "idx_room_content_links_campaign_room",
        "room_content_links",
        ["campaign_id", "room_type"],
    )

    op.create_table(
        "prospects",
        _uuid_pk("prospect_id"),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column(
            "visitor_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("visitors.visitor_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("company_name", sa.String(255)),
        sa.Column("contact_name", sa.String(255)),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("current_room", sa.String(20), nullable=False, server_default="none"),
        sa.Column("lead_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("days_in_room", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "email_sequence_position", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "urls_sent",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_CURRENT_ROOM_CHECK, name="ck_prospect_current_room"),
    )
    op.create_index("ix_prospects_campaign_id", "prospects", ["campaign_id"])


def downgrade() -> None:
    op.drop_table("prospects")
    op.drop_table("room_content_links")
    op.drop_table("email_templates")
    op.drop_table("room_thresholds")
    op.drop_table("client_scoring_rules")
    op.drop_table("global_scoring_rules")
    op.drop_table("visitor_activities")
    op.drop_table("visitors")
