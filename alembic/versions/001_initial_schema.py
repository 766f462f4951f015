"""Initial schema: rows, row entries, watch next queue, preferences, events.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Channels (rows)
    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="preview"),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("app_link", sa.String(), nullable=False),
        sa.Column("browsable", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Row entries
    op.create_table(
        "preview_programs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("channel_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("episode_title", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("season_display_number", sa.String(), nullable=True),
        sa.Column("season_number", sa.Integer(), nullable=True),
        sa.Column("episode_display_number", sa.String(), nullable=True),
        sa.Column("episode_number", sa.Integer(), nullable=True),
        sa.Column("poster_art_uri", sa.String(), nullable=False),
        sa.Column("poster_art_aspect_ratio", sa.String(), nullable=False),
        sa.Column("item_id", sa.String(), nullable=False),
        sa.Column("is_library_view", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["channel_id"], ["channels.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_preview_programs_channel_position",
        "preview_programs",
        ["channel_id", "position"],
    )

    # Continue-watching queue
    op.create_table(
        "watch_next_programs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("internal_provider_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("watch_next_type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("poster_art_uri", sa.String(), nullable=False),
        sa.Column("poster_art_aspect_ratio", sa.String(), nullable=False),
        sa.Column("last_engagement_time_utc_millis", sa.BigInteger(), nullable=False),
        sa.Column("last_playback_position_millis", sa.BigInteger(), nullable=True),
        sa.Column("duration_millis", sa.BigInteger(), nullable=True),
        sa.Column("item_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "watch_next_type IN ('continue', 'new', 'next')",
            name="ck_watch_next_type",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_watch_next_engagement",
        "watch_next_programs",
        ["last_engagement_time_utc_millis"],
    )

    # Row name -> channel id and other local preferences
    op.create_table(
        "preferences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("namespace", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("namespace", "key", name="uq_preferences_namespace_key"),
    )

    # Sync run events
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_name", sa.String(), nullable=False),
        sa.Column("run_id", sa.String(), nullable=True),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_name_created", "events", ["event_name", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_events_name_created", table_name="events")
    op.drop_table("events")
    op.drop_table("preferences")
    op.drop_index("ix_watch_next_engagement", table_name="watch_next_programs")
    op.drop_table("watch_next_programs")
    op.drop_index("ix_preview_programs_channel_position", table_name="preview_programs")
    op.drop_table("preview_programs")
    op.drop_table("channels")
