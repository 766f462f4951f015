"""SQLAlchemy ORM models for the host row store."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rowsync.storage.db import Base


class Channel(Base):
    """A host-visible row."""

    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String, nullable=False, default="preview")
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    app_link: Mapped[str] = mapped_column(String, nullable=False)
    browsable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    programs: Mapped[list["PreviewProgram"]] = relationship(
        "PreviewProgram", back_populates="channel", cascade="all, delete-orphan"
    )


class PreviewProgram(Base):
    """An entry displayed inside a row."""

    __tablename__ = "preview_programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    episode_title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    season_display_number: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    season_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    episode_display_number: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    episode_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    poster_art_uri: Mapped[str] = mapped_column(String, nullable=False)
    poster_art_aspect_ratio: Mapped[str] = mapped_column(String, nullable=False)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    is_library_view: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    channel: Mapped["Channel"] = relationship("Channel", back_populates="programs")

    __table_args__ = (Index("ix_preview_programs_channel_position", "channel_id", "position"),)


class WatchNextProgram(Base):
    """An entry of the continue-watching queue."""

    __tablename__ = "watch_next_programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    internal_provider_id: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    watch_next_type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    poster_art_uri: Mapped[str] = mapped_column(String, nullable=False)
    poster_art_aspect_ratio: Mapped[str] = mapped_column(String, nullable=False)
    last_engagement_time_utc_millis: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_playback_position_millis: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    duration_millis: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "watch_next_type IN ('continue', 'new', 'next')",
            name="ck_watch_next_type",
        ),
        Index("ix_watch_next_engagement", "last_engagement_time_utc_millis"),
    )


class Preference(Base):
    """Namespaced string key-value pairs."""

    __tablename__ = "preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    namespace: Mapped[str] = mapped_column(String, nullable=False)
    key: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("namespace", "key", name="uq_preferences_namespace_key"),
    )


class Event(Base):
    """Event log of sync runs."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_name: Mapped[str] = mapped_column(String, nullable=False)
    run_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("ix_events_name_created", "event_name", "created_at"),)
