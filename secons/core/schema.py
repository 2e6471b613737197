# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Table definitions. Repositories query these tables with raw SQL; the
metadata here is used to create the schema on startup and in tests.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, MetaData,
    String, Table, Text, UniqueConstraint,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", String(36), primary_key=True),
    Column("uid", String(128), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("role", String(16), nullable=False),
    Column("domain", String(32)),
    Column("photo_url", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("onboarding_complete", Boolean, nullable=False, default=False),
    Column("tour_complete", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_users_role_domain", "role", "domain"),
    Index("ix_users_role_active", "role", "is_active"),
)

announcements = Table(
    "announcements", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("body", Text, nullable=False),
    Column("target_roles", Text, nullable=False),
    Column("target_domains", Text, nullable=False),
    Column("pinned", Boolean, nullable=False, default=False),
    Column("created_by", String(36), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_announcements_pinned_created", "pinned", "created_at"),
)

announcement_reads = Table(
    "announcement_reads", metadata,
    Column("announcement_id", String(36), ForeignKey("announcements.id"), primary_key=True),
    Column("uid", String(128), primary_key=True),
)

meetings = Table(
    "meetings", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("agenda", Text),
    Column("scheduled_at", DateTime(timezone=True), nullable=False, index=True),
    Column("location", String(200)),
    Column("meeting_link", Text),
    Column("notes", Text),
    Column("attendee_groups", Text, nullable=False),
    Column("created_by", String(36), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

meeting_attendees = Table(
    "meeting_attendees", metadata,
    Column("meeting_id", String(36), ForeignKey("meetings.id"), primary_key=True),
    Column("uid", String(128), primary_key=True),
)

notifications = Table(
    "notifications", metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(128), nullable=False),
    Column("type", String(16), nullable=False),
    Column("title", String(255), nullable=False),
    Column("body", Text, nullable=False),
    Column("link", Text),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_notifications_user_created", "user_id", "created_at"),
)

invitations = Table(
    "invitations", metadata,
    Column("id", String(36), primary_key=True),
    Column("code", String(16), nullable=False, unique=True),
    Column("email", String(255)),
    Column("name", String(100)),
    Column("role", String(16), nullable=False),
    Column("domain", String(32)),
    Column("invited_by", String(128), nullable=False),
    Column("used", Boolean, nullable=False, default=False),
    Column("used_by", String(128)),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("last_emailed_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_invitations_email_used", "email", "used"),
)

teams = Table(
    "teams", metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(64), nullable=False),
    Column("group_name", String(64), nullable=False),
    Column("semester", Integer, nullable=False),
    Column("total_points", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("group_name", "semester", name="uq_teams_group_semester"),
    Index("ix_teams_semester_points", "semester", "total_points"),
)

team_point_entries = Table(
    "team_point_entries", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", String(36), ForeignKey("teams.id"), nullable=False, index=True),
    Column("event_id", String(64), nullable=False),
    Column("points", Integer, nullable=False),
    Column("position", Integer, nullable=False),
    Column("reason", Text),
    Column("awarded_by", String(128), nullable=False),
    Column("awarded_at", DateTime(timezone=True), nullable=False),
)

finance_transactions = Table(
    "finance_transactions", metadata,
    Column("id", String(36), primary_key=True),
    Column("type", String(32), nullable=False),
    Column("domain", String(32), nullable=False),
    Column("event_id", String(64)),
    Column("amount", Float, nullable=False),
    Column("description", Text, nullable=False),
    Column("category", String(32), nullable=False),
    Column("receipt_url", Text),
    Column("submitted_by", String(128), nullable=False),
    Column("approved_by", String(128)),
    Column("approval_note", Text),
    Column("status", String(16), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_finance_domain_status", "domain", "status"),
)

events = Table(
    "events", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("category", String(32), nullable=False),
    Column("description", Text, nullable=False),
    Column("rules", Text),
    Column("eligibility", Text),
    Column("venue", String(200), nullable=False),
    Column("start_at", DateTime(timezone=True), nullable=False),
    Column("end_at", DateTime(timezone=True), nullable=False),
    Column("flier_url", Text),
    Column("registration_link", Text),
    Column("status", String(16), nullable=False),
    Column("cancellation_reason", Text),
    Column("jga_domain", String(64), nullable=False),
    Column("participant_count", Integer, nullable=False, default=0),
    Column("created_by", String(128), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_events_category_status", "category", "status"),
    Index("ix_events_start", "start_at"),
)

event_categories = Table(
    "event_categories", metadata,
    Column("slug", String(64), primary_key=True),
    Column("name", String(64), nullable=False, unique=True),
    Column("is_default", Boolean, nullable=False, default=False),
    Column("created_by", String(128)),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

fixtures = Table(
    "fixtures", metadata,
    Column("id", String(36), primary_key=True),
    Column("event_id", String(36), ForeignKey("events.id"), nullable=False, index=True),
    Column("format", String(16), nullable=False),
    Column("status", String(16), nullable=False),
    Column("created_by", String(128), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

matches = Table(
    "matches", metadata,
    Column("id", String(36), primary_key=True),
    Column("fixture_id", String(36), ForeignKey("fixtures.id")),
    Column("event_id", String(36), ForeignKey("events.id"), nullable=False, index=True),
    Column("team1_id", String(36), ForeignKey("teams.id"), nullable=False),
    Column("team2_id", String(36), ForeignKey("teams.id"), nullable=False),
    Column("score_team1", Integer, nullable=False, default=0),
    Column("score_team2", Integer, nullable=False, default=0),
    Column("winner_id", String(36)),
    Column("status", String(16), nullable=False),
    Column("format", String(16), nullable=False),
    Column("sport_name", String(64), nullable=False),
    Column("venue", String(200)),
    Column("round_name", String(64)),
    Column("scheduled_at", DateTime(timezone=True)),
    Column("points_awarded", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_matches_status_updated", "status", "updated_at"),
)

match_score_entries = Table(
    "match_score_entries", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("match_id", String(36), ForeignKey("matches.id"), nullable=False, index=True),
    Column("score_team1", Integer, nullable=False),
    Column("score_team2", Integer, nullable=False),
    Column("entered_by", String(128), nullable=False),
    Column("reason", Text),
    Column("entered_at", DateTime(timezone=True), nullable=False),
)

chat_threads = Table(
    "chat_threads", metadata,
    Column("id", String(36), primary_key=True),
    Column("type", String(16), nullable=False),
    Column("name", String(100), nullable=False),
    Column("description", Text),
    Column("event_id", String(36)),
    Column("domain", String(32)),
    Column("created_by", String(128), nullable=False),
    Column("is_archived", Boolean, nullable=False, default=False),
    Column("last_message_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

chat_participants = Table(
    "chat_participants", metadata,
    Column("thread_id", String(36), ForeignKey("chat_threads.id"), primary_key=True),
    Column("uid", String(128), primary_key=True),
    Index("ix_chat_participants_uid", "uid"),
)

chat_messages = Table(
    "chat_messages", metadata,
    Column("id", String(36), primary_key=True),
    Column("thread_id", String(36), ForeignKey("chat_threads.id"), nullable=False),
    Column("sender_id", String(128), nullable=False),
    Column("content", Text, nullable=False),
    Column("reply_to", String(36)),
    Column("pinned", Boolean, nullable=False, default=False),
    Column("edited", Boolean, nullable=False, default=False),
    Column("deleted_at", DateTime(timezone=True)),
    Column("sent_at", DateTime(timezone=True), nullable=False),
    Index("ix_chat_messages_thread_sent", "thread_id", "sent_at"),
)

chat_message_reads = Table(
    "chat_message_reads", metadata,
    Column("message_id", String(36), ForeignKey("chat_messages.id"), primary_key=True),
    Column("uid", String(128), primary_key=True),
)

audit_logs = Table(
    "audit_logs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("action", String(32), nullable=False),
    Column("severity", String(16), nullable=False),
    Column("actor_uid", String(128)),
    Column("target_type", String(32)),
    Column("target_id", String(64)),
    Column("details", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_audit_logs_action_created", "action", "created_at"),
    Index("ix_audit_logs_actor", "actor_uid"),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    metadata.drop_all(engine)
