"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class ConversationContextModel(SQLModel, table=True):
    """会話コンテキストテーブル"""

    __tablename__ = "conversation_contexts"

    id: str = Field(primary_key=True)
    channel_id: str = Field(index=True)
    thread_ts: str | None = Field(default=None, index=True)
    user_id: str
    active_capability: str | None = None
    history: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    entities: str = Field(
        default='{"contacts": [], "deals": [], "companies": []}',
        sa_column=Column(Text, nullable=False),
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_activity_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    expires_at: datetime = Field(index=True)

    __table_args__ = (
        UniqueConstraint("channel_id", "thread_ts", name="uq_context_channel_thread"),
    )
