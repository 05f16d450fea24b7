"""
LocalNote model for the device-side note store.

`id` is assigned once and never changes; `remote_id` is filled in only when a
merge pass sees the note's remote row.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, Text, Boolean, LargeBinary, Uuid
from sqlalchemy.orm import Mapped, mapped_column
import uuid

from unforgotten.core.dates import utcnow
from unforgotten.database import LocalBase


class LocalNote(LocalBase):
    __tablename__ = "local_notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, default=b"")
    content_plain_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    theme: Mapped[str] = mapped_column(String(50), nullable=False, default="standard")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    is_synced: Mapped[bool] = mapped_column(Boolean, default=False)
    remote_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    account_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)

    @property
    def display_title(self) -> str:
        return self.title or "Untitled Note"

    @property
    def preview_content(self) -> str:
        """Preview of content for list display."""
        trimmed = (self.content_plain_text or "").strip()
        if not trimmed:
            return "No additional text"
        if len(trimmed) > 100:
            return trimmed[:100] + "..."
        return trimmed

    def set_plain_text_content(self, text: str):
        self.content_plain_text = text
        self.content = text.encode("utf-8")
        self.mark_as_modified()

    def mark_as_modified(self):
        """Mark as needing sync."""
        self.updated_at = utcnow()
        self.is_synced = False

    def mark_as_synced(self, remote_id: str):
        self.remote_id = remote_id
        self.is_synced = True
