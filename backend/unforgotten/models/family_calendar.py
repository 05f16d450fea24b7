"""
Family calendar sharing models.

A share makes one appointment or countdown visible to selected users outside
its owning account. Shares are removed by a database trigger when the
underlying event is deleted.
"""
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID
import uuid

from unforgotten.database import Base


class FamilyCalendarShare(Base):
    __tablename__ = "family_calendar_shares"
    __table_args__ = (UniqueConstraint("event_type", "event_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)  # 'appointment', 'countdown'
    event_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    shared_by_user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    members: Mapped[list["FamilyCalendarShareMember"]] = relationship(
        "FamilyCalendarShareMember", back_populates="share", cascade="all, delete-orphan"
    )


class FamilyCalendarShareMember(Base):
    __tablename__ = "family_calendar_share_members"
    __table_args__ = (UniqueConstraint("share_id", "member_user_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    share_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("family_calendar_shares.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    share: Mapped["FamilyCalendarShare"] = relationship("FamilyCalendarShare", back_populates="members")
