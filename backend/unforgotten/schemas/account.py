"""
Account, member and profile schemas.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel
from uuid import UUID


class MemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    HELPER = "helper"
    VIEWER = "viewer"


class AppUserRead(BaseModel):
    id: UUID
    email: str
    is_app_admin: bool = False
    has_complimentary_access: bool = False

    class Config:
        from_attributes = True


class AccountMemberWithUser(BaseModel):
    """
    An entry in an account's member roster.

    Synthesized entries are users connected through a profile sync who have
    no membership row in the account; they carry the viewer role.
    """

    member_id: UUID
    account_id: UUID
    user_id: UUID
    role: MemberRole
    email: str
    created_at: datetime
    is_synthesized: bool = False

    @property
    def display_name(self) -> str:
        """Name part of the email, capitalized."""
        name = self.email.split("@")[0] if self.email else ""
        return name.capitalize() or self.email

    @classmethod
    def synthesized(cls, account_id: UUID, user: AppUserRead) -> "AccountMemberWithUser":
        return cls(
            member_id=user.id,
            account_id=account_id,
            user_id=user.id,
            role=MemberRole.VIEWER,
            email=user.email,
            created_at=datetime.utcnow(),
            is_synthesized=True,
        )


class ProfileRead(BaseModel):
    id: UUID
    account_id: UUID
    type: str = "relative"
    full_name: str
    preferred_name: Optional[str] = None
    birthday: Optional[date] = None
    is_deceased: bool = False
    linked_user_id: Optional[UUID] = None
    source_user_id: Optional[UUID] = None

    class Config:
        from_attributes = True

    @property
    def display_name(self) -> str:
        return self.preferred_name or self.full_name

    @property
    def member_user_id(self) -> Optional[UUID]:
        """The user account this profile is attributed to, if any."""
        return self.linked_user_id or self.source_user_id


class ProfileSyncRead(BaseModel):
    id: UUID
    inviter_user_id: UUID
    inviter_account_id: UUID
    acceptor_user_id: UUID
    acceptor_account_id: UUID
    status: str = "active"

    class Config:
        from_attributes = True

    def other_user_id(self, user_id: UUID) -> UUID:
        """The user on the other side of the sync from user_id."""
        if self.inviter_user_id == user_id:
            return self.acceptor_user_id
        return self.inviter_user_id
