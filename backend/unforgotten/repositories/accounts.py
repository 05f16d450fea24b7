"""
Account, member, user and profile reads.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload

from unforgotten.models.account import AccountMember
from unforgotten.models.profile import Profile, ProfileSync
from unforgotten.models.user import AppUser
from unforgotten.repositories.base import SessionRepository
from unforgotten.schemas.account import (
    AccountMemberWithUser,
    AppUserRead,
    ProfileRead,
    ProfileSyncRead,
)


class ProfileRepository(SessionRepository):
    async def get_profiles(self, account_id: UUID) -> List[ProfileRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Profile)
                .where(Profile.account_id == account_id)
                .order_by(Profile.sort_order, Profile.full_name)
            )
            return [ProfileRead.model_validate(p) for p in result.scalars().all()]


class AccountRepository(SessionRepository):
    async def get_account_members_with_users(self, account_id: UUID) -> List[AccountMemberWithUser]:
        """Membership rows for an account, joined with each member's user record."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(AccountMember)
                .options(selectinload(AccountMember.user))
                .where(AccountMember.account_id == account_id)
                .order_by(AccountMember.created_at)
            )
            return [
                AccountMemberWithUser(
                    member_id=member.id,
                    account_id=member.account_id,
                    user_id=member.user_id,
                    role=member.role,
                    email=member.user.email if member.user else "",
                    created_at=member.created_at,
                )
                for member in result.scalars().all()
            ]


class AppUserRepository(SessionRepository):
    async def get_user(self, user_id: UUID) -> Optional[AppUserRead]:
        async with self.session_factory() as db:
            result = await db.execute(select(AppUser).where(AppUser.id == user_id))
            user = result.scalar_one_or_none()
            if user is None:
                return None
            return AppUserRead.model_validate(user)


class ProfileSyncRepository(SessionRepository):
    async def get_syncs_for_user(self, user_id: UUID) -> List[ProfileSyncRead]:
        """Active profile syncs where the user is on either side."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(ProfileSync).where(
                    or_(
                        ProfileSync.inviter_user_id == user_id,
                        ProfileSync.acceptor_user_id == user_id,
                    ),
                    ProfileSync.status == "active",
                )
            )
            return [ProfileSyncRead.model_validate(s) for s in result.scalars().all()]
