"""
Family calendar sharing: share records and their member lists.

Shares for deleted events are removed by a trigger in the remote store, so
reads here never need to filter out dangling shares.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unforgotten.database import AsyncSessionLocal
from unforgotten.models.account import AccountMember
from unforgotten.models.family_calendar import FamilyCalendarShare, FamilyCalendarShareMember
from unforgotten.repositories.base import SessionRepository
from unforgotten.schemas.calendar import (
    CalendarEventType,
    FamilyCalendarShareMemberRead,
    FamilyCalendarShareRead,
    SharedEventIds,
)


class FamilyCalendarRepository(SessionRepository):
    """
    Share reads and writes on behalf of one user.

    Args:
        user_id: The current user; recorded as the sharer on new shares and
            used to scope visibility reads
        session_factory: Remote store session factory
    """

    def __init__(
        self,
        user_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    ):
        super().__init__(session_factory)
        self.user_id = user_id

    def _member_share_ids(self):
        return select(FamilyCalendarShareMember.share_id).where(
            FamilyCalendarShareMember.member_user_id == self.user_id
        )

    async def create_share(
        self,
        account_id: UUID,
        event_type: CalendarEventType,
        event_id: UUID,
        member_user_ids: List[UUID],
    ) -> FamilyCalendarShareRead:
        async with self.session_factory() as db:
            share = FamilyCalendarShare(
                account_id=account_id,
                event_type=event_type.value,
                event_id=event_id,
                shared_by_user_id=self.user_id,
            )
            share.members = [
                FamilyCalendarShareMember(member_user_id=member_id)
                for member_id in dict.fromkeys(member_user_ids)
            ]
            db.add(share)
            await db.commit()
            await db.refresh(share)
            return FamilyCalendarShareRead.model_validate(share)

    async def update_share_members(self, share_id: UUID, member_user_ids: List[UUID]) -> None:
        """Replace a share's member list."""
        async with self.session_factory() as db:
            await db.execute(
                delete(FamilyCalendarShareMember).where(FamilyCalendarShareMember.share_id == share_id)
            )
            for member_id in dict.fromkeys(member_user_ids):
                db.add(FamilyCalendarShareMember(share_id=share_id, member_user_id=member_id))
            await db.commit()

    async def delete_share(self, share_id: UUID) -> None:
        async with self.session_factory() as db:
            await db.execute(delete(FamilyCalendarShare).where(FamilyCalendarShare.id == share_id))
            await db.commit()

    async def delete_share_for_event(self, event_type: CalendarEventType, event_id: UUID) -> None:
        async with self.session_factory() as db:
            await db.execute(
                delete(FamilyCalendarShare).where(
                    FamilyCalendarShare.event_type == event_type.value,
                    FamilyCalendarShare.event_id == event_id,
                )
            )
            await db.commit()

    async def get_share_for_event(
        self, event_type: CalendarEventType, event_id: UUID
    ) -> Optional[FamilyCalendarShareRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(FamilyCalendarShare).where(
                    FamilyCalendarShare.event_type == event_type.value,
                    FamilyCalendarShare.event_id == event_id,
                )
            )
            share = result.scalar_one_or_none()
            if share is None:
                return None
            return FamilyCalendarShareRead.model_validate(share)

    async def get_members_for_share(self, share_id: UUID) -> List[FamilyCalendarShareMemberRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(FamilyCalendarShareMember).where(FamilyCalendarShareMember.share_id == share_id)
            )
            return [FamilyCalendarShareMemberRead.model_validate(m) for m in result.scalars().all()]

    async def get_all_shares_for_account(self, account_id: UUID) -> List[FamilyCalendarShareRead]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(FamilyCalendarShare)
                .where(FamilyCalendarShare.account_id == account_id)
                .order_by(FamilyCalendarShare.created_at)
            )
            return [FamilyCalendarShareRead.model_validate(s) for s in result.scalars().all()]

    async def get_shares_visible_to_user(self) -> List[FamilyCalendarShareRead]:
        """
        Shares of every account the user belongs to, plus shares from any
        account that list the user as a member.
        """
        own_accounts = select(AccountMember.account_id).where(AccountMember.user_id == self.user_id)
        async with self.session_factory() as db:
            result = await db.execute(
                select(FamilyCalendarShare)
                .where(
                    or_(
                        FamilyCalendarShare.account_id.in_(own_accounts),
                        FamilyCalendarShare.shared_by_user_id == self.user_id,
                        FamilyCalendarShare.id.in_(self._member_share_ids()),
                    )
                )
                .order_by(FamilyCalendarShare.created_at)
            )
            return [FamilyCalendarShareRead.model_validate(s) for s in result.scalars().all()]

    async def get_shared_event_ids_for_user(self, account_id: UUID) -> SharedEventIds:
        """
        Ids of events shared to the family calendar that the user can see:
        the account's shares the user created, plus shares from any account
        where the user is a member.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                select(FamilyCalendarShare.event_type, FamilyCalendarShare.event_id).where(
                    or_(
                        and_(
                            FamilyCalendarShare.account_id == account_id,
                            FamilyCalendarShare.shared_by_user_id == self.user_id,
                        ),
                        FamilyCalendarShare.id.in_(self._member_share_ids()),
                    )
                )
            )
            rows = result.all()

        ids = SharedEventIds()
        for event_type, event_id in rows:
            if event_type == CalendarEventType.APPOINTMENT.value:
                ids.appointment_ids.add(event_id)
            elif event_type == CalendarEventType.COUNTDOWN.value:
                ids.countdown_ids.add(event_id)
        return ids
