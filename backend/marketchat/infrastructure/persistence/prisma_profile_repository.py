"""
Prisma Profile Repository Implementation.

Prisma Profile Model (from prisma/schema.prisma):
    model Profile {
        id         String  @id
        full_name  String?
        avatar_url String?
        hashed_id  String? @unique
    }

hashed_id holds the account's handle. The in-process identity gateway writes it
the first time it derives a handle for an account.
"""

from typing import Optional
from prisma import Prisma
from prisma.models import Profile as PrismaProfile
from marketchat.domain.entities.profile import Profile
from marketchat.domain.ports.repositories import ProfileRepository
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.handle import Handle


class PrismaProfileRepository(ProfileRepository):
    _prisma: Prisma

    def __init__(self, prisma: Prisma):
        self._prisma = prisma

    def _to_entity(self, record: PrismaProfile) -> Profile:
        return Profile(
            account_id=AccountId(record.id),
            display_name=record.full_name,
            avatar_url=record.avatar_url,
            handle=Handle(record.hashed_id) if record.hashed_id else None,
        )

    async def get_many(
        self, account_ids: list[AccountId]
    ) -> dict[AccountId, Profile]:
        """Profiles keyed by account; accounts without a profile are left out."""
        if not account_ids:
            return {}
        records = await self._prisma.profile.find_many(
            where={"id": {"in": list({a.value for a in account_ids})}}
        )
        profiles = [self._to_entity(record) for record in records]
        return {profile.account_id: profile for profile in profiles}

    async def get_by_handle(self, handle: Handle) -> Optional[Profile]:
        record = await self._prisma.profile.find_unique(
            where={"hashed_id": handle.value}
        )
        return self._to_entity(record) if record else None

    async def assign_handle(self, account_id: AccountId, handle: Handle) -> None:
        await self._prisma.profile.upsert(
            where={"id": account_id.value},
            data={
                "create": {"id": account_id.value, "hashed_id": handle.value},
                "update": {"hashed_id": handle.value},
            },
        )
