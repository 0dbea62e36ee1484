"""
Profile Repository Port - Interface for public profile lookups.
Implementation: marketchat/infrastructure/persistence/prisma_profile_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional

from marketchat.domain.entities.profile import Profile
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.handle import Handle


class ProfileRepository(ABC):
    @abstractmethod
    async def get_many(
        self, account_ids: list[AccountId]
    ) -> dict[AccountId, Profile]: ...

    @abstractmethod
    async def get_by_handle(self, handle: Handle) -> Optional[Profile]:
        """Privileged lookup; only identity gateways may call this."""
        ...

    @abstractmethod
    async def assign_handle(self, account_id: AccountId, handle: Handle) -> None:
        """Store the account's handle, creating the profile row if needed."""
        ...
