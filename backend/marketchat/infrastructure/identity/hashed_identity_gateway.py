"""
Hashed Identity Gateway - in-process privileged boundary.

Handles are HMAC-SHA256(secret, account_id), hex encoded and truncated. The
secret never leaves the server, so a handle cannot be turned back into an
account id by anyone who only sees handles, and it cannot be brute-forced
from the (guessable) UUID space either.

Reverse lookups go through the profiles table. Its hashed_id column is filled
the first time a handle is derived for an account, so any handle this gateway
has handed out can be resolved back.
"""

import hashlib
import hmac
import logging

from marketchat.config.settings import Config
from marketchat.domain.exceptions import IdentityResolutionError
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    ProfileRepository,
)
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)


def derive_handle(account_id: AccountId, secret: str, length: int = 32) -> Handle:
    if not secret:
        raise IdentityResolutionError("Handle secret is not configured")
    digest = hmac.new(
        secret.encode("utf-8"), account_id.value.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return Handle(digest[:length])


class HashedIdentityGateway(IdentityGateway):
    def __init__(
        self,
        profile_repository: ProfileRepository,
        conversation_repository: ConversationRepository,
        secret: str = None,
        length: int = None,
    ):
        self._profiles = profile_repository
        self._conversations = conversation_repository
        self._secret = secret if secret is not None else Config.HANDLE_SECRET
        self._length = length or Config.HANDLE_LENGTH
        # Accounts whose handle is already stored in their profile
        self._stored: set[AccountId] = set()

    async def own_handle(self, account_id: AccountId) -> Handle:
        return await self._handle_for(account_id)

    async def conversation_peer(
        self, conversation_id: ConversationId, viewer_id: AccountId
    ) -> Handle:
        conversation = await self._conversations.get_by_id(conversation_id)
        if conversation is None or not conversation.includes(viewer_id):
            # Same answer for "missing" and "not yours": no membership probing
            raise IdentityResolutionError(
                f"Cannot resolve peer of conversation {conversation_id}"
            )
        return await self._handle_for(conversation.other_participant(viewer_id))

    async def resolve_account(self, handle: Handle) -> AccountId:
        profile = await self._profiles.get_by_handle(handle)
        if profile is None:
            logger.info("[Identity] Handle lookup found no profile")
            raise IdentityResolutionError("Unknown handle")
        return profile.account_id

    async def _handle_for(self, account_id: AccountId) -> Handle:
        handle = derive_handle(account_id, self._secret, self._length)
        if account_id not in self._stored:
            await self._profiles.assign_handle(account_id, handle)
            self._stored.add(account_id)
            logger.debug(f"[Identity] Stored handle for {account_id}")
        return handle
