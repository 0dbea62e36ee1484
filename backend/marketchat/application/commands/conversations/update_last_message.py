"""
Update Last Message Command.

The summary shown in the conversation list is cosmetic: a failure here is
logged and swallowed so it can never fail the send that triggered it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from marketchat.application.common.interfaces import Command, CommandHandler
from marketchat.domain.ports.repositories import ConversationRepository
from marketchat.domain.value_objects.conversation_id import ConversationId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateLastMessageCommand(Command[bool]):
    conversation_id: ConversationId
    text: str
    at: datetime


class UpdateLastMessageHandler(CommandHandler[bool]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, command: UpdateLastMessageCommand) -> bool:
        """Returns False when the update failed; an older summary is skipped quietly."""
        try:
            applied = await self._conversation_repository.update_last_message(
                command.conversation_id, command.text, command.at
            )
            if not applied:
                logger.debug(
                    f"[Directory] Kept newer summary for {command.conversation_id}"
                )
            return True
        except Exception as e:
            logger.warning(
                f"[Directory] Last-message update failed for "
                f"{command.conversation_id}: {e}"
            )
            return False
