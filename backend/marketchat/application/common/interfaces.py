"""
CQRS base classes shared by every command and query of the messaging core.

Commands change state (create a conversation, store a message, upload an
attachment); queries only read (list conversations, load history). Both are
frozen dataclasses carrying ids and values, and each has exactly one handler:

    @dataclass(frozen=True)
    class GetChatHistoryQuery(Query[GetChatHistoryResult]):
        conversation_id: ConversationId
        viewer_id: AccountId

    class GetChatHistoryHandler(QueryHandler[GetChatHistoryResult]):
        async def execute(self, query: GetChatHistoryQuery) -> GetChatHistoryResult:
            ...
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

R = TypeVar("R")


class Command(ABC, Generic[R]):
    """A write; R is what its handler returns."""


class CommandHandler(ABC, Generic[R]):
    @abstractmethod
    async def execute(self, command: Command[R]) -> R: ...


class Query(ABC, Generic[R]):
    """A read; R is what its handler returns."""


class QueryHandler(ABC, Generic[R]):
    @abstractmethod
    async def execute(self, query: Query[R]) -> R: ...
