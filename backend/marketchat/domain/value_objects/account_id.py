"""
AccountId Value Object - durable identity issued by the identity provider.

Never shown to the other participant of a conversation; see Handle.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AccountId:
    value: str  # account id, presented as UUID string

    def __post_init__(self):
        if not self.value:
            raise ValueError("AccountId cannot be empty")

        UUID(self.value)  # Validate UUID format

    def __str__(self) -> str:
        return self.value
