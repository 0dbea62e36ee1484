"""
ParticipantPair Value Object - the unordered pair of accounts in a conversation.

(a, b) and (b, a) produce the same key, which the store keeps unique.
"""

from dataclasses import dataclass

from marketchat.domain.value_objects.account_id import AccountId


@dataclass(frozen=True)
class ParticipantPair:
    first: AccountId
    second: AccountId

    def __post_init__(self):
        if self.first == self.second:
            raise ValueError("A conversation needs two different participants")

    @classmethod
    def of(cls, a: AccountId, b: AccountId) -> "ParticipantPair":
        low, high = sorted((a, b), key=lambda account: account.value)
        return cls(first=low, second=high)

    @property
    def key(self) -> str:
        return f"{self.first.value}:{self.second.value}"

    def __contains__(self, account_id: AccountId) -> bool:
        return account_id in (self.first, self.second)
