"""
Handle Value Object - pseudonymous stand-in for an AccountId.

Opaque string: consumers must not assume any structure.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Handle:
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Handle cannot be empty")

    def __str__(self) -> str:
        return self.value
