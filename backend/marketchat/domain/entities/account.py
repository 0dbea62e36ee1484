"""
Account Entity - the signed-in user, as supplied by the identity provider.
"""

from dataclasses import dataclass
from typing import Optional

from marketchat.domain.value_objects.account_id import AccountId


@dataclass
class Account:
    # Required fields (no defaults) - must come first
    id: AccountId
    email_verified: bool
    # Optional fields (with defaults) - must come last
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
