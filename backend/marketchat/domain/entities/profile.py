"""
Profile Entity - public display data for an account.

The handle column lets the privileged side map a handle back to its account.
"""

from dataclasses import dataclass
from typing import Optional

from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.handle import Handle


@dataclass
class Profile:
    account_id: AccountId
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    handle: Optional[Handle] = None
