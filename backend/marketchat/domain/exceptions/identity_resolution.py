"""
IdentityResolutionError - The privileged identity boundary could not map
an account to a handle (or back), or the caller is not a participant.

Not retried within the current cycle; the next user-initiated refresh may retry.
Maps to: HTTP 502 Bad Gateway
"""


class IdentityResolutionError(Exception):
    """Raised when a handle or account cannot be resolved."""

    def __init__(self, message: str = "Identity could not be resolved"):
        super().__init__(message)
