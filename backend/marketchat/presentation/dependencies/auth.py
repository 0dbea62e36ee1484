"""
Authentication Dependency for FastAPI.

- Extracts and validates the JWT issued by the identity provider
- Returns the signed-in Account plus the token's session id
- Raises HTTPException 401 if unauthorized

Claims used:
- sub                   → account id (UUID)
- email_verified        → top level, or inside user_metadata
- user_metadata.full_name / avatar_url (optional)
- session_id            → separates two devices of the same account

Config needed (from marketchat.config.settings):
- SERVICE_AUTH_SECRET
- SERVICE_AUTH_ISSUER
- SERVICE_AUTH_AUDIENCE
"""

import jwt
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from marketchat.domain.entities.account import Account
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.config.settings import Config


@dataclass
class AuthAccount:
    account: Account
    session_key: Optional[str] = None

    @property
    def id(self) -> AccountId:
        return self.account.id


security = HTTPBearer()


def _claim_flag(value) -> bool:
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    return bool(value)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthAccount:
    """
    Extract and validate the account from the JWT token.

    Raises:
        HTTPException 401 if token is invalid, expired, or missing required claims
    """
    claims = None
    try:
        token = credentials.credentials
        claims = jwt.decode(
            token,
            Config.SERVICE_AUTH_SECRET,
            algorithms=["HS256"],
            audience=Config.SERVICE_AUTH_AUDIENCE,
            issuer=Config.SERVICE_AUTH_ISSUER,
            options={"require": ["exp", "iat", "aud", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )

    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        )

    metadata = claims.get("user_metadata") or {}
    try:
        account_id = AccountId(claims["sub"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing required claims in token",
        )

    verified = claims.get("email_verified", metadata.get("email_verified", False))
    account = Account(
        id=account_id,
        email_verified=_claim_flag(verified),
        display_name=metadata.get("full_name"),
        avatar_url=metadata.get("avatar_url"),
    )
    return AuthAccount(account=account, session_key=claims.get("session_id"))
