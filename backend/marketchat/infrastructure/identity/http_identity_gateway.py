"""
HTTP Identity Gateway - calls a remote privileged boundary (edge functions).

Endpoints (POST, JSON, bearer service key):
- get-own-hashed-id      {"account_id"}                     → {"hashed_id"}
- get-conversation-peer  {"conversation_id", "viewer_id"}   → {"hashed_id"}
- get-vendor-id          {"hashed_id"}                      → {"vendor_id"}

Transport errors, timeouts, non-2xx answers and malformed bodies all become
IdentityResolutionError.
"""

import logging
from typing import Any, Optional

import httpx

from marketchat.config.settings import Config
from marketchat.domain.exceptions import IdentityResolutionError
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)


class HttpIdentityGateway(IdentityGateway):
    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or Config.IDENTITY_GATEWAY_URL).rstrip("/")
        self._api_key = api_key if api_key is not None else Config.IDENTITY_GATEWAY_KEY
        self._timeout = timeout or Config.IDENTITY_GATEWAY_TIMEOUT
        self._transport = transport

    async def own_handle(self, account_id: AccountId) -> Handle:
        data = await self._post("get-own-hashed-id", {"account_id": account_id.value})
        return Handle(self._field(data, "hashed_id"))

    async def conversation_peer(
        self, conversation_id: ConversationId, viewer_id: AccountId
    ) -> Handle:
        data = await self._post(
            "get-conversation-peer",
            {"conversation_id": conversation_id.value, "viewer_id": viewer_id.value},
        )
        return Handle(self._field(data, "hashed_id"))

    async def resolve_account(self, handle: Handle) -> AccountId:
        data = await self._post("get-vendor-id", {"hashed_id": handle.value})
        return AccountId(self._field(data, "vendor_id"))

    async def _post(self, function: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{function}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"[Identity] {function} unreachable: {type(e).__name__}")
            raise IdentityResolutionError(f"Identity service unreachable: {e}") from e

        if response.status_code >= 400:
            error_detail = response.text
            try:
                error_detail = response.json().get("error", error_detail)
            except (ValueError, AttributeError):
                pass
            raise IdentityResolutionError(
                f"Identity service error ({response.status_code}): {error_detail}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise IdentityResolutionError("Identity service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise IdentityResolutionError("Identity service returned invalid JSON")
        return data

    @staticmethod
    def _field(data: dict[str, Any], name: str) -> str:
        value = data.get(name)
        if not isinstance(value, str) or not value:
            raise IdentityResolutionError(f"Identity service response lacks '{name}'")
        return value
