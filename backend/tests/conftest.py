import os
import jwt
import time
import pytest
import sys
from typing import Optional

# Add backend directory to path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__) + '/..'))

from dishka import Provider, Scope, make_async_container, provide
from fastapi.testclient import TestClient

from marketchat.config.settings import Config
from marketchat.domain.entities.account import Account
from marketchat.domain.ports.blob_store import BlobStore
from marketchat.domain.ports.change_feed import ChangeFeed
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
    ProfileRepository,
)
from marketchat.fastapi_app import create_fastapi_app
from marketchat.setup.ioc.application import ChatProvider
from fakes import AUD, ISS, SERVICE_AUTH_SECRET, ChatWorld


def _service_token(account: Account, verified: bool = True, sid: str = "test-sid"):
    now = int(time.time())
    return jwt.encode(
        {
            "sub": account.id.value,
            "email_verified": verified,
            "user_metadata": {"full_name": account.display_name},
            "session_id": sid,
            "iat": now,
            "exp": now + 300,
            "iss": ISS,
            "aud": AUD,
        },
        SERVICE_AUTH_SECRET,
        algorithm="HS256",
    )


class InMemoryProvider(Provider):
    """Serves the ports of a ChatWorld instead of Prisma/Redis/storage."""

    def __init__(self, world: ChatWorld):
        super().__init__()
        self.world = world

    @provide(scope=Scope.APP)
    def get_conversation_repository(self) -> ConversationRepository:
        return self.world.conversations

    @provide(scope=Scope.APP)
    def get_message_repository(self) -> MessageRepository:
        return self.world.messages

    @provide(scope=Scope.APP)
    def get_profile_repository(self) -> ProfileRepository:
        return self.world.profiles

    @provide(scope=Scope.APP)
    def get_identity_gateway(self) -> IdentityGateway:
        return self.world.gateway

    @provide(scope=Scope.APP)
    def get_blob_store(self) -> BlobStore:
        return self.world.blobs

    @provide(scope=Scope.APP)
    def get_change_feed(self) -> Optional[ChangeFeed]:
        return None


@pytest.fixture(autouse=True)
def auth_config(monkeypatch):
    monkeypatch.setattr(Config, "SERVICE_AUTH_SECRET", SERVICE_AUTH_SECRET)
    monkeypatch.setattr(Config, "SERVICE_AUTH_AUDIENCE", AUD)
    monkeypatch.setattr(Config, "SERVICE_AUTH_ISSUER", ISS)
    monkeypatch.setattr(Config, "REQUIRE_VERIFIED_EMAIL", True)
    # No static /media mount: attachments go to the in-memory blob store
    monkeypatch.setattr(Config, "BLOB_BACKEND", "memory")
    monkeypatch.setattr(Config, "LOG_PATH", None)


@pytest.fixture()
def world():
    return ChatWorld()


@pytest.fixture()
def app(world):
    """Create and configure a new FastAPI app instance for each test."""
    container = make_async_container(InMemoryProvider(world), ChatProvider())
    return create_fastapi_app(container)


@pytest.fixture()
def client(app):
    """A test client for the FastAPI app; runs the app's lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def buyer(world):
    return world.account("Buyer")


@pytest.fixture()
def vendor(world):
    return world.account("Vendor", avatar_url="https://avatars.test/vendor.png")


@pytest.fixture()
def auth_headers():
    """Build authentication headers with a valid JWT for an account."""

    def _headers(account: Account, verified: bool = True, sid: str = "test-sid"):
        return {"Authorization": f"Bearer {_service_token(account, verified, sid)}"}

    return _headers
