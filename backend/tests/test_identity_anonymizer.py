import json
import unittest
from datetime import datetime, timezone

import httpx

from marketchat.application.commands.conversations import (
    FindOrCreateConversationCommand,
)
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.domain.entities.message import MessageRecord, MessageStatus
from marketchat.domain.exceptions import IdentityResolutionError
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.handle import Handle
from marketchat.infrastructure.identity import (
    CachedIdentityGateway,
    HttpIdentityGateway,
    derive_handle,
)
from fakes import HANDLE_SECRET, ChatWorld

ACCOUNT = AccountId("7b0c2a52-3f1e-4d8a-9a55-0e4c1d2b3a41")
OTHER = AccountId("c5d8e0f1-1234-4abc-8def-0123456789ab")


class CountingGateway(IdentityGateway):
    def __init__(self, error: Exception = None):
        self.calls = 0
        self.error = error

    async def own_handle(self, account_id):
        self.calls += 1
        if self.error:
            raise self.error
        return derive_handle(account_id, HANDLE_SECRET)

    async def conversation_peer(self, conversation_id, viewer_id):
        self.calls += 1
        if self.error:
            raise self.error
        return derive_handle(OTHER, HANDLE_SECRET)

    async def resolve_account(self, handle):
        self.calls += 1
        if self.error:
            raise self.error
        return OTHER


class FakeRedis:
    def __init__(self, broken: bool = False):
        self.store = {}
        self.broken = broken

    async def get(self, key):
        if self.broken:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.broken:
            raise ConnectionError("redis down")
        self.store[key] = value


class HandleDerivationTests(unittest.TestCase):
    def test_same_account_same_handle(self):
        self.assertEqual(
            derive_handle(ACCOUNT, HANDLE_SECRET), derive_handle(ACCOUNT, HANDLE_SECRET)
        )

    def test_handle_does_not_contain_account_id(self):
        handle = derive_handle(ACCOUNT, HANDLE_SECRET)
        self.assertEqual(len(handle.value), 32)
        self.assertNotIn(ACCOUNT.value, handle.value)
        self.assertNotIn(ACCOUNT.value.replace("-", "")[:16], handle.value)

    def test_different_accounts_and_secrets_give_different_handles(self):
        self.assertNotEqual(
            derive_handle(ACCOUNT, HANDLE_SECRET), derive_handle(OTHER, HANDLE_SECRET)
        )
        self.assertNotEqual(
            derive_handle(ACCOUNT, HANDLE_SECRET), derive_handle(ACCOUNT, "rotated")
        )

    def test_missing_secret_is_refused(self):
        with self.assertRaises(IdentityResolutionError):
            derive_handle(ACCOUNT, "")


class IdentityAnonymizerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.world = ChatWorld()
        self.vendor = self.world.account("Vendor")
        self.buyer = self.world.account("Buyer")
        self.outsider = self.world.account("Outsider")
        self.conversation = self.world.conversations.add(self.buyer.id, self.vendor.id)

    async def test_own_handle_is_cached_for_the_process(self):
        gateway = CountingGateway()
        anonymizer = IdentityAnonymizer(gateway)
        first = await anonymizer.resolve_own_handle(ACCOUNT)
        second = await anonymizer.resolve_own_handle(ACCOUNT)
        self.assertEqual(first, second)
        self.assertEqual(gateway.calls, 1)

    async def test_peer_handle_matches_what_the_peer_sees_as_own(self):
        anonymizer = self.world.anonymizer
        peer = await anonymizer.resolve_conversation_peer(
            self.conversation.id, self.buyer.id
        )
        vendor_own = await anonymizer.resolve_own_handle(self.vendor.id)
        self.assertEqual(peer, vendor_own)

    async def test_outsider_cannot_resolve_peer(self):
        with self.assertRaises(IdentityResolutionError):
            await self.world.anonymizer.resolve_conversation_peer(
                self.conversation.id, self.outsider.id
            )

    async def test_resolve_account_round_trips_through_profiles(self):
        handle = self.world.handle_of(self.vendor.id)
        account_id = await self.world.anonymizer.resolve_account(handle)
        self.assertEqual(account_id, self.vendor.id)

    async def test_derived_handle_resolves_without_a_seeded_profile(self):
        late_vendor = self.world.account("Late Vendor", seed_handle=False)

        handle = await self.world.anonymizer.resolve_own_handle(late_vendor.id)
        conversation_id = await self.world.find_or_create_handler.execute(
            FindOrCreateConversationCommand(viewer_id=self.buyer.id, peer_handle=handle)
        )

        conversation = self.world.conversations.conversations[conversation_id]
        self.assertTrue(conversation.includes(late_vendor.id))
        self.assertEqual(self.world.profiles.profiles[late_vendor.id].handle, handle)

    async def test_peer_handle_is_stored_when_first_resolved(self):
        late_vendor = self.world.account("Late Vendor", seed_handle=False)
        conversation = self.world.conversations.add(self.buyer.id, late_vendor.id)

        peer = await self.world.anonymizer.resolve_conversation_peer(
            conversation.id, self.buyer.id
        )

        self.assertEqual(await self.world.anonymizer.resolve_account(peer), late_vendor.id)

    async def test_handle_is_written_once_and_creates_missing_profiles(self):
        stranger = AccountId("0f6a4e2c-9b1d-4c3e-8a7f-5d2b1c0e9f88")
        writes = self.world.profiles.handle_writes

        first = await self.world.gateway.own_handle(stranger)
        second = await self.world.gateway.own_handle(stranger)

        self.assertEqual(first, second)
        self.assertEqual(self.world.profiles.handle_writes, writes + 1)
        self.assertEqual(self.world.profiles.profiles[stranger].handle, first)

    async def test_unknown_handle_fails_resolution(self):
        with self.assertRaises(IdentityResolutionError):
            await self.world.anonymizer.resolve_account(Handle("f" * 32))

    async def test_gateway_errors_become_identity_resolution_errors(self):
        anonymizer = IdentityAnonymizer(CountingGateway(error=TimeoutError("slow")))
        with self.assertRaises(IdentityResolutionError):
            await anonymizer.resolve_own_handle(ACCOUNT)
        # Failures are not cached
        with self.assertRaises(IdentityResolutionError):
            await anonymizer.resolve_own_handle(ACCOUNT)

    async def test_anonymize_replaces_sender_ids_with_handles(self):
        own = Handle("a" * 32)
        peer = Handle("b" * 32)
        mine = MessageRecord.create(self.conversation.id, self.buyer.id, "hello")
        theirs = MessageRecord.create(
            self.conversation.id, self.vendor.id, None, image_url="https://x.test/a.png"
        )
        anonymizer = self.world.anonymizer

        m1 = anonymizer.anonymize(mine, self.buyer.id, own, peer)
        m2 = anonymizer.anonymize(theirs, self.buyer.id, own, peer)

        self.assertEqual(m1.sender, own)
        self.assertEqual(m2.sender, peer)
        self.assertEqual(m1.status, MessageStatus.CONFIRMED)
        self.assertTrue(m2.has_attachment)
        self.assertFalse(hasattr(m1, "sender_id"))


class HttpIdentityGatewayTests(unittest.IsolatedAsyncioTestCase):
    def _gateway(self, handler):
        return HttpIdentityGateway(
            base_url="https://identity.test/functions/v1/",
            api_key="service-key",
            timeout=1,
            transport=httpx.MockTransport(handler),
        )

    async def test_resolve_account_calls_get_vendor_id(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"vendor_id": OTHER.value})

        account_id = await self._gateway(handler).resolve_account(Handle("c" * 32))

        self.assertEqual(account_id, OTHER)
        self.assertEqual(seen["url"], "https://identity.test/functions/v1/get-vendor-id")
        self.assertEqual(seen["auth"], "Bearer service-key")
        self.assertEqual(seen["body"], {"hashed_id": "c" * 32})

    async def test_own_handle_reads_hashed_id(self):
        def handler(request):
            return httpx.Response(200, json={"hashed_id": "d" * 32})

        handle = await self._gateway(handler).own_handle(ACCOUNT)
        self.assertEqual(handle, Handle("d" * 32))

    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(404, json={"error": "Vendor not found"})

        with self.assertRaises(IdentityResolutionError) as ctx:
            await self._gateway(handler).resolve_account(Handle("c" * 32))
        self.assertIn("Vendor not found", str(ctx.exception))

    async def test_unreachable_service_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(IdentityResolutionError):
            await self._gateway(handler).own_handle(ACCOUNT)

    async def test_malformed_body_raises(self):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        with self.assertRaises(IdentityResolutionError):
            await self._gateway(handler).resolve_account(Handle("c" * 32))


class CachedIdentityGatewayTests(unittest.IsolatedAsyncioTestCase):
    async def test_second_lookup_is_served_from_cache(self):
        inner = CountingGateway()
        gateway = CachedIdentityGateway(inner, FakeRedis(), ttl=60)

        first = await gateway.resolve_account(Handle("c" * 32))
        second = await gateway.resolve_account(Handle("c" * 32))

        self.assertEqual(first, OTHER)
        self.assertEqual(second, OTHER)
        self.assertEqual(inner.calls, 1)

    async def test_broken_cache_falls_back_to_gateway(self):
        inner = CountingGateway()
        gateway = CachedIdentityGateway(inner, FakeRedis(broken=True), ttl=60)

        handle = await gateway.own_handle(ACCOUNT)

        self.assertEqual(handle, derive_handle(ACCOUNT, HANDLE_SECRET))
        self.assertEqual(inner.calls, 1)

    async def test_failures_are_not_cached(self):
        inner = CountingGateway(error=IdentityResolutionError("down"))
        redis = FakeRedis()
        gateway = CachedIdentityGateway(inner, redis, ttl=60)

        with self.assertRaises(IdentityResolutionError):
            await gateway.own_handle(ACCOUNT)
        self.assertEqual(redis.store, {})
