import asyncio
import unittest
from uuid import uuid4

from marketchat.application.commands.chat.send_message import SendMessageCommand
from marketchat.domain.exceptions import AccessDeniedError, EntityNotFoundError, LoadError
from marketchat.domain.value_objects.conversation_id import ConversationId
from fakes import ChatWorld, FakeClock, InMemoryChangeFeed, eventually


class ChatSessionTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.feed = InMemoryChangeFeed()
        self.world = ChatWorld(change_feed=self.feed)
        self.buyer = self.world.account("Buyer")
        self.vendor = self.world.account("Vendor")
        self.other_vendor = self.world.account("Other Vendor")
        self.session = self.world.session(self.buyer)

    async def asyncTearDown(self):
        await self.session.close()

    async def _start(self, peer):
        return await self.session.start_conversation(self.world.handle_of(peer.id))

    async def _peer_says(self, peer, conversation_id, content):
        await self.world.send_handler.execute(
            SendMessageCommand(
                conversation_id=conversation_id, sender_id=peer.id, content=content
            )
        )

    async def test_unverified_account_is_refused_everything(self):
        conversation_id = await self._start(self.vendor)
        session = self.world.session(self.world.account("New", email_verified=False))

        with self.assertRaises(AccessDeniedError):
            await session.current_own_handle()
        with self.assertRaises(AccessDeniedError):
            await session.list_conversations()
        with self.assertRaises(AccessDeniedError):
            await session.start_conversation(self.world.handle_of(self.vendor.id))
        with self.assertRaises(AccessDeniedError):
            await session.open_conversation(conversation_id)
        self.assertEqual(self.feed.subscriptions, [])

    async def test_verification_gate_can_be_disabled(self):
        session = self.world.session(
            self.world.account("New", email_verified=False), require_verified=False
        )
        handle = await session.current_own_handle()
        self.assertEqual(handle, self.world.handle_of(session.account.id))

    async def test_start_open_and_send(self):
        conversation_id = await self._start(self.vendor)
        await self._peer_says(self.vendor, conversation_id, "Still available?")

        messages = await self.session.open_conversation(conversation_id)
        sent = await self.session.send_message(conversation_id, "Yes!")

        self.assertEqual(self.session.open_conversation_id, conversation_id)
        self.assertEqual([m.content for m in messages], ["Still available?"])
        self.assertEqual(
            [m.content for m in self.session.current_messages()],
            ["Still available?", "Yes!"],
        )
        self.assertEqual(sent.sender, await self.session.current_own_handle())

    async def test_opening_another_conversation_closes_the_first(self):
        first = await self._start(self.vendor)
        second = await self._start(self.other_vendor)
        await self._peer_says(self.vendor, first, "from first")
        await self._peer_says(self.other_vendor, second, "from second")

        await self.session.open_conversation(first)
        messages = await self.session.open_conversation(second)

        self.assertEqual([m.content for m in messages], ["from second"])
        self.assertEqual(self.session.open_conversation_id, second)
        self.assertEqual(self.session.current_messages(first), [])
        self.assertEqual(
            [s.conversation_id for s in self.feed.subscriptions], [second]
        )

    async def test_rapid_switch_never_shows_the_left_conversation(self):
        first = await self._start(self.vendor)
        second = await self._start(self.other_vendor)
        await self._peer_says(self.vendor, first, "from first")
        await self._peer_says(self.other_vendor, second, "from second")
        self.world.messages.read_gate = asyncio.Event()

        opening_first = asyncio.create_task(self.session.open_conversation(first))
        await asyncio.sleep(0.01)
        opening_second = asyncio.create_task(self.session.open_conversation(second))
        await asyncio.sleep(0.01)
        self.world.messages.read_gate.set()

        self.assertEqual(await opening_first, [])
        second_messages = await opening_second
        self.assertEqual([m.content for m in second_messages], ["from second"])
        self.assertEqual(
            [m.content for m in self.session.current_messages()], ["from second"]
        )

    async def test_reopening_the_open_conversation_reuses_the_view(self):
        conversation_id = await self._start(self.vendor)
        await self.session.open_conversation(conversation_id)
        reads = self.world.messages.reads

        await self.session.open_conversation(conversation_id)

        self.assertEqual(self.world.messages.reads, reads)
        self.assertEqual(len(self.feed.subscriptions), 1)

    async def test_failed_open_leaves_nothing_open(self):
        conversation_id = await self._start(self.vendor)
        self.world.messages.fail_reads = True

        with self.assertRaises(LoadError):
            await self.session.open_conversation(conversation_id)

        self.assertIsNone(self.session.open_conversation_id)
        self.assertEqual(self.session.current_messages(), [])

    async def test_sending_requires_the_conversation_to_be_open(self):
        first = await self._start(self.vendor)
        second = await self._start(self.other_vendor)

        with self.assertRaises(EntityNotFoundError):
            await self.session.send_message(first, "hello")

        await self.session.open_conversation(second)
        with self.assertRaises(EntityNotFoundError):
            await self.session.send_message(first, "hello")
        self.assertEqual(self.world.messages.records, [])

    async def test_closing_a_different_conversation_keeps_the_open_one(self):
        conversation_id = await self._start(self.vendor)
        await self.session.open_conversation(conversation_id)

        await self.session.close_conversation(ConversationId(str(uuid4())))
        self.assertEqual(self.session.open_conversation_id, conversation_id)

        await self.session.close_conversation(conversation_id)
        self.assertIsNone(self.session.open_conversation_id)
        self.assertEqual(self.feed.subscriptions, [])


class ChatSessionRegistryTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.feed = InMemoryChangeFeed()
        self.world = ChatWorld(change_feed=self.feed)
        self.registry = self.world.registry()
        self.buyer = self.world.account("Buyer")
        self.vendor = self.world.account("Vendor")

    async def asyncTearDown(self):
        await self.registry.close_all()

    async def test_same_session_key_returns_same_session(self):
        first = await self.registry.get(self.buyer, "tab-1")
        again = await self.registry.get(self.buyer, "tab-1")
        other_tab = await self.registry.get(self.buyer, "tab-2")
        vendor = await self.registry.get(self.vendor, "tab-1")

        self.assertIs(first, again)
        self.assertIsNot(first, other_tab)
        self.assertIsNot(first, vendor)
        self.assertEqual(len(self.registry), 3)

    async def test_missing_session_key_uses_default(self):
        self.assertIs(
            await self.registry.get(self.buyer), await self.registry.get(self.buyer, None)
        )

    async def test_existing_session_picks_up_new_claims(self):
        unverified = self.world.account("Late", email_verified=False)
        session = await self.registry.get(unverified)
        with self.assertRaises(AccessDeniedError):
            await session.list_conversations()

        unverified.email_verified = True
        session = await self.registry.get(unverified)

        self.assertEqual(await session.list_conversations(), [])

    async def test_close_all_closes_open_views(self):
        session = await self.registry.get(self.buyer)
        conversation_id = await session.start_conversation(
            self.world.handle_of(self.vendor.id)
        )
        await session.open_conversation(conversation_id)
        self.assertEqual(len(self.feed.subscriptions), 1)

        await self.registry.close_all()

        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.feed.subscriptions, [])
        self.assertIsNone(session.open_conversation_id)

    async def test_close_session_removes_only_that_session(self):
        await self.registry.get(self.buyer, "tab-1")
        await self.registry.get(self.buyer, "tab-2")

        await self.registry.close_session(self.buyer.id, "tab-1")

        self.assertEqual(len(self.registry), 1)


class IdleSessionSweepTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.feed = InMemoryChangeFeed()
        self.world = ChatWorld(change_feed=self.feed)
        self.clock = FakeClock()
        self.registry = self.world.registry(idle_timeout=60, clock=self.clock)
        self.buyer = self.world.account("Buyer")
        self.vendor = self.world.account("Vendor")

    async def asyncTearDown(self):
        await self.registry.close_all()

    async def test_idle_session_is_closed_with_its_open_view(self):
        session = await self.registry.get(self.buyer, "tab-1")
        conversation_id = await session.start_conversation(
            self.world.handle_of(self.vendor.id)
        )
        await session.open_conversation(conversation_id)

        self.clock.advance(61)
        closed = await self.registry.sweep()

        self.assertEqual(closed, 1)
        self.assertEqual(len(self.registry), 0)
        self.assertIsNone(session.open_conversation_id)
        self.assertEqual(self.feed.subscriptions, [])

    async def test_recently_used_session_survives_the_sweep(self):
        await self.registry.get(self.buyer, "tab-1")
        await self.registry.get(self.vendor, "tab-1")

        self.clock.advance(45)
        await self.registry.get(self.buyer, "tab-1")
        self.clock.advance(30)

        self.assertEqual(await self.registry.sweep(), 1)
        self.assertEqual(len(self.registry), 1)
        self.assertIs(
            await self.registry.get(self.buyer, "tab-1"),
            await self.registry.get(self.buyer, "tab-1"),
        )

    async def test_sweeper_runs_in_the_background_until_close_all(self):
        await self.registry.get(self.buyer)
        self.clock.advance(61)

        self.registry.start_sweeper(interval=0.01)

        self.assertTrue(await eventually(lambda: len(self.registry) == 0))
        await self.registry.close_all()
