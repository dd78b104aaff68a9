import json
from unittest import mock

from asgiref.sync import async_to_sync
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from utils.exceptions import ValidationException
from utils.logging import mask_email
from .consumers import MemberSessionConsumer
from .feeds import ChannelLayerChangeFeed, InProcessChangeFeed
from .models import SimpleMember
from .session import LocalSessionStore
from .storage import InMemorySessionSlot, RedisSessionSlot, get_session_slot

KEY = "gg_member"

MEMBER = {
    "firstName": "A",
    "lastName": "B",
    "email": "a@b.com",
    "displayName": "A B",
    "joinedAt": "2024-01-01T00:00:00Z",
}


class LocalSessionStoreTest(SimpleTestCase):
    """슬롯 기반 회원 세션 테스트"""

    def setUp(self):
        self.slot = InMemorySessionSlot()
        self.navigations = []
        self.store = LocalSessionStore(self.slot, key=KEY, navigate=self.navigations.append)

    def test_initial_state(self):
        self.assertIsNone(self.store.member)
        self.assertTrue(self.store.loading)

    def test_load_valid_member(self):
        self.slot.set(KEY, '{"firstName":"A","lastName":"B","email":"a@b.com","displayName":"A B","joinedAt":"2024-01-01T00:00:00Z"}')

        member = self.store.load()

        self.assertEqual(member, MEMBER)
        self.assertEqual(self.store.member, MEMBER)
        self.assertTrue(self.store.is_member)
        self.assertFalse(self.store.loading)

    def test_load_absent(self):
        self.assertIsNone(self.store.load())
        self.assertFalse(self.store.loading)

    def test_load_not_json_purges_slot(self):
        self.slot.set(KEY, "not json")

        self.assertIsNone(self.store.load())
        self.assertIsNone(self.slot.get(KEY))
        self.assertFalse(self.store.loading)

    def test_load_wrong_shape_purges_slot(self):
        for raw in ('{"firstName": "A"}', '["a"]', "null", json.dumps({**MEMBER, "email": 42}), "[" * 200000):
            self.slot.set(KEY, raw)

            self.assertIsNone(self.store.load(), raw[:40])
            self.assertIsNone(self.slot.get(KEY), raw[:40])

    def test_load_after_slot_cleared_resets_member(self):
        self.slot.set(KEY, json.dumps(MEMBER))
        self.store.load()

        self.slot.delete(KEY)

        self.assertIsNone(self.store.load())
        self.assertFalse(self.store.is_member)

    def test_sign_out(self):
        self.slot.set(KEY, json.dumps(MEMBER))
        self.store.load()

        self.store.sign_out()

        self.assertIsNone(self.slot.get(KEY))
        self.assertIsNone(self.store.member)
        self.assertEqual(self.navigations, ["/"])

    def test_sign_out_when_already_absent(self):
        self.store.sign_out()
        self.store.sign_out()

        self.assertIsNone(self.slot.get(KEY))
        self.assertIsNone(self.store.member)
        self.assertEqual(self.navigations, ["/", "/"])

    def test_unrelated_key_change_is_ignored(self):
        self.slot.set(KEY, json.dumps(MEMBER))
        self.store.load()
        self.slot.set(KEY, json.dumps({**MEMBER, "displayName": "Changed"}))

        self.store.on_external_change("theme", "dark")

        self.assertEqual(self.store.member["displayName"], "A B")

    def test_session_key_change_reloads(self):
        self.slot.set(KEY, json.dumps(MEMBER))

        self.store.on_external_change(KEY, json.dumps(MEMBER))

        self.assertEqual(self.store.member, MEMBER)

    def test_save_writes_slot(self):
        member = self.store.save(MEMBER)

        self.assertEqual(member, MEMBER)
        self.assertEqual(json.loads(self.slot.get(KEY)), MEMBER)

    def test_save_rejects_invalid_member(self):
        with self.assertRaises(ValidationException):
            self.store.save({"firstName": "A"})

        self.assertIsNone(self.slot.get(KEY))


class CrossContextSessionTest(SimpleTestCase):
    """같은 슬롯을 공유하는 컨텍스트 간 동기화 테스트"""

    def setUp(self):
        self.slot = InMemorySessionSlot()
        self.feed = InProcessChangeFeed()
        self.tab_a = LocalSessionStore(self.slot, feed=self.feed, key=KEY, navigate=lambda path: None)
        self.tab_b = LocalSessionStore(self.slot, feed=self.feed, key=KEY, navigate=lambda path: None)
        self.tab_a.load()
        self.tab_b.load()

    def test_sign_in_reaches_other_context(self):
        self.tab_a.save(MEMBER)

        self.assertEqual(self.tab_b.member, MEMBER)

    def test_sign_out_reaches_other_context(self):
        self.tab_a.save(MEMBER)

        self.tab_b.sign_out()

        self.assertIsNone(self.tab_a.member)

    def test_publisher_does_not_receive_own_change(self):
        received = []
        self.feed.subscribe(lambda key, value: received.append(("a", key)), origin=self.tab_a.context_id)
        self.feed.subscribe(lambda key, value: received.append(("other", key)), origin="other")

        self.tab_a.save(MEMBER)

        self.assertEqual(received, [("other", KEY)])

    def test_closed_context_stops_syncing(self):
        self.tab_b.close()

        self.tab_a.save(MEMBER)

        self.assertIsNone(self.tab_b.member)


class FakeRedis:
    """get/set/delete 만 흉내내는 Redis 클라이언트"""

    def __init__(self):
        self.data = {}

    def get(self, name):
        return self.data.get(name)

    def set(self, name, value):
        self.data[name] = value

    def delete(self, name):
        self.data.pop(name, None)


class SessionSlotBackendTest(SimpleTestCase):
    """슬롯 백엔드 / 설정 선택 테스트"""

    def test_redis_slot_uses_key_prefix(self):
        client = FakeRedis()
        slot = RedisSessionSlot(client=client)

        slot.set(KEY, json.dumps(MEMBER))

        self.assertEqual(list(client.data), [f"slot:{KEY}"])
        self.assertEqual(json.loads(slot.get(KEY)), MEMBER)

        slot.delete(KEY)

        self.assertIsNone(slot.get(KEY))
        self.assertEqual(client.data, {})

    def test_store_on_redis_slot_purges_corrupt_value(self):
        client = FakeRedis()
        store = LocalSessionStore(RedisSessionSlot(client=client, prefix="test:"), key=KEY)
        client.data[f"test:{KEY}"] = "{broken"

        self.assertIsNone(store.load())
        self.assertNotIn(f"test:{KEY}", client.data)

    @override_settings(MEMBER_SESSION_SLOT="memory")
    def test_memory_backend_is_shared(self):
        self.assertIsInstance(get_session_slot(), InMemorySessionSlot)
        self.assertIs(get_session_slot(), get_session_slot())

    @override_settings(MEMBER_SESSION_SLOT="redis", REDIS_HOST="localhost", REDIS_PORT=6379)
    def test_redis_backend_is_shared(self):
        with mock.patch("apps.members.storage._redis_slot", None):
            slot = get_session_slot()

            self.assertIsInstance(slot, RedisSessionSlot)
            self.assertEqual(slot.prefix, "slot:")
            self.assertIs(get_session_slot(), slot)

    @override_settings(MEMBER_SESSION_SLOT="sqlite")
    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            get_session_slot()


class ChannelLayerChangeFeedTest(SimpleTestCase):
    """Channels 그룹 알림 테스트"""

    def test_publish_without_channel_layer_is_dropped(self):
        with mock.patch("apps.members.feeds.get_channel_layer", return_value=None):
            feed = ChannelLayerChangeFeed("member_session_test")

        with self.assertLogs("apps.members.feeds", level="WARNING") as logs:
            feed.publish(KEY, None, origin="tab-a")

        self.assertIn("member_session_test", logs.output[0])

    def test_publish_sends_group_event(self):
        layer = mock.Mock()
        layer.group_send = mock.AsyncMock()
        feed = ChannelLayerChangeFeed("member_session_test", channel_layer=layer)

        feed.publish(KEY, "{}", origin="tab-a")

        layer.group_send.assert_awaited_once_with("member_session_test", {
            "type": "session.changed",
            "key": KEY,
            "new_value": "{}",
            "origin": "tab-a",
        })


class MemberSessionConsumerTest(SimpleTestCase):
    """회원 세션 WebSocket 테스트"""

    def setUp(self):
        get_session_slot().clear()
        self.app = MemberSessionConsumer.as_asgi()

    def test_sign_in_and_out_across_connections(self):
        async def scenario():
            tab_a = WebsocketCommunicator(self.app, "/ws/member-session/?device=dev-sync")
            tab_b = WebsocketCommunicator(self.app, "/ws/member-session/?device=dev-sync")
            other = WebsocketCommunicator(self.app, "/ws/member-session/?device=dev-other")

            for communicator in (tab_a, tab_b, other):
                connected, _ = await communicator.connect()
                self.assertTrue(connected)
                self.assertEqual(await communicator.receive_json_from(), {"type": "SESSION", "member": None})

            await tab_a.send_json_to({"type": "sign_in", "member": MEMBER})
            self.assertEqual(await tab_a.receive_json_from(), {"type": "SESSION", "member": MEMBER})
            self.assertEqual(await tab_b.receive_json_from(), {"type": "SESSION", "member": MEMBER})
            self.assertTrue(await tab_a.receive_nothing())
            self.assertTrue(await other.receive_nothing())

            await tab_b.send_json_to({"type": "sign_out"})
            self.assertEqual(await tab_b.receive_json_from(), {"type": "SESSION", "member": None})
            self.assertEqual(await tab_b.receive_json_from(), {"type": "NAVIGATE", "path": "/"})
            self.assertEqual(await tab_a.receive_json_from(), {"type": "SESSION", "member": None})

            for communicator in (tab_a, tab_b, other):
                await communicator.disconnect()

        async_to_sync(scenario)()

    def test_new_connection_reads_existing_session(self):
        get_session_slot().set(f"{KEY}:dev-existing", json.dumps(MEMBER))

        async def scenario():
            tab = WebsocketCommunicator(self.app, "/ws/member-session/?device=dev-existing")
            await tab.connect()
            message = await tab.receive_json_from()
            await tab.disconnect()
            return message

        self.assertEqual(async_to_sync(scenario)(), {"type": "SESSION", "member": MEMBER})

    def test_invalid_messages(self):
        async def scenario():
            tab = WebsocketCommunicator(self.app, "/ws/member-session/?device=dev-invalid")
            await tab.connect()
            await tab.receive_json_from()

            await tab.send_json_to({"type": "sign_in", "member": {"firstName": "A"}})
            invalid_member = await tab.receive_json_from()
            await tab.send_json_to({"type": "dance"})
            unknown = await tab.receive_json_from()
            await tab.send_to(text_data="not json")
            not_json = await tab.receive_json_from()
            await tab.send_to(text_data="[1, 2]")
            not_object = await tab.receive_json_from()
            await tab.send_json_to({"type": "ping"})
            pong = await tab.receive_json_from()

            await tab.disconnect()
            return invalid_member, unknown, not_json, not_object, pong

        invalid_member, unknown, not_json, not_object, pong = async_to_sync(scenario)()

        self.assertEqual(invalid_member["type"], "ERROR")
        self.assertEqual(unknown["type"], "ERROR")
        self.assertEqual(not_json, {"type": "ERROR", "message": "Invalid JSON"})
        self.assertEqual(not_object, {"type": "ERROR", "message": "Message must be a JSON object"})
        self.assertEqual(pong, {"type": "pong"})

    def test_rejects_invalid_device(self):
        async def scenario():
            tab = WebsocketCommunicator(self.app, "/ws/member-session/?device=bad%20device")
            connected, _ = await tab.connect()
            return connected

        self.assertFalse(async_to_sync(scenario)())


class MemberAPITest(APITestCase):
    """간편 회원 가입/확인 API 테스트"""

    def test_join_creates_member(self):
        response = self.client.post("/api/members/join/", {
            "email": "Jane@Example.com",
            "firstName": "Jane",
            "lastName": "Doe",
            "joinedAt": "2024-01-01T00:00:00Z",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["sessionKey"], KEY)
        self.assertEqual(response.data["member"], {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "displayName": "Jane Doe",
            "joinedAt": "2024-01-01T00:00:00Z",
        })
        self.assertTrue(SimpleMember.objects.filter(email="jane@example.com").exists())

    def test_join_is_idempotent(self):
        payload = {"email": "jane@example.com", "firstName": "Jane", "lastName": "Doe"}
        self.client.post("/api/members/join/", payload, format="json")

        response = self.client.post("/api/members/join/", {**payload, "firstName": "Other"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Member already exists")
        self.assertEqual(response.data["member"]["firstName"], "Jane")
        self.assertEqual(SimpleMember.objects.count(), 1)

    def test_join_invalid_email(self):
        response = self.client.post("/api/members/join/", {
            "email": "not-an-email", "firstName": "Jane", "lastName": "Doe",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"]["field"], "email")

    def test_verify(self):
        self.client.post("/api/members/join/", {
            "email": "jane@example.com", "firstName": "Jane", "lastName": "Doe",
        }, format="json")

        found = self.client.post("/api/members/verify/", {"email": "jane@example.com"}, format="json")
        missing = self.client.post("/api/members/verify/", {"email": "nobody@example.com"}, format="json")

        self.assertTrue(found.data["exists"])
        self.assertEqual(found.data["member"]["displayName"], "Jane Doe")
        self.assertEqual(missing.data, {"exists": False})

    def test_verify_ignores_inactive_member(self):
        SimpleMember.objects.create(
            email="old@example.com", first_name="Old", last_name="Member",
            display_name="Old Member", joined_at="2023-01-01T00:00:00Z", is_active=False,
        )

        response = self.client.post("/api/members/verify/", {"email": "old@example.com"}, format="json")

        self.assertFalse(response.data["exists"])


class MaskEmailTest(SimpleTestCase):

    def test_mask_email(self):
        self.assertEqual(mask_email("jane@example.com"), "ja**@example.com")
        self.assertEqual(mask_email("invalid"), "invalid")
