"""
회원 세션 WebSocket Consumer
- 연결 하나가 브라우저 탭 하나(컨텍스트)에 해당
- 같은 device 의 연결들이 하나의 슬롯과 그룹을 공유

그룹 구조:
- member_session_{device}: 슬롯 변경 알림 (발행한 연결 자신은 제외)
"""
import json
import logging
import re
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from utils.exceptions import ValidationException
from .feeds import ChannelLayerChangeFeed
from .session import LocalSessionStore
from .storage import get_session_slot

logger = logging.getLogger(__name__)

# Channels 그룹 이름 규칙에 맞는 device 식별자만 허용
DEVICE_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


class MemberSessionConsumer(AsyncJsonWebsocketConsumer):

    async def connect(self):
        """WebSocket 연결"""
        params = parse_qs(self.scope.get("query_string", b"").decode())
        device = (params.get("device") or ["default"])[0]
        if not DEVICE_PATTERN.match(device):
            await self.close()
            return

        self.device = device
        self.group_name = f"member_session_{device}"
        self._navigation = None

        self.feed = ChannelLayerChangeFeed(self.group_name, self.channel_layer)
        self.store = LocalSessionStore(
            slot=get_session_slot(),
            feed=self.feed,
            key=f"{settings.MEMBER_SESSION_KEY}:{device}",
            navigate=self._navigate,
            context_id=self.channel_name,
        )

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        await sync_to_async(self.store.load)()
        await self._send_session()
        logger.info(f"Member session connected: device={device}")

    async def disconnect(self, close_code):
        """WebSocket 연결 종료"""
        store = getattr(self, "store", None)
        if store is None:
            return

        store.close()
        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info(f"Member session disconnected: device={self.device}")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """클라이언트 메시지 수신 (JSON 파싱 실패 시 ERROR 응답)"""
        if not text_data:
            await self.send_json({"type": "ERROR", "message": "Expected a JSON text frame"})
            return

        try:
            content = await self.decode_json(text_data)
        except (json.JSONDecodeError, RecursionError):
            await self.send_json({"type": "ERROR", "message": "Invalid JSON"})
            return

        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """클라이언트 메시지 처리 (ping / sign_in / sign_out / refresh)"""
        if not isinstance(content, dict):
            await self.send_json({"type": "ERROR", "message": "Message must be a JSON object"})
            return

        msg_type = content.get("type")

        if msg_type == "ping":
            await self.send_json({"type": "pong"})

        elif msg_type == "sign_in":
            try:
                await sync_to_async(self.store.save)(content.get("member"))
            except ValidationException as e:
                await self.send_json({"type": "ERROR", "message": e.message})
                return
            await self._send_session()

        elif msg_type == "sign_out":
            await sync_to_async(self.store.sign_out)()
            await self._send_session()
            if self._navigation is not None:
                await self.send_json({"type": "NAVIGATE", "path": self._navigation})
                self._navigation = None

        elif msg_type == "refresh":
            await sync_to_async(self.store.load)()
            await self._send_session()

        else:
            await self.send_json({"type": "ERROR", "message": f"Unknown message type: {msg_type}"})

    # =========================================================================
    # 그룹 메시지 핸들러
    # =========================================================================

    async def session_changed(self, event):
        """다른 연결의 슬롯 변경 알림"""
        if event.get("origin") == self.channel_name:
            return

        await sync_to_async(self.feed.deliver)(event["key"], event["new_value"], event.get("origin"))
        await self._send_session()

    # =========================================================================

    def _navigate(self, path):
        self._navigation = path

    async def _send_session(self):
        await self.send_json({"type": "SESSION", "member": self.store.member})
