"""
회원 세션 변경 알림 (change feed)

- publish(key, new_value, origin): 슬롯 변경 알림 발행
- subscribe(callback, origin): 구독, 자신이 발행한 알림은 받지 않음

그룹 구조 (ChannelLayerChangeFeed):
- member_session_{device}: 같은 디바이스(같은 슬롯)를 공유하는 WebSocket 연결
"""
import logging
import threading

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


class ChangeFeed:
    """변경 알림 인터페이스"""

    def publish(self, key, new_value, origin=None):
        raise NotImplementedError

    def subscribe(self, callback, origin=None):
        """callback(key, new_value) 등록 후 구독 해제 함수 반환"""
        raise NotImplementedError


class InProcessChangeFeed(ChangeFeed):
    """프로세스 내부 콜백 목록 기반 알림"""

    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, callback, origin=None):
        entry = (origin, callback)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def deliver(self, key, new_value, origin=None):
        """발행자(origin)를 제외한 구독자에게 전달"""
        with self._lock:
            subscribers = list(self._subscribers)

        for subscriber_origin, callback in subscribers:
            if origin is not None and subscriber_origin == origin:
                continue
            callback(key, new_value)

    def publish(self, key, new_value, origin=None):
        self.deliver(key, new_value, origin)


class ChannelLayerChangeFeed(InProcessChangeFeed):
    """
    Channels 그룹 브로드캐스트 기반 알림

    publish 는 그룹 전체에 전송하고, 각 Consumer 가 수신한 이벤트를
    deliver 로 로컬 구독자에게 전달함
    """

    event_type = "session.changed"

    def __init__(self, group_name, channel_layer=None):
        super().__init__()
        self.group_name = group_name
        self.channel_layer = channel_layer or get_channel_layer()

    def publish(self, key, new_value, origin=None):
        if not self.channel_layer:
            logger.warning(f"No channel layer configured, dropping change for group={self.group_name}")
            return

        async_to_sync(self.channel_layer.group_send)(self.group_name, {
            "type": self.event_type,
            "key": key,
            "new_value": new_value,
            "origin": origin,
        })
