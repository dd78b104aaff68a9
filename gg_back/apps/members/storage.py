"""
회원 세션 슬롯 저장소

- 키 하나에 직렬화된 회원 세션(JSON 문자열)을 보관
- 같은 디바이스의 모든 컨텍스트가 하나의 슬롯을 공유 (마지막 쓰기 우선)
"""
import threading

import redis
from django.conf import settings


class SessionSlot:
    """키-값 슬롯 인터페이스"""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class InMemorySessionSlot(SessionSlot):
    """프로세스 내부 dict 기반 슬롯 (개발/테스트용)"""

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self._data.get(key)

    def set(self, key, value):
        with self._lock:
            self._data[key] = value

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def clear(self):
        with self._lock:
            self._data.clear()


class RedisSessionSlot(SessionSlot):
    """Redis 기반 슬롯 (여러 프로세스 간 공유)"""

    def __init__(self, client=None, prefix="slot:"):
        self.client = client or redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=0,
            decode_responses=True,
        )
        self.prefix = prefix

    def get(self, key):
        return self.client.get(f"{self.prefix}{key}")

    def set(self, key, value):
        self.client.set(f"{self.prefix}{key}", value)

    def delete(self, key):
        self.client.delete(f"{self.prefix}{key}")


_memory_slot = InMemorySessionSlot()
_redis_slot = None


def get_session_slot():
    """MEMBER_SESSION_SLOT 설정에 따른 프로세스 공용 슬롯 반환"""
    global _redis_slot

    backend = getattr(settings, "MEMBER_SESSION_SLOT", "memory")
    if backend == "memory":
        return _memory_slot
    if backend == "redis":
        if _redis_slot is None:
            _redis_slot = RedisSessionSlot()
        return _redis_slot
    raise ValueError(f"Unknown MEMBER_SESSION_SLOT backend: {backend!r}")
