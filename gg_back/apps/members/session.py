"""
간편 회원 세션 저장소

서버 검증 세션이 아니라 슬롯에 저장된 회원 정보를 그대로 "로그인 상태"로 사용.
슬롯이 단일 원본이고, 각 컨텍스트의 member 는 변경 알림으로 무효화되는 캐시.
"""
import json
import logging
import uuid

from django.conf import settings

from utils.exceptions import ValidationException
from utils.logging import mask_email
from .serializers import MemberSessionSerializer

logger = logging.getLogger(__name__)


class InvalidMemberSession(ValueError):
    """슬롯 내용이 회원 세션 형태가 아닌 경우"""


def parse_member_session(raw):
    """JSON 문자열 -> 회원 세션 dict. 실패 시 InvalidMemberSession"""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        raise InvalidMemberSession(f"Not JSON: {e}")

    serializer = MemberSessionSerializer(data=data)
    if not serializer.is_valid():
        raise InvalidMemberSession(f"Invalid member session: {serializer.errors}")
    return dict(serializer.validated_data)


def _log_navigation(path):
    logger.info(f"Navigate to {path}")


class LocalSessionStore:
    """
    현재 회원(member) 보관 객체

    Args:
        slot: SessionSlot (get/set/delete)
        feed: ChangeFeed, 다른 컨텍스트의 슬롯 변경 알림 구독
        key: 세션 키 (기본값 settings.MEMBER_SESSION_KEY)
        navigate: 로그아웃 후 이동 처리 callable(path)
        context_id: 이 컨텍스트 식별자 (자신이 발행한 알림 제외용)
    """

    def __init__(self, slot, feed=None, key=None, navigate=None, context_id=None):
        self.slot = slot
        self.feed = feed
        self.key = key or getattr(settings, "MEMBER_SESSION_KEY", "gg_member")
        self.navigate = navigate or _log_navigation
        self.context_id = context_id or uuid.uuid4().hex

        self.member = None
        self.loading = True

        self._unsubscribe = None
        if feed is not None:
            self._unsubscribe = feed.subscribe(self.on_external_change, origin=self.context_id)

    @property
    def is_member(self):
        return self.member is not None

    def load(self):
        """슬롯에서 회원 세션 읽기. 손상된 값은 슬롯에서 삭제"""
        self.loading = True

        member = None
        raw = self.slot.get(self.key)
        if raw is not None:
            try:
                member = parse_member_session(raw)
            except InvalidMemberSession as e:
                logger.warning(f"Error parsing member data for {self.key}: {e}")
                self.slot.delete(self.key)

        self.member = member
        self.loading = False
        return member

    def save(self, member):
        """현재 컨텍스트에서 로그인 (슬롯 기록 + 다른 컨텍스트에 알림)"""
        serializer = MemberSessionSerializer(data=member)
        if not serializer.is_valid():
            raise ValidationException(message="Invalid member session.", detail=serializer.errors)

        value = json.dumps(dict(serializer.validated_data))
        self.slot.set(self.key, value)
        if self.feed is not None:
            self.feed.publish(self.key, value, origin=self.context_id)

        logger.info(f"Member signed in: {mask_email(serializer.validated_data['email'])}")
        return self.load()

    def sign_out(self):
        """슬롯 삭제, member 초기화 후 루트로 이동"""
        self.slot.delete(self.key)
        if self.feed is not None:
            self.feed.publish(self.key, None, origin=self.context_id)

        self.member = None
        self.loading = False
        self.navigate("/")

    def on_external_change(self, key, new_value):
        """다른 컨텍스트의 슬롯 변경 알림 처리"""
        if key != self.key:
            return
        self.load()

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
