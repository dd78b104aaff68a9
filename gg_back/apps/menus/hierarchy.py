"""
메뉴 계층 홀더

- 데이터 소스에서 평면 메뉴 목록을 가져와 트리로 변환 후 보관
- 실패 시 이전 트리는 유지하고 error 메시지만 갱신
- 겹치는 요청은 취소하지 않음 (stale_fetches 정책으로 결과 반영 방식 결정)
"""
import logging

from django.conf import settings

from .utils import ORPHAN_POLICIES, build_menu_tree

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to fetch menu"
STALE_FETCH_POLICIES = ("last_write_wins", "latest_request_wins")


class MenuHierarchy:
    """
    menu_type 별 메뉴 트리 보관 객체

    사용 예:
        hierarchy = MenuHierarchy(menu_type="navigation")
        menu_items, error = await hierarchy.fetch()
    """

    def __init__(self, source=None, menu_type="navigation", orphans=None, stale_fetches=None):
        if source is None:
            from .services import fetch_menu_records
            source = fetch_menu_records

        self.source = source
        self.menu_type = menu_type
        self.orphans = orphans or getattr(settings, "MENU_ORPHAN_POLICY", "drop")
        self.stale_fetches = stale_fetches or getattr(settings, "MENU_STALE_FETCH_POLICY", "last_write_wins")
        if self.orphans not in ORPHAN_POLICIES:
            raise ValueError(f"Unknown orphan policy: {self.orphans!r}")
        if self.stale_fetches not in STALE_FETCH_POLICIES:
            raise ValueError(f"Unknown stale fetch policy: {self.stale_fetches!r}")

        self.menu_items = []
        self.error = None
        self._in_flight = 0
        self._request_seq = 0

    @property
    def loading(self):
        return self._in_flight > 0

    def _accepts(self, seq):
        if self.stale_fetches == "latest_request_wins":
            return seq == self._request_seq
        return True

    async def fetch(self, menu_type=None):
        """메뉴 목록 조회 후 트리 교체. (menu_items, error) 반환"""
        if menu_type is not None:
            self.menu_type = menu_type

        self._request_seq += 1
        seq = self._request_seq
        requested_type = self.menu_type

        self._in_flight += 1
        self.error = None
        try:
            records = await self.source(requested_type)
            tree = build_menu_tree(records, orphans=self.orphans)
        except Exception as e:
            logger.error(f"Error fetching menu hierarchy ({requested_type}): {e}")
            if self._accepts(seq):
                self.error = str(e) or DEFAULT_ERROR_MESSAGE
        else:
            if self._accepts(seq):
                self.menu_items = tree
                self.error = None
            else:
                logger.debug(f"Discarding superseded menu fetch #{seq} ({requested_type})")
        finally:
            self._in_flight -= 1

        return self.menu_items, self.error

    async def refetch(self):
        return await self.fetch()
