"""
이벤트 버퍼

카테고리별로 독립된 append-only 큐 다섯 개를 보관한다.
    - mouse_events: 50ms 스로틀 (마지막으로 추가된 이벤트 기준)
    - scroll_events: 100ms 디바운스 (타이머 만료 시점의 현재 스크롤 상태)
    - click_events / key_events: 무조건 추가
    - page_views: 전송 후 트리밍 없이 유지

다섯 큐 모두 max_events를 넘으면 앞쪽을 잘라 소프트 보존 개수까지 줄인다.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from botdetect.collector.clock import Clock, TimerHandle
from botdetect.collector.config import CollectorConfig

logger = logging.getLogger(__name__)

Event = Dict[str, Any]

MOUSE = "mouse_events"
CLICK = "click_events"
SCROLL = "scroll_events"
KEY = "key_events"
PAGE_VIEWS = "page_views"

# 전송 여부 판단과 전송 후 트리밍이 적용되는 큐
ACTIVITY_QUEUES = (MOUSE, CLICK, SCROLL, KEY)


class EventBuffer:
    """행동 이벤트 버퍼"""

    def __init__(self, clock: Clock, config: Optional[CollectorConfig] = None):
        self.clock = clock
        self.config = config or CollectorConfig()

        self.mouse_events: List[Event] = []
        self.click_events: List[Event] = []
        self.scroll_events: List[Event] = []
        self.key_events: List[Event] = []
        self.page_views: List[Event] = []

        self._last_mouse_ms: Optional[int] = None
        self._scroll_timer: Optional[TimerHandle] = None

    # ------------------------------------------------------------------
    # 추가
    # ------------------------------------------------------------------

    def add_mouse(self, event: Event) -> bool:
        """
        마우스 이동 이벤트 추가

        Returns:
            bool: 스로틀을 통과해 추가되었는지 여부
        """
        now = self.clock.now_ms()
        if (
            self._last_mouse_ms is not None
            and now - self._last_mouse_ms < self.config.mouse_throttle_ms
        ):
            return False

        self._last_mouse_ms = now
        self._append(MOUSE, event)
        return True

    def add_click(self, event: Event) -> None:
        self._append(CLICK, event)

    def add_key(self, event: Event) -> None:
        self._append(KEY, event)

    def add_page_view(self, view: Event) -> None:
        self._append(PAGE_VIEWS, view)

    def signal_scroll(self, sample: Callable[[], Event]) -> None:
        """
        스크롤 신호 수신

        신호마다 디바운스 타이머를 다시 건다. 타이머가 만료되면 그 시점의
        스크롤 상태를 sample()로 읽어 한 건만 추가한다.
        """
        if self._scroll_timer is not None:
            self._scroll_timer.cancel()

        def _fire() -> None:
            self._scroll_timer = None
            try:
                event = sample()
            except Exception:
                logger.warning("Bot detection: scroll sampling failed", exc_info=True)
                return
            self._append(SCROLL, event)

        self._scroll_timer = self.clock.call_later(
            self.config.scroll_debounce_ms, _fire
        )

    def cancel_pending(self) -> None:
        """대기 중인 스크롤 디바운스 취소"""
        if self._scroll_timer is not None:
            self._scroll_timer.cancel()
            self._scroll_timer = None

    def _append(self, name: str, event: Event) -> None:
        queue: List[Event] = getattr(self, name)
        queue.append(event)
        if len(queue) > self.config.max_events:
            retain = self.config.overflow_retain[name]
            del queue[: len(queue) - retain]

    # ------------------------------------------------------------------
    # 조회 / 트리밍
    # ------------------------------------------------------------------

    def has_events(self) -> bool:
        """활동 큐 네 개 중 하나라도 비어있지 않은지 (페이지 뷰 제외)"""
        return any(getattr(self, name) for name in ACTIVITY_QUEUES)

    def snapshot(self) -> Dict[str, List[Event]]:
        """큐의 얕은 복사본"""
        return {
            MOUSE: list(self.mouse_events),
            CLICK: list(self.click_events),
            SCROLL: list(self.scroll_events),
            KEY: list(self.key_events),
            PAGE_VIEWS: list(self.page_views),
        }

    def trim_after_flush(self) -> None:
        """전송 후 다음 배치 문맥용 최근 이벤트만 남긴다"""
        for name in ACTIVITY_QUEUES:
            queue: List[Event] = getattr(self, name)
            retain = self.config.flush_retain[name]
            if len(queue) > retain:
                del queue[: len(queue) - retain]

    def counts(self) -> Dict[str, int]:
        return {
            name: len(getattr(self, name)) for name in (*ACTIVITY_QUEUES, PAGE_VIEWS)
        }
