"""
행동 추적기

브라우저 신호(마우스, 클릭, 스크롤, 키, 내비게이션, 가시성, 언로드)를 받아
버퍼에 이벤트를 쌓고 스케줄러를 통해 배치 전송한다.

사용 예 (기본 AsyncioClock은 실행 중인 이벤트 루프가 필요하다):
    async def main():
        tracker = BehaviorTracker(CollectorConfig(api_endpoint=url), storage=tab_storage)
        tracker.start(load_time_ms=830)
        tracker.on_mouse_move(120, 340)
        tracker.on_unload()

    asyncio.run(main())

루프 밖에서 시작하려면 clock=AsyncioClock(loop)로 나중에 구동할 루프를 지정한다.

키 이벤트는 수정키 상태와 타이밍만 기록하며 어떤 키인지는 받지도 저장하지도 않는다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, MutableMapping, Optional
from urllib.parse import urlsplit

from botdetect.collector.buffer import EventBuffer
from botdetect.collector.clock import AsyncioClock, Clock
from botdetect.collector.config import CollectorConfig
from botdetect.collector.fingerprint import collect_fingerprint, host_environment
from botdetect.collector.scheduler import FlushScheduler
from botdetect.collector.session import get_or_create_session_id
from botdetect.collector.transmitter import Transmitter
from botdetect.collector.transport import (
    BeaconTransport,
    KeepaliveTransport,
    Transport,
)

logger = logging.getLogger(__name__)


@dataclass
class PageState:
    """
    현재 페이지 상태 (스크롤 샘플과 페이지 뷰의 원천)

    페이지 뷰에는 url의 경로만, 배치의 current_url에는 전체 url이 들어간다.
    """

    url: str = ""
    title: str = ""
    referrer: str = ""
    scroll_x: int = 0
    scroll_y: int = 0
    viewport_width: int = 0
    viewport_height: int = 0
    document_width: int = 0
    document_height: int = 0


class BehaviorTracker:
    """클라이언트 행동 데이터 수집기"""

    def __init__(
        self,
        config: Optional[CollectorConfig] = None,
        clock: Optional[Clock] = None,
        storage: Optional[MutableMapping[str, str]] = None,
        environment: Optional[Mapping[str, Any]] = None,
        page: Optional[PageState] = None,
        beacon: Optional[Transport] = None,
        fallback: Optional[Transport] = None,
    ):
        self.config = config or CollectorConfig()
        self.clock = clock or AsyncioClock()
        self.storage = storage if storage is not None else {}
        self.page = page or PageState()

        self.session_id = get_or_create_session_id(
            self.storage, self.config.session_storage_key, self.clock.now_ms()
        )
        self.start_time = self.clock.now_ms()
        self.fingerprint = collect_fingerprint(
            environment if environment is not None else host_environment()
        )

        self.buffer = EventBuffer(self.clock, self.config)
        self.transmitter = Transmitter(
            buffer=self.buffer,
            clock=self.clock,
            endpoint=self.config.api_endpoint,
            beacon=beacon or BeaconTransport(),
            fallback=fallback if fallback is not None else KeepaliveTransport(),
            session_id=self.session_id,
            session_start=self.start_time,
            fingerprint=self.fingerprint.to_dict(),
            current_url=lambda: self.page.url,
        )
        self.scheduler = FlushScheduler(
            clock=self.clock,
            buffer=self.buffer,
            transmitter=self.transmitter,
            interval_ms=self.config.batch_interval_ms,
            page_view=self._page_view,
        )
        self._started = False

    # ------------------------------------------------------------------
    # 생명주기
    # ------------------------------------------------------------------

    def start(self, load_time_ms: Optional[int] = None) -> None:
        """초기 페이지 뷰 기록 후 주기 전송 시작"""
        if self._started:
            return
        self._started = True

        initial = self._page_view("initial")
        initial["loadTime"] = load_time_ms if load_time_ms is not None else 0
        self.buffer.add_page_view(initial)

        self.scheduler.start()
        logger.info(f"Bot detection tracking initialized for session: {self.session_id}")

    def stop(self) -> None:
        self.scheduler.stop()
        self.buffer.cancel_pending()
        self._started = False

    def flush(self) -> bool:
        return self.scheduler.flush()

    # ------------------------------------------------------------------
    # 입력 신호
    # ------------------------------------------------------------------

    def on_mouse_move(
        self,
        x: int,
        y: int,
        page_x: Optional[int] = None,
        page_y: Optional[int] = None,
        movement_x: int = 0,
        movement_y: int = 0,
    ) -> bool:
        event = {
            "x": x,
            "y": y,
            "t": self.clock.now_ms(),
            "pageX": page_x if page_x is not None else x,
            "pageY": page_y if page_y is not None else y,
            "movementX": movement_x,
            "movementY": movement_y,
        }
        return self.buffer.add_mouse(event)

    def on_click(
        self,
        x: int,
        y: int,
        button: int = 0,
        target: str = "",
        target_id: Optional[str] = None,
        class_name: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        self.buffer.add_click(
            {
                "x": x,
                "y": y,
                "btn": button,
                "tgt": target,
                "t": self.clock.now_ms(),
                "id": target_id or None,
                "className": class_name or None,
                "text": text[: self.config.click_text_limit] if text else None,
            }
        )

    def on_scroll(
        self,
        scroll_x: Optional[int] = None,
        scroll_y: Optional[int] = None,
    ) -> None:
        """스크롤 위치를 갱신하고 디바운스 샘플링 예약"""
        if scroll_x is not None:
            self.page.scroll_x = scroll_x
        if scroll_y is not None:
            self.page.scroll_y = scroll_y
        self.buffer.signal_scroll(self._scroll_sample)

    def on_key_down(
        self,
        ctrl: bool = False,
        shift: bool = False,
        alt: bool = False,
        meta: bool = False,
        location: int = 0,
    ) -> None:
        self.buffer.add_key(
            {
                "t": self.clock.now_ms(),
                "ctrl": ctrl,
                "shift": shift,
                "alt": alt,
                "meta": meta,
                "location": location,
            }
        )

    def on_popstate(self, url: str, title: Optional[str] = None) -> None:
        self._navigate(url, title)
        self.buffer.add_page_view(self._page_view("spa_navigation"))

    def on_push_state(self, url: str, title: Optional[str] = None) -> None:
        self._navigate(url, title)
        self.buffer.add_page_view(self._page_view("spa_pushstate"))

    def on_replace_state(self, url: str, title: Optional[str] = None) -> None:
        self._navigate(url, title)
        self.buffer.add_page_view(self._page_view("spa_replacestate"))

    def on_visibility_change(self, visible: bool) -> None:
        self.scheduler.on_visibility_change(visible)

    def on_unload(self) -> bool:
        return self.scheduler.on_unload()

    # ------------------------------------------------------------------
    # 내부
    # ------------------------------------------------------------------

    def _navigate(self, url: str, title: Optional[str]) -> None:
        self.page.url = url
        if title is not None:
            self.page.title = title

    def _page_view(self, view_type: str) -> Dict[str, Any]:
        return {
            "url": urlsplit(self.page.url).path or "/",
            "title": self.page.title,
            "ref": self.page.referrer,
            "t": self.clock.now_ms(),
            "type": view_type,
        }

    def _scroll_sample(self) -> Dict[str, Any]:
        page = self.page
        return {
            "x": page.scroll_x,
            "y": page.scroll_y,
            "t": self.clock.now_ms(),
            "vw": page.viewport_width,
            "vh": page.viewport_height,
            "docH": page.document_height,
            "docW": page.document_width,
        }
