"""
전송 스케줄러

전송 트리거 세 가지를 하나의 flush 진입점으로 모은다.
    - 주기 타이머 (batch_interval_ms)
    - 페이지 언로드: page_exit 페이지 뷰 추가 후 전송
    - 탭 복귀: tab_return 페이지 뷰만 추가 (전송하지 않음)
"""

import logging
import threading
from typing import Any, Callable, Dict

from botdetect.collector.buffer import EventBuffer
from botdetect.collector.clock import Clock, RepeatingTimer
from botdetect.collector.transmitter import Transmitter

logger = logging.getLogger(__name__)


class FlushScheduler:
    """주기/언로드 전송 스케줄러"""

    def __init__(
        self,
        clock: Clock,
        buffer: EventBuffer,
        transmitter: Transmitter,
        interval_ms: int,
        page_view: Callable[[str], Dict[str, Any]],
    ):
        """
        Args:
            page_view: 페이지 뷰 타입을 받아 현재 페이지 기준 PageView를 만드는 함수
        """
        self.clock = clock
        self.buffer = buffer
        self.transmitter = transmitter
        self.page_view = page_view
        self._timer = RepeatingTimer(clock, interval_ms, self.flush)
        self._flush_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._timer.running

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def flush(self) -> bool:
        """스냅샷과 트리밍이 겹치지 않도록 직렬화된 단일 전송 진입점"""
        with self._flush_lock:
            return self.transmitter.flush()

    def on_unload(self) -> bool:
        self.buffer.add_page_view(self.page_view("page_exit"))
        return self.flush()

    def on_visibility_change(self, visible: bool) -> None:
        if visible:
            self.buffer.add_page_view(self.page_view("tab_return"))
