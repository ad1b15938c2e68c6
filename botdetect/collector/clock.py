"""
시계 및 타이머 추상화

수집 파이프라인은 시간과 타이머를 직접 다루지 않고 Clock을 주입받는다.
운영에서는 asyncio 이벤트 루프(단일 스레드 협력 스케줄링),
테스트에서는 수동으로 시간을 진행시키는 시계를 사용한다.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional


class TimerHandle(ABC):
    """예약된 콜백 핸들"""

    @abstractmethod
    def cancel(self) -> None:
        ...


class Clock(ABC):
    """현재 시각(epoch ms)과 지연 콜백 예약"""

    @abstractmethod
    def now_ms(self) -> int:
        ...

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        ...


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioClock(Clock):
    """asyncio 이벤트 루프 기반 시계"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioTimerHandle(self.loop.call_later(delay_ms / 1000, callback))


class RepeatingTimer:
    """
    고정 간격 반복 타이머 (setInterval 대응)

    매 틱마다 다음 틱을 다시 예약한다. stop() 이후에는 더 이상 실행되지 않는다.
    """

    def __init__(self, clock: Clock, interval_ms: int, callback: Callable[[], None]):
        self.clock = clock
        self.interval_ms = interval_ms
        self.callback = callback
        self._handle: Optional[TimerHandle] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._schedule()

    def stop(self) -> None:
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self.clock.call_later(self.interval_ms, self._tick)

    def _tick(self) -> None:
        if not self._running:
            return
        # 다음 틱 예약 후 콜백 실행
        self._schedule()
        self.callback()
