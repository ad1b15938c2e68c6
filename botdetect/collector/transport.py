"""
전송 수단

BeaconTransport:
    sendBeacon 대응. 본문을 큐에 넣고 즉시 반환하며 백그라운드 스레드가 전송한다.
    프로세스 종료(atexit) 시 남은 큐를 비우려고 시도한다.
KeepaliveTransport:
    fetch(keepalive) 대응. 실행 중인 이벤트 루프에 비동기 POST 태스크를 띄운다.

두 전송 수단 모두 응답을 기다리지 않으며 실패는 로그로만 남긴다.
"""

import asyncio
import atexit
import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Optional, Set, Tuple

import httpx

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


class Transport(ABC):
    """전송 수단 인터페이스"""

    @abstractmethod
    def send(self, url: str, body: str) -> bool:
        """
        본문 전송 요청

        Returns:
            bool: 전송 요청이 접수되었는지 여부 (전달 성공 여부가 아님)
        """


class BeaconTransport(Transport):
    """큐 기반 fire-and-forget 전송"""

    def __init__(
        self,
        max_queue: int = 64,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self._queue: "queue.Queue[Optional[Tuple[str, str]]]" = queue.Queue(
            maxsize=max_queue
        )
        self._client = client
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

    def send(self, url: str, body: str) -> bool:
        if self._closed:
            return False
        self._ensure_worker()
        try:
            self._queue.put_nowait((url, body))
        except queue.Full:
            logger.warning("Bot detection: beacon queue full")
            return False
        return True

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            if self._client is None:
                self._client = httpx.Client(timeout=self.timeout)
            self._thread = threading.Thread(
                target=self._run, name="bot-detection-beacon", daemon=True
            )
            self._thread.start()
            atexit.register(self.close)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                url, body = item
                try:
                    self._post(url, body)
                except Exception:
                    # 워커 스레드는 어떤 전송 오류에도 살아있어야 함
                    logger.warning("Bot detection: beacon send failed", exc_info=True)
            finally:
                self._queue.task_done()

    def _post(self, url: str, body: str) -> None:
        try:
            response = self._client.post(url, content=body, headers=JSON_HEADERS)
            if response.status_code >= 400:
                logger.warning(
                    f"Bot detection: beacon rejected with status {response.status_code}"
                )
        except httpx.HTTPError as e:
            logger.warning(f"Bot detection: Failed to send data: {e}")

    def close(self, timeout: float = 2.0) -> None:
        """
        남은 큐 전송을 시도하고 종료

        타임아웃 안에 끝나지 못한 전송은 버려진다.
        """
        if self._closed:
            return
        self._closed = True
        if self._thread is not None:
            try:
                self._queue.put(None, timeout=timeout)
            except queue.Full:
                logger.warning("Bot detection: beacon queue not drained before exit")
            self._thread.join(timeout)
            atexit.unregister(self.close)
        if self._client is not None:
            self._client.close()


class KeepaliveTransport(Transport):
    """이벤트 루프 위의 비동기 fire-and-forget POST"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.timeout = timeout
        self._client = client
        self._tasks: Set[asyncio.Task] = set()

    def send(self, url: str, body: str) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Bot detection: no running event loop for keepalive send")
            return False

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        task = loop.create_task(self._post(url, body))
        # 완료 전 GC 방지
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _post(self, url: str, body: str) -> None:
        try:
            response = await self._client.post(url, content=body, headers=JSON_HEADERS)
            if response.status_code >= 400:
                logger.warning(
                    f"Bot detection: Failed to send data: status {response.status_code}"
                )
        except httpx.HTTPError as e:
            logger.warning(f"Bot detection: Failed to send data: {e}")
        except Exception:
            logger.warning("Bot detection: keepalive send failed", exc_info=True)

    async def aclose(self) -> None:
        """진행 중인 전송을 기다린 뒤 클라이언트 종료"""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._client is not None:
            await self._client.aclose()
            self._client = None
