"""
배치 전송기

버퍼의 얕은 복사본으로 페이로드를 만들어 JSON 직렬화 후 전송한다.
전송 결과와 관계없이 버퍼는 전송 후 보존 개수까지 잘린다.
"""

import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from botdetect.collector.buffer import EventBuffer
from botdetect.collector.clock import Clock
from botdetect.collector.transport import Transport

logger = logging.getLogger(__name__)


class DeliveryGuarantee(str, Enum):
    """전송 보장 수준"""

    # 재시도 없음, 중복 제거 없음
    AT_MOST_ONCE = "best-effort, at-most-once"


class Transmitter:
    """
    행동 데이터 배치 전송기

    Args:
        buffer: 이벤트 버퍼
        clock: 시계 (collected_at 타임스탬프)
        endpoint: 수집 API URL
        beacon: 1차 전송 수단
        fallback: beacon이 접수를 거부했을 때 사용하는 전송 수단
        session_id: 세션 ID
        session_start: 세션 시작 시각 (epoch ms)
        fingerprint: 핑거프린트 딕셔너리
        current_url: 현재 URL 제공 함수
    """

    delivery_guarantee = DeliveryGuarantee.AT_MOST_ONCE

    def __init__(
        self,
        buffer: EventBuffer,
        clock: Clock,
        endpoint: str,
        beacon: Transport,
        fallback: Optional[Transport],
        session_id: str,
        session_start: int,
        fingerprint: Dict[str, Any],
        current_url: Callable[[], str],
    ):
        self.buffer = buffer
        self.clock = clock
        self.endpoint = endpoint
        self.beacon = beacon
        self.fallback = fallback
        self.session_id = session_id
        self.session_start = session_start
        self.fingerprint = fingerprint
        self.current_url = current_url

    def build_payload(self) -> Dict[str, Any]:
        snapshot = self.buffer.snapshot()
        return {
            "session_id": self.session_id,
            "session_start": self.session_start,
            "mouse_events": snapshot["mouse_events"],
            "click_events": snapshot["click_events"],
            "scroll_events": snapshot["scroll_events"],
            "key_events": snapshot["key_events"],
            "fingerprint": self.fingerprint,
            "page_views": snapshot["page_views"],
            "current_url": self.current_url(),
            "collected_at": self.clock.now_ms(),
        }

    def flush(self) -> bool:
        """
        버퍼 전송

        마우스/클릭/스크롤/키 큐가 모두 비어 있으면 아무것도 하지 않는다.

        Returns:
            bool: 전송 수단이 요청을 접수했는지 여부
        """
        if not self.buffer.has_events():
            return False

        accepted = False
        try:
            body = json.dumps(self.build_payload(), ensure_ascii=False, default=str)
            accepted = self._send(body)
        except Exception as e:
            logger.warning(f"Bot detection: Failed to send data: {e}")
        finally:
            self.buffer.trim_after_flush()

        return accepted

    def _send(self, body: str) -> bool:
        if self.beacon.send(self.endpoint, body):
            return True
        if self.fallback is None:
            logger.warning("Bot detection: beacon rejected and no fallback configured")
            return False
        if self.fallback.send(self.endpoint, body):
            return True
        logger.warning("Bot detection: Failed to send data: no transport accepted")
        return False
