"""
수집 파이프라인 설정

버퍼 상한, 보존 개수, 전송 주기 등 클라이언트 측 상수를 모아둔다.
"""

from dataclasses import dataclass, field
from typing import Dict


# 버퍼가 MAX_EVENTS를 넘었을 때 남기는 개수 (소프트 상한)
DEFAULT_OVERFLOW_RETAIN = {
    "mouse_events": 500,
    "click_events": 200,
    "scroll_events": 100,
    "key_events": 300,
    "page_views": 100,
}

# 전송 후 다음 배치의 문맥으로 남기는 최근 이벤트 수
DEFAULT_FLUSH_RETAIN = {
    "mouse_events": 50,
    "click_events": 20,
    "scroll_events": 10,
    "key_events": 30,
}


@dataclass
class CollectorConfig:
    """행동 데이터 수집기 설정"""

    api_endpoint: str = "http://localhost:3000/api/collect-behavior"
    batch_interval_ms: int = 10_000  # 10초
    max_events: int = 1000  # 메모리 보호
    mouse_throttle_ms: int = 50  # 최대 20회/초
    scroll_debounce_ms: int = 100
    click_text_limit: int = 50
    session_storage_key: str = "bot_detection_session_id"
    overflow_retain: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_OVERFLOW_RETAIN)
    )
    flush_retain: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_FLUSH_RETAIN)
    )
