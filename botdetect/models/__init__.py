"""
행동 데이터 수집 API 데이터 모델

이 패키지는 데이터베이스 모델과 요청 스키마를 포함합니다.
"""

from .base import Base, JSONDocument
from .behavior_record import BehaviorRecord
from .schemas import (
    BehaviorPayload,
    MouseEventIn,
    ClickEventIn,
    ScrollEventIn,
    KeyEventIn,
    PageViewIn,
    FingerprintIn,
)

__all__ = [
    "Base",
    "JSONDocument",
    "BehaviorRecord",
    "BehaviorPayload",
    "MouseEventIn",
    "ClickEventIn",
    "ScrollEventIn",
    "KeyEventIn",
    "PageViewIn",
    "FingerprintIn",
]
