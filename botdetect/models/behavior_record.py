"""
BehaviorRecord 모델

수집 스크립트가 한 번 전송(flush)할 때마다 생성되는 행동 데이터 레코드.
이벤트 배열은 JSON 문서로 저장하고, 세션 집계를 위해 카테고리별 이벤트 수를 함께 저장한다.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from botdetect.models.base import Base, JSONDocument


def utcnow() -> datetime:
    """UTC 현재 시각 (naive, DB 저장용)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BehaviorRecord(Base):
    """행동 데이터 레코드 모델"""

    __tablename__ = "behavior_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4, comment="레코드 ID"
    )
    session_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="세션 ID (클라이언트 생성)"
    )
    session_start: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, comment="세션 시작 시각 (epoch ms)"
    )

    mouse_events: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list, comment="마우스 이동 [{x, y, t}]"
    )
    click_events: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list, comment="클릭 [{x, y, btn, tgt, t, ...}]"
    )
    scroll_events: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list, comment="스크롤 [{x, y, t, vw, vh, docH, docW}]"
    )
    key_events: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
        comment="키 입력 타이밍 [{t, ctrl, shift, alt, meta, location}] (키 값 없음)",
    )
    page_views: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list, comment="페이지 뷰 [{url, title, ref, t, type}]"
    )
    fingerprint: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=True, comment="디바이스 핑거프린트"
    )

    # 집계용 이벤트 수 (GROUP BY 합산)
    mouse_events_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    click_events_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scroll_events_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    key_events_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    page_views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    current_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    collected_at: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, comment="클라이언트 전송 시각 (epoch ms)"
    )

    # 요청 메타데이터
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, comment="수집(저장) 시각"
    )

    def to_dict(self) -> Dict[str, Any]:
        """API 응답용 딕셔너리 변환"""
        return {
            "id": str(self.id),
            "session_id": self.session_id,
            "session_start": self.session_start,
            "mouse_events": self.mouse_events or [],
            "click_events": self.click_events or [],
            "scroll_events": self.scroll_events or [],
            "key_events": self.key_events or [],
            "page_views": self.page_views or [],
            "fingerprint": self.fingerprint,
            "current_url": self.current_url,
            "collected_at": self.collected_at,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<BehaviorRecord(id={self.id}, session_id={self.session_id})>"


# 조회 패턴용 인덱스: 세션별 최신순, 전체 최신순
Index(
    "idx_behavior_records_session_created",
    BehaviorRecord.session_id,
    BehaviorRecord.created_at.desc(),
)
Index("idx_behavior_records_created_at", BehaviorRecord.created_at.desc())
