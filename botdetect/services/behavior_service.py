"""
행동 데이터 서비스

수집된 행동 데이터 배치를 저장하고, 페이지네이션 조회 및 세션/통계 집계를 제공한다.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.behavior_record import BehaviorRecord, utcnow
from ..models.schemas import BehaviorPayload
from ..utils.exceptions import BehaviorRecordNotFoundException, DatabaseException

logger = logging.getLogger(__name__)

EVENT_CATEGORIES = (
    "mouse_events",
    "click_events",
    "scroll_events",
    "key_events",
    "page_views",
)

# 최근 활동 통계 기간
RECENT_WINDOW = timedelta(hours=24)


class BehaviorService:
    """
    행동 데이터 서비스

    요청마다 하나의 세션으로 생성되며, 요청 간 상태를 공유하지 않습니다.
    모든 DB 오류는 DatabaseException으로 변환됩니다.
    """

    def __init__(self, db: AsyncSession):
        """
        Args:
            db: 데이터베이스 세션
        """
        self.db = db

    async def create_record(
        self,
        payload: BehaviorPayload,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> BehaviorRecord:
        """
        행동 데이터 배치 1건 저장

        중복 제출(재전송된 비콘 등)도 별도 레코드로 저장한다. 멱등성 키 없음.

        Args:
            payload: 검증된 요청 본문
            ip_address: 호출자 IP
            user_agent: 호출자 User-Agent 헤더

        Returns:
            BehaviorRecord: 저장된 레코드
        """
        events = {
            category: [
                item.model_dump(exclude_none=True)
                for item in getattr(payload, category)
            ]
            for category in EVENT_CATEGORIES
        }

        record = BehaviorRecord(
            session_id=payload.session_id,
            session_start=payload.session_start,
            fingerprint=(
                payload.fingerprint.model_dump(exclude_none=True)
                if payload.fingerprint
                else None
            ),
            current_url=payload.current_url,
            collected_at=payload.collected_at,
            ip_address=ip_address,
            user_agent=user_agent,
            **events,
            **{f"{category}_count": len(items) for category, items in events.items()},
        )

        try:
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"행동 데이터 저장 실패: session_id={payload.session_id}", exc_info=True
            )
            raise DatabaseException(operation="create_record", cause=e) from e

        logger.info(f"Data collected for session: {payload.session_id}")
        return record

    async def list_records(
        self, page: int, limit: int, session_id: Optional[str] = None
    ) -> Tuple[List[BehaviorRecord], int]:
        """
        레코드 목록 조회 (수집 시각 최신순)

        Args:
            page: 페이지 번호 (1부터)
            limit: 페이지 크기
            session_id: 세션 ID 정확 일치 필터

        Returns:
            (레코드 리스트, 전체 레코드 수)
        """
        base_query = select(BehaviorRecord)
        if session_id:
            base_query = base_query.where(BehaviorRecord.session_id == session_id)

        try:
            count_query = select(func.count()).select_from(base_query.subquery())
            total = (await self.db.execute(count_query)).scalar() or 0

            items_query = (
                base_query.order_by(BehaviorRecord.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            records = (await self.db.execute(items_query)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("행동 데이터 목록 조회 실패", exc_info=True)
            raise DatabaseException(operation="list_records", cause=e) from e

        return list(records), total

    async def get_record(self, record_id: str) -> BehaviorRecord:
        """
        레코드 단건 조회

        Raises:
            BehaviorRecordNotFoundException: 레코드가 없거나 ID 형식이 잘못된 경우
        """
        try:
            record_uuid = UUID(record_id)
        except ValueError:
            raise BehaviorRecordNotFoundException(record_id)

        try:
            result = await self.db.execute(
                select(BehaviorRecord).where(BehaviorRecord.id == record_uuid)
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"행동 데이터 조회 실패: id={record_id}", exc_info=True)
            raise DatabaseException(operation="get_record", cause=e) from e

        if record is None:
            raise BehaviorRecordNotFoundException(record_id)
        return record

    async def count_sessions(self) -> int:
        """고유 세션 수"""
        result = await self.db.execute(
            select(func.count(func.distinct(BehaviorRecord.session_id)))
        )
        return result.scalar() or 0

    async def list_sessions(
        self, page: int, limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        세션별 집계 (GROUP BY session_id)

        session_start와 fingerprint는 세션에서 가장 먼저 수집된 레코드의 값을 사용한다.
        정렬: 마지막 활동 시각 최신순.

        Returns:
            (세션 요약 리스트, 전체 고유 세션 수)
        """
        last_activity = func.max(BehaviorRecord.created_at).label("last_activity")
        aggregate_query = (
            select(
                BehaviorRecord.session_id,
                last_activity,
                func.sum(BehaviorRecord.page_views_count).label("page_views_count"),
                func.sum(BehaviorRecord.mouse_events_count).label("mouse_events_count"),
                func.sum(BehaviorRecord.click_events_count).label("click_events_count"),
                func.sum(BehaviorRecord.scroll_events_count).label("scroll_events_count"),
                func.sum(BehaviorRecord.key_events_count).label("key_events_count"),
                func.count(BehaviorRecord.id).label("total_records"),
            )
            .group_by(BehaviorRecord.session_id)
            .order_by(desc("last_activity"), BehaviorRecord.session_id)
            .offset((page - 1) * limit)
            .limit(limit)
        )

        try:
            rows = (await self.db.execute(aggregate_query)).all()
            first_seen = await self._first_seen([row.session_id for row in rows])
            total_sessions = await self.count_sessions()
        except SQLAlchemyError as e:
            logger.error("세션 집계 조회 실패", exc_info=True)
            raise DatabaseException(operation="list_sessions", cause=e) from e

        sessions = []
        for row in rows:
            first = first_seen.get(row.session_id, {})
            sessions.append(
                {
                    "session_id": row.session_id,
                    "session_start": first.get("session_start"),
                    "fingerprint": first.get("fingerprint"),
                    "last_activity": row.last_activity.isoformat()
                    if row.last_activity
                    else None,
                    "page_views_count": int(row.page_views_count or 0),
                    "mouse_events_count": int(row.mouse_events_count or 0),
                    "click_events_count": int(row.click_events_count or 0),
                    "scroll_events_count": int(row.scroll_events_count or 0),
                    "key_events_count": int(row.key_events_count or 0),
                    "total_records": int(row.total_records or 0),
                }
            )

        return sessions, total_sessions

    async def _first_seen(self, session_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """세션별 최초 수집 레코드의 session_start / fingerprint"""
        if not session_ids:
            return {}

        result = await self.db.execute(
            select(
                BehaviorRecord.session_id,
                BehaviorRecord.session_start,
                BehaviorRecord.fingerprint,
            )
            .where(BehaviorRecord.session_id.in_(session_ids))
            .order_by(BehaviorRecord.session_id, BehaviorRecord.created_at.asc())
        )

        first_seen: Dict[str, Dict[str, Any]] = {}
        for row in result.all():
            if row.session_id not in first_seen:
                first_seen[row.session_id] = {
                    "session_start": row.session_start,
                    "fingerprint": row.fingerprint,
                }
        return first_seen

    async def get_stats(
        self, sample_size: int = 1000, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        수집 통계

        event_statistics는 최근 24시간 레코드 중 최신 sample_size건만 합산한 근사치이다.
        전체 레코드를 스캔하지 않는다.

        Args:
            sample_size: 이벤트 통계 샘플 최대 레코드 수
            now: 기준 시각 (기본: 현재 UTC)
        """
        since = (now or utcnow()) - RECENT_WINDOW

        try:
            total_records = (
                await self.db.execute(select(func.count(BehaviorRecord.id)))
            ).scalar() or 0
            total_sessions = await self.count_sessions()

            recent_records = (
                await self.db.execute(
                    select(func.count(BehaviorRecord.id)).where(
                        BehaviorRecord.created_at >= since
                    )
                )
            ).scalar() or 0

            sample_query = (
                select(
                    BehaviorRecord.mouse_events_count,
                    BehaviorRecord.click_events_count,
                    BehaviorRecord.scroll_events_count,
                    BehaviorRecord.key_events_count,
                    BehaviorRecord.page_views_count,
                )
                .where(BehaviorRecord.created_at >= since)
                .order_by(BehaviorRecord.created_at.desc())
                .limit(sample_size)
            )
            sample = (await self.db.execute(sample_query)).all()
        except SQLAlchemyError as e:
            logger.error("통계 조회 실패", exc_info=True)
            raise DatabaseException(operation="get_stats", cause=e) from e

        event_statistics = {
            "total_mouse_events": sum(row.mouse_events_count for row in sample),
            "total_click_events": sum(row.click_events_count for row in sample),
            "total_scroll_events": sum(row.scroll_events_count for row in sample),
            "total_key_events": sum(row.key_events_count for row in sample),
            "total_page_views": sum(row.page_views_count for row in sample),
            "sample_size": len(sample),
            "approximate": recent_records > len(sample),
        }

        return {
            "total_records": total_records,
            "total_sessions": total_sessions,
            "recent_activity": {"last_24_hours": recent_records},
            "event_statistics": event_statistics,
        }
