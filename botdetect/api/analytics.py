"""
Analytics API

세션 단위 집계와 전체 수집 통계 엔드포인트
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from botdetect.api.pagination import parse_page_params, total_pages
from botdetect.config import settings
from botdetect.database import get_db
from botdetect.services.behavior_service import BehaviorService

router = APIRouter(prefix="/api", tags=["Analytics"])


@router.get("/sessions")
async def get_sessions(
    page: Optional[str] = Query(None, description="페이지 번호 (기본 1)"),
    limit: Optional[str] = Query(None, description="페이지 크기 (기본 50)"),
    db: AsyncSession = Depends(get_db),
):
    """
    세션 목록 조회

    session_id 기준으로 레코드를 그룹화하여 세션별 요약을 반환합니다.

    Returns:
        - **data**: 세션 요약 리스트 (마지막 활동 최신순)
            - session_start / fingerprint: 세션의 첫 레코드 기준
            - last_activity: 마지막 수집 시각
            - *_count: 카테고리별 이벤트 수 합계
            - total_records: 레코드 수
        - **pagination**: current, total(전체 페이지 수), totalSessions
    """
    page_number, page_size = parse_page_params(page, limit)

    service = BehaviorService(db)
    sessions, total_sessions = await service.list_sessions(page_number, page_size)

    return {
        "success": True,
        "data": sessions,
        "pagination": {
            "current": page_number,
            "total": total_pages(total_sessions, page_size),
            "totalSessions": total_sessions,
        },
    }


@router.get("/stats")
async def get_stats(db: AsyncSession = Depends(get_db)):
    """
    수집 통계 조회

    event_statistics는 최근 24시간 레코드 중 최신 STATS_SAMPLE_SIZE(기본 1000)건의
    합계입니다. 그보다 많은 레코드가 있으면 근사치이며 approximate=true로 표시됩니다.
    """
    service = BehaviorService(db)
    stats = await service.get_stats(sample_size=settings.STATS_SAMPLE_SIZE)

    return {"success": True, "data": stats}
