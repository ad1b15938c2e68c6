"""
Behavior Data API

행동 데이터 수집(POST) 및 레코드 조회(GET) 엔드포인트
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from botdetect.api.pagination import parse_page_params, total_pages
from botdetect.database import get_db
from botdetect.models.schemas import BehaviorPayload
from botdetect.services.behavior_service import BehaviorService
from botdetect.utils.exceptions import ValidationException
from botdetect.utils.request import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Behavior Data"])


@router.post("/collect-behavior")
async def collect_behavior(request: Request, db: AsyncSession = Depends(get_db)):
    """
    행동 데이터 배치 수집

    수집 스크립트가 주기적으로(기본 10초) 또는 페이지 이탈 시 전송한 배치를 저장합니다.
    sendBeacon은 text/plain으로 전송하므로 Content-Type과 무관하게 본문을 JSON으로 해석합니다.

    - **session_id**: 필수. 없거나 빈 문자열이면 400
    - 호출자 IP와 User-Agent를 레코드에 기록
    - 중복 제출은 별도 레코드로 저장 (멱등성 미보장)
    """
    try:
        body = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationException("Request body must be valid JSON")

    if not isinstance(body, dict):
        raise ValidationException("Request body must be a JSON object")

    session_id = body.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        raise ValidationException("session_id is required", field="session_id")

    try:
        payload = BehaviorPayload.model_validate(body)
    except ValidationError as e:
        errors = e.errors(
            include_url=False, include_context=False, include_input=False
        )
        raise ValidationException(
            "Invalid behavior data payload", details={"errors": errors}
        )

    service = BehaviorService(db)
    record = await service.create_record(
        payload,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    return {
        "success": True,
        "message": "Behavior data collected successfully",
        "session_id": payload.session_id,
        "record_id": str(record.id),
    }


@router.get("/behavior-data")
async def get_behavior_data(
    page: Optional[str] = Query(None, description="페이지 번호 (기본 1)"),
    limit: Optional[str] = Query(None, description="페이지 크기 (기본 50)"),
    session_id: Optional[str] = Query(None, description="세션 ID 필터"),
    db: AsyncSession = Depends(get_db),
):
    """
    행동 데이터 목록 조회

    수집 시각 최신순으로 정렬하며, 세션 ID 정확 일치 필터를 지원합니다.

    Returns:
        - **data**: 레코드 리스트
        - **pagination**: current, total(전체 페이지 수), totalRecords, hasNext, hasPrev
    """
    page_number, page_size = parse_page_params(page, limit)

    service = BehaviorService(db)
    records, total = await service.list_records(page_number, page_size, session_id)
    pages = total_pages(total, page_size)

    return {
        "success": True,
        "data": [record.to_dict() for record in records],
        "pagination": {
            "current": page_number,
            "total": pages,
            "totalRecords": total,
            "hasNext": page_number < pages,
            "hasPrev": page_number > 1,
        },
    }


@router.get("/behavior-data/{record_id}")
async def get_behavior_data_by_id(record_id: str, db: AsyncSession = Depends(get_db)):
    """
    행동 데이터 레코드 단건 조회

    레코드가 없으면 404를 반환합니다.
    """
    service = BehaviorService(db)
    record = await service.get_record(record_id)

    return {"success": True, "data": record.to_dict()}
