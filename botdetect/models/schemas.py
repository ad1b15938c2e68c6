"""
행동 데이터 수집 API Pydantic 스키마

수집 스크립트가 전송하는 와이어 페이로드를 검증하고,
저장 대상 필드만 남긴다 (알 수 없는 필드는 무시).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _EventModel(BaseModel):
    """이벤트 공통 설정: 스키마에 없는 필드는 저장하지 않음"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MouseEventIn(_EventModel):
    x: Optional[float] = Field(None, description="clientX")
    y: Optional[float] = Field(None, description="clientY")
    t: Optional[int] = Field(None, description="타임스탬프 (epoch ms)")


class ClickEventIn(_EventModel):
    x: Optional[float] = None
    y: Optional[float] = None
    btn: Optional[int] = Field(None, description="마우스 버튼 번호")
    tgt: Optional[str] = Field(None, description="대상 요소 태그명")
    t: Optional[int] = None
    id: Optional[str] = Field(None, description="대상 요소 id")
    className: Optional[str] = Field(None, description="대상 요소 class")
    text: Optional[str] = Field(None, max_length=50, description="대상 요소 텍스트 (최대 50자)")

    @field_validator("id", "className", mode="before")
    @classmethod
    def non_string_to_none(cls, value):
        # SVG 요소의 className은 문자열이 아닌 객체로 직렬화됨
        return value if value is None or isinstance(value, str) else None


class ScrollEventIn(_EventModel):
    x: Optional[float] = Field(None, description="scrollX")
    y: Optional[float] = Field(None, description="scrollY")
    t: Optional[int] = None
    vw: Optional[int] = Field(None, description="뷰포트 너비")
    vh: Optional[int] = Field(None, description="뷰포트 높이")
    docH: Optional[int] = Field(None, description="문서 높이")
    docW: Optional[int] = Field(None, description="문서 너비")


class KeyEventIn(_EventModel):
    """
    키 입력 타이밍

    개인정보 보호: 키 값/코드/문자는 절대 저장하지 않는다.
    수정자 키 플래그와 키 위치 코드만 허용한다.
    """

    t: Optional[int] = None
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False
    location: int = Field(0, description="KeyboardEvent.location (0-3)")


class PageViewIn(_EventModel):
    url: Optional[str] = None
    title: Optional[str] = None
    ref: Optional[str] = Field(None, description="referrer")
    t: Optional[int] = None
    type: Optional[str] = Field(
        None,
        description="initial, spa_navigation, spa_pushstate, spa_replacestate, page_exit, tab_return",
    )


class FingerprintIn(_EventModel):
    """저장되는 핑거프린트 부분집합"""

    ua: Optional[str] = None
    lang: Optional[str] = None
    plat: Optional[str] = None
    scrw: Optional[int] = None
    scrh: Optional[int] = None
    color: Optional[int] = None
    tz: Optional[str] = None
    maxTouch: Optional[int] = None


class BehaviorPayload(BaseModel):
    """POST /api/collect-behavior 요청 본문"""

    model_config = ConfigDict(extra="ignore")

    session_id: str = Field(..., min_length=1, description="세션 ID (클라이언트 생성)")
    session_start: Optional[int] = Field(None, description="세션 시작 시각 (epoch ms)")
    mouse_events: List[MouseEventIn] = Field(default_factory=list)
    click_events: List[ClickEventIn] = Field(default_factory=list)
    scroll_events: List[ScrollEventIn] = Field(default_factory=list)
    key_events: List[KeyEventIn] = Field(default_factory=list)
    page_views: List[PageViewIn] = Field(default_factory=list)
    fingerprint: Optional[FingerprintIn] = None
    current_url: Optional[str] = None
    collected_at: Optional[int] = Field(None, description="클라이언트 전송 시각 (epoch ms)")

    @field_validator("click_events", mode="before")
    @classmethod
    def truncate_click_text(cls, value):
        """클릭 텍스트는 50자로 자른다 (수집 스크립트와 동일한 제한)"""
        if isinstance(value, list):
            for item in value:
                if isinstance(item, dict) and isinstance(item.get("text"), str):
                    item["text"] = item["text"][:50]
        return value
