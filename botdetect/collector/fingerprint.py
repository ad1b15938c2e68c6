"""
디바이스 핑거프린트 수집

페이지(트래커) 초기화 시 한 번만 실행된다.
읽을 수 없는 속성은 기본값으로 대체하며 절대 예외를 던지지 않는다.

기본값:
    문자열 "unknown", 숫자 0, 불리언 False, doNotTrack "unspecified",
    connection None, deviceMemory / hardwareConcurrency "unknown"
"""

import locale
import logging
import os
import platform
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

_MISSING = object()


@dataclass
class ConnectionInfo:
    effectiveType: Optional[str] = None
    downlink: Optional[float] = None
    rtt: Optional[int] = None


@dataclass
class Fingerprint:
    """
    핑거프린트 스냅샷

    서버 스키마가 저장하는 것은 ua~maxTouch 까지이며, 나머지는 전송만 된다.
    """

    # 브라우저 식별
    ua: str = UNKNOWN
    lang: str = UNKNOWN
    plat: str = UNKNOWN
    # 화면
    scrw: int = 0
    scrh: int = 0
    color: int = 0
    # 시스템
    tz: str = UNKNOWN
    maxTouch: int = 0
    # 추가 정보 (비침해적)
    cookies: bool = False
    java: bool = False
    pdf: bool = False
    doNotTrack: str = "unspecified"
    connection: Optional[ConnectionInfo] = None
    deviceMemory: Union[float, str] = UNKNOWN
    hardwareConcurrency: Union[int, str] = UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read(env: Mapping[str, Any], path: str, default: Any = _MISSING) -> Any:
    """점(.) 경로로 중첩 속성을 읽는다. 실패하면 default"""
    value: Any = env
    try:
        for part in path.split("."):
            if isinstance(value, Mapping):
                value = value[part]
            else:
                value = getattr(value, part)
            if callable(value):
                value = value()
    except Exception:
        return default
    return default if value is None else value


def _typed(value: Any, kind: type, default: Any) -> Any:
    if value is _MISSING:
        return default
    if kind is bool:
        return bool(value)
    try:
        return kind(value)
    except (TypeError, ValueError):
        return default


def collect_fingerprint(env: Optional[Mapping[str, Any]] = None) -> Fingerprint:
    """
    브라우저 환경에서 핑거프린트 수집

    Args:
        env: navigator/screen/Intl 속성을 담은 매핑
            (예: {"userAgent": ..., "screen": {"width": 1920, ...}, "timeZone": ...})

    Returns:
        Fingerprint: 누락된 속성은 기본값으로 채워진 스냅샷
    """
    env = env or {}
    try:
        connection = _read(env, "connection")
        if connection is _MISSING:
            connection_info = None
        else:
            connection_info = ConnectionInfo(
                effectiveType=_read(connection, "effectiveType", None),
                downlink=_read(connection, "downlink", None),
                rtt=_read(connection, "rtt", None),
            )

        return Fingerprint(
            ua=_typed(_read(env, "userAgent"), str, UNKNOWN),
            lang=_typed(_read(env, "language"), str, UNKNOWN),
            plat=_typed(_read(env, "platform"), str, UNKNOWN),
            scrw=_typed(_read(env, "screen.width"), int, 0),
            scrh=_typed(_read(env, "screen.height"), int, 0),
            color=_typed(_read(env, "screen.colorDepth"), int, 0),
            tz=_typed(_read(env, "timeZone"), str, UNKNOWN),
            maxTouch=_typed(_read(env, "maxTouchPoints"), int, 0),
            cookies=_typed(_read(env, "cookieEnabled"), bool, False),
            java=_typed(_read(env, "javaEnabled"), bool, False),
            pdf=_typed(_read(env, "pdfViewerEnabled"), bool, False),
            doNotTrack=_typed(_read(env, "doNotTrack"), str, "unspecified"),
            connection=connection_info,
            deviceMemory=_read(env, "deviceMemory", UNKNOWN) or UNKNOWN,
            hardwareConcurrency=_read(env, "hardwareConcurrency", UNKNOWN) or UNKNOWN,
        )
    except Exception:
        logger.warning("Bot detection: fingerprint collection failed", exc_info=True)
        return Fingerprint()


def host_environment() -> Dict[str, Any]:
    """
    현재 파이썬 런타임에서 얻을 수 있는 환경 정보

    브라우저 밖(헤드리스 하네스, 테스트 에이전트)에서 트래커를 돌릴 때 사용한다.
    """
    language, _ = locale.getlocale()
    return {
        "userAgent": f"python/{platform.python_version()} ({platform.platform()})",
        "language": (language or UNKNOWN).replace("_", "-"),
        "platform": platform.system() or UNKNOWN,
        "timeZone": time.tzname[0] if time.tzname else UNKNOWN,
        "maxTouchPoints": 0,
        "cookieEnabled": False,
        "hardwareConcurrency": os.cpu_count(),
    }
