"""
탭 세션 식별자

세션 ID는 탭 저장소(sessionStorage 대응) 수명 동안 한 번만 생성되고
이후에는 저장된 값을 재사용한다. 세션을 파기하는 경로는 없다.
"""

import secrets
import string
from typing import MutableMapping

SESSION_PREFIX = "sess"

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id(now_ms: int) -> str:
    """sess_<epoch_ms>_<base36 9자리> 형식의 세션 ID 생성"""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{SESSION_PREFIX}_{now_ms}_{suffix}"


def get_or_create_session_id(
    storage: MutableMapping[str, str],
    key: str,
    now_ms: int,
) -> str:
    """
    저장소에 세션 ID가 있으면 반환, 없으면 생성 후 저장

    Args:
        storage: 탭 범위 저장소
        key: 저장 키 (기본 bot_detection_session_id)
        now_ms: 현재 시각 (epoch ms)
    """
    session_id = storage.get(key)
    if not session_id:
        session_id = generate_session_id(now_ms)
        storage[key] = session_id
    return session_id
