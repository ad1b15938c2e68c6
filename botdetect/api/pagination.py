"""
페이지네이션 공통 유틸

page/limit 쿼리 파라미터는 문자열로 받아 관대하게 해석한다:
숫자가 아니거나 1 미만이면 기본값을 사용한다.
너무 큰 값은 상한으로 잘라 offset이 64비트 정수 범위를 넘지 않게 한다.
"""

import math
import re
from typing import Optional, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 1000
# MAX_PAGE * MAX_LIMIT < 2**63
MAX_PAGE = 1_000_000

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_positive_int(value: Optional[str], default: int) -> int:
    """선행 정수 부분을 읽고, 1 미만이거나 없으면 기본값"""
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    number = int(match.group(1))
    return number if number > 0 else default


def parse_page_params(page: Optional[str], limit: Optional[str]) -> Tuple[int, int]:
    """(page, limit) 반환 (각각 MAX_PAGE, MAX_LIMIT 이하)"""
    return (
        min(parse_positive_int(page, DEFAULT_PAGE), MAX_PAGE),
        min(parse_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT),
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
