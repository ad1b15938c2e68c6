"""
페이지네이션 파라미터 유닛 테스트
"""

import pytest

from botdetect.api.pagination import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    MAX_LIMIT,
    MAX_PAGE,
    parse_page_params,
    parse_positive_int,
    total_pages,
)


class TestParsePositiveInt:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 7),
            ("3", 3),
            (" 12", 12),
            ("5abc", 5),
            ("abc", 7),
            ("", 7),
            ("0", 7),
            ("-4", 7),
        ],
    )
    def test_lenient_parsing(self, value, expected):
        """숫자가 아니거나 1 미만이면 기본값"""
        assert parse_positive_int(value, 7) == expected


class TestPageParams:
    def test_defaults(self):
        assert parse_page_params(None, None) == (DEFAULT_PAGE, DEFAULT_LIMIT)
        assert (DEFAULT_PAGE, DEFAULT_LIMIT) == (1, 50)

    def test_explicit(self):
        assert parse_page_params("2", "10") == (2, 10)

    def test_oversized_values_are_clamped(self):
        """64비트 범위를 넘는 값도 상한으로 잘림"""
        page, limit = parse_page_params("10000000000000000000", "99999999999999999999")

        assert (page, limit) == (MAX_PAGE, MAX_LIMIT)
        assert (page - 1) * limit < 2**63

    def test_limit_at_max_is_kept(self):
        assert parse_page_params("1", "1000") == (1, 1000)
        assert parse_page_params("1", "1001") == (1, MAX_LIMIT)


class TestTotalPages:
    @pytest.mark.parametrize(
        "total,limit,expected",
        [(0, 50, 0), (5, 2, 3), (4, 2, 2), (1, 50, 1)],
    )
    def test_ceil(self, total, limit, expected):
        assert total_pages(total, limit) == expected
