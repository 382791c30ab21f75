"""Structural (year, month, day) parsing of Korean document dates."""

import re
from typing import NamedTuple, Optional

NUMERIC_DATE_PATTERN = re.compile(r'(\d{4})[.\-/](\d{1,2})[.\-/](\d{1,2})')
KOREAN_DATE_PATTERN = re.compile(r'(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일')


class ParsedDate(NamedTuple):
    year: int
    month: int
    day: int


def parse_date(value: Optional[str]) -> Optional[ParsedDate]:
    """
    날짜 문자열에서 (연, 월, 일) 추출

    Example:
        parse_date("2025.05.31")      → ParsedDate(2025, 5, 31)
        parse_date("2025년 5월 31일")  → ParsedDate(2025, 5, 31)
        parse_date("기한 없음")         → None

    숫자 구분자 형식을 먼저 시도하고, 다음으로 한글 단위 형식을 시도합니다.
    달력 검증은 하지 않습니다.
    """
    if not value:
        return None

    for pattern in (NUMERIC_DATE_PATTERN, KOREAN_DATE_PATTERN):
        match = pattern.search(value)
        if match:
            year, month, day = (int(group) for group in match.groups())
            return ParsedDate(year, month, day)

    return None


def same_date(first: Optional[ParsedDate], second: Optional[ParsedDate]) -> bool:
    """Both parsed and year, month and day all equal"""
    return first is not None and second is not None and first == second
