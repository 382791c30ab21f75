import re
from enum import Enum
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)


class NormalizationKind(str, Enum):
    DATE = "date"
    TEXT = "text"
    NUMERIC = "numeric"


class NormalizerGovKR:
    """Canonical forms of Korean administrative values used for comparison"""

    def __init__(self):
        self.date_marker_pattern = re.compile(r'[년월일]')
        self.date_separator_pattern = re.compile(r'[.\-/]')
        self.text_punctuation_pattern = re.compile(r'[,.\-]')
        self.whitespace_pattern = re.compile(r'\s+')
        self.non_digit_pattern = re.compile(r'\D')

    def normalize(self, value: Optional[str], kind: Union[NormalizationKind, str]) -> str:
        """Normalize a value for the given comparison kind"""
        kind = NormalizationKind(kind)
        if not value:
            return ""

        if kind is NormalizationKind.DATE:
            return self.normalize_date(value)
        if kind is NormalizationKind.TEXT:
            return self.normalize_text(value)
        return self.normalize_numeric(value)

    def normalize_date(self, value: str) -> str:
        """2025년 5월 31일 -> 2025531, 2025.05.31 -> 20250531"""
        value = self.date_marker_pattern.sub('', value)
        value = self.date_separator_pattern.sub('', value)
        return self.whitespace_pattern.sub('', value)

    def normalize_text(self, value: str) -> str:
        value = self.whitespace_pattern.sub('', value)
        value = self.date_marker_pattern.sub('', value)
        value = self.text_punctuation_pattern.sub('', value)
        return value.lower()

    def normalize_numeric(self, value: str) -> str:
        return self.non_digit_pattern.sub('', value)


_normalizer_instance = None


def get_normalizer() -> NormalizerGovKR:
    """Get global normalizer instance"""
    global _normalizer_instance
    if _normalizer_instance is None:
        _normalizer_instance = NormalizerGovKR()
    return _normalizer_instance


def normalize(value: Optional[str], kind: Union[NormalizationKind, str]) -> str:
    return get_normalizer().normalize(value, kind)
