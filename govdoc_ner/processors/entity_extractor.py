"""Regex entity extraction for Korean administrative notices.

Each label owns one or more compiled patterns with a fixed confidence that
reflects how precise the pattern is. Matches from different patterns are
reported independently; overlapping spans are resolved later by
``overlap_resolver.dedupe``.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Tuple
import logging

from govdoc_ner.schemas import Entity, EntityLabel

logger = logging.getLogger(__name__)

_NUMBER = r'(?<![\d,.])\d+(?:,\d{3})*(?:\.\d+)?'

ACTION_STEMS = ['납부', '제출', '신청', '접수', '처리', '완료', '확인']
ACTION_ENDINGS = [
    r'하여야\s*(?:합니다|함|한다)',
    r'하여야',
    r'해야\s*(?:합니다|함|한다)',
    r'하시기\s*바랍니다',
    r'하십시오',
    r'하세요',
    r'하여',
    r'하',
]
DEADLINE_KEYWORDS = [
    '납부기한', '제출기한', '신청기한', '기한', '마감일', '마감',
    '납부일', '제출일', '신청일', '접수일',
]
TAX_TYPES = [
    '지방소득세', '종합부동산세', '등록면허세', '지역자원시설세', '지방교육세',
    '교통에너지환경세', '담배소비세', '개별소비세', '부가가치세', '종합소득세',
    '양도소득세', '증권거래세', '주민세', '재산세', '자동차세', '취득세',
    '레저세', '소득세', '법인세', '상속세', '증여세', '인지세',
]
SANCTION_TERMS = ['과태료', '가산금', '가산세', '체납처분', '이의신청', '행정심판', '행정소송', '독촉']


def _alternation(words: Iterable[str]) -> str:
    return '|'.join(words)


@dataclass(frozen=True)
class EntityPattern:
    """One row of the extraction table"""
    label: EntityLabel
    pattern: Pattern[str]
    confidence: float
    group: int = 1

    def find(self, text: str) -> Iterable[Tuple[str, int, int]]:
        for match in self.pattern.finditer(text):
            start, end = match.span(self.group)
            if end > start:
                yield match.group(self.group), start, end


DEFAULT_PATTERNS: Tuple[EntityPattern, ...] = (
    # Dates
    EntityPattern(EntityLabel.DATE, re.compile(r'(\d{4}\s*년\s*\d{1,2}\s*월\s*\d{1,2}\s*일)'), 0.8),
    EntityPattern(EntityLabel.DATE, re.compile(r'(?<!\d)(\d{4}[.\-/]\d{1,2}[.\-/]\d{1,2})(?!\d)'), 0.8),

    # Money (whole match, unit included)
    EntityPattern(EntityLabel.MONEY, re.compile(_NUMBER + r'\s*원'), 0.85, group=0),
    EntityPattern(EntityLabel.MONEY, re.compile(_NUMBER + r'\s*만\s*원'), 0.85, group=0),
    EntityPattern(EntityLabel.MONEY, re.compile(_NUMBER + r'\s*억\s*원'), 0.85, group=0),

    # Bank accounts: 3-3-6, 3-2-6, 4-4-5 ... and undelimited runs
    EntityPattern(
        EntityLabel.ACCOUNT_NUMBER,
        re.compile(r'(?<![\d-])(\d{3,6}-\d{2,6}-\d{4,7}(?:-\d{1,3})?)(?![\d-])'),
        0.7,
    ),
    EntityPattern(
        EntityLabel.ACCOUNT_NUMBER,
        re.compile(r'(?<!\d)(\d{3,4}[-.\s]?\d{4,6}[-.\s]?\d{4,6})(?!\d)'),
        0.7,
    ),

    # Obligations
    EntityPattern(
        EntityLabel.ACTION,
        re.compile(rf'((?:{_alternation(ACTION_STEMS)})(?:{_alternation(ACTION_ENDINGS)}))'),
        0.75,
    ),

    # Deadline keyword followed by a date
    EntityPattern(
        EntityLabel.DEADLINE,
        re.compile(
            rf'((?:{_alternation(DEADLINE_KEYWORDS)})[은는을를이]?\s*[:：]?\s*'
            r'\d{4}\s*[년.\-/]\s*\d{1,2}\s*[월.\-/]\s*\d{1,2}(?:\s*일)?)'
        ),
        0.8,
    ),

    # Government offices
    EntityPattern(
        EntityLabel.ORGANIZATION,
        re.compile(r'(?<![가-힣])([가-힣]+(?:시|군|구|동|읍|면|리)\s*(?:청|사무소|센터|관공서))'),
        0.7,
    ),
    EntityPattern(
        EntityLabel.ORGANIZATION,
        re.compile(r'(?<![가-힣])([가-힣]{2,}(?:부|청|원|국|소|과|팀|실))'),
        0.6,
    ),

    EntityPattern(EntityLabel.TAX_TYPE, re.compile(rf'({_alternation(TAX_TYPES)})'), 0.8),

    # Statute references and sanction terms
    EntityPattern(
        EntityLabel.LAW_TERM,
        re.compile(
            r'((?:[가-힣]+법(?:\s*시행령|\s*시행규칙)?\s*)?제\s*\d+\s*조(?:의\s*\d+)?'
            r'(?:\s*제\s*\d+\s*항)?(?:\s*제\s*\d+\s*호)?)'
        ),
        0.75,
    ),
    EntityPattern(EntityLabel.LAW_TERM, re.compile(rf'({_alternation(SANCTION_TERMS)})'), 0.75),
)


class RegexEntityExtractor:
    """Scan text with a table of (label, pattern, confidence) rows"""

    def __init__(self, patterns: Optional[Iterable[EntityPattern]] = None):
        self.patterns: Tuple[EntityPattern, ...] = tuple(patterns) if patterns is not None else DEFAULT_PATTERNS

    def extract(self, text: str) -> List[Entity]:
        """Every pattern match as an entity, in table order then text order"""
        if not text:
            return []

        entities: List[Entity] = []
        for entity_pattern in self.patterns:
            for value, start, end in entity_pattern.find(text):
                entities.append(Entity(
                    text=value,
                    label=entity_pattern.label,
                    start=start,
                    end=end,
                    confidence=entity_pattern.confidence,
                ))

        logger.debug(f"Regex extraction found {len(entities)} candidates in {len(text)} chars")
        return entities


_extractor_instance = None


def get_entity_extractor() -> RegexEntityExtractor:
    """Get global regex extractor instance"""
    global _extractor_instance
    if _extractor_instance is None:
        _extractor_instance = RegexEntityExtractor()
    return _extractor_instance


def extract_by_regex(text: str) -> List[Entity]:
    return get_entity_extractor().extract(text)
