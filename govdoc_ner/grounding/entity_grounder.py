"""Locate extracted entity values among the positioned text items of a document."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence
import logging

from govdoc_ner.config import config
from govdoc_ner.grounding.fuzzy_matcher import FuzzyMatcher, get_fuzzy_matcher
from govdoc_ner.processors.date_parser import parse_date, same_date
from govdoc_ner.processors.normalizer_govkr import NormalizerGovKR, NormalizationKind, get_normalizer
from govdoc_ner.schemas import (
    Entity,
    EntityLabel,
    GroundingRequest,
    MatchResult,
    PageText,
    TextItem,
)

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
PARSED_DATE_CONFIDENCE = 0.95
DIGITS_CONFIDENCE = 0.95
CONTAINMENT_CONFIDENCE = 0.9

DATE_LABELS = {EntityLabel.DATE, EntityLabel.DEADLINE}
NAME_LABELS = {EntityLabel.PERSON, EntityLabel.LOCATION, EntityLabel.ORGANIZATION}
AMOUNT_LABELS = {EntityLabel.MONEY, EntityLabel.ACCOUNT_NUMBER}


def _iter_items(pages: Optional[Sequence[PageText]]) -> Iterator[TextItem]:
    for page in pages or []:
        yield from page.items


def _ranked(matches: List[MatchResult]) -> List[MatchResult]:
    return sorted(matches, key=lambda match: match.confidence, reverse=True)


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class EntityGrounder:
    """Map entity values onto text items with type-specific strategies"""

    def __init__(
        self,
        date_threshold: float = config.DATE_FUZZY_THRESHOLD,
        name_threshold: float = config.NAME_MATCH_THRESHOLD,
        phrase_threshold: float = config.PHRASE_MATCH_THRESHOLD,
        text_threshold: float = config.TEXT_MATCH_THRESHOLD,
        normalizer: Optional[NormalizerGovKR] = None,
        matcher: Optional[FuzzyMatcher] = None,
    ) -> None:
        self.date_threshold = date_threshold
        self.name_threshold = name_threshold
        self.phrase_threshold = phrase_threshold
        self.text_threshold = text_threshold
        self.normalizer = normalizer or get_normalizer()
        self.matcher = matcher or get_fuzzy_matcher()

    # ------------------------------------------------------------------
    # Matching strategies
    # ------------------------------------------------------------------
    def match_date(self, date_str: str, pages: Sequence[PageText]) -> List[MatchResult]:
        """Exact normalized date, then same parsed date, then fuzzy similarity"""
        target = self.normalizer.normalize(date_str, NormalizationKind.DATE)
        if not target:
            return []
        target_parsed = parse_date(date_str)

        matches: List[MatchResult] = []
        for item in _iter_items(pages):
            candidate = self.normalizer.normalize(item.text, NormalizationKind.DATE)
            if not candidate:
                continue

            if candidate == target:
                confidence = EXACT_CONFIDENCE
            elif target_parsed and same_date(target_parsed, parse_date(item.text)):
                confidence = PARSED_DATE_CONFIDENCE
            else:
                confidence = self.matcher.similarity(target, candidate)
                if confidence <= self.date_threshold:
                    continue

            matches.append(MatchResult(text_item=item, confidence=confidence, matched_text=item.text))

        return _ranked(matches)

    def match_text(
        self,
        search_str: str,
        pages: Sequence[PageText],
        threshold: Optional[float] = None,
    ) -> List[MatchResult]:
        """Exact normalized text, then containment, then fuzzy similarity >= threshold"""
        if threshold is None:
            threshold = self.text_threshold
        target = self.normalizer.normalize(search_str, NormalizationKind.TEXT)
        if not target:
            return []

        matches: List[MatchResult] = []
        for item in _iter_items(pages):
            candidate = self.normalizer.normalize(item.text, NormalizationKind.TEXT)
            if not candidate:
                continue

            if candidate == target:
                confidence = EXACT_CONFIDENCE
            elif target in candidate or candidate in target:
                confidence = CONTAINMENT_CONFIDENCE
            else:
                confidence = self.matcher.similarity(target, candidate)
                if confidence < threshold:
                    continue

            matches.append(MatchResult(text_item=item, confidence=confidence, matched_text=item.text))

        return _ranked(matches)

    def match_amount(self, amount_str: str, pages: Sequence[PageText]) -> List[MatchResult]:
        """Same digit sequence, then raw substring containment"""
        if not amount_str:
            return []
        digits = self.normalizer.normalize(amount_str, NormalizationKind.NUMERIC)

        matches: List[MatchResult] = []
        for item in _iter_items(pages):
            if not item.text:
                continue
            item_digits = self.normalizer.normalize(item.text, NormalizationKind.NUMERIC)

            if item_digits and item_digits == digits:
                confidence = DIGITS_CONFIDENCE
            elif amount_str in item.text or item.text in amount_str:
                confidence = CONTAINMENT_CONFIDENCE
            else:
                continue

            matches.append(MatchResult(text_item=item, confidence=confidence, matched_text=item.text))

        return _ranked(matches)

    # ------------------------------------------------------------------
    # Batch grounding
    # ------------------------------------------------------------------
    def ground_entities(
        self,
        request: GroundingRequest,
        pages: Sequence[PageText],
    ) -> Dict[str, List[MatchResult]]:
        """Ground every value of the request; keys are "<kind>:<value>"."""
        grounded: Dict[str, List[MatchResult]] = {}

        def keep(key: str, matches: List[MatchResult]) -> None:
            if matches:
                grounded[key] = matches

        for date in request.dates:
            keep(f"date:{date}", self.match_date(date, pages))
        for name in request.names:
            keep(f"name:{name}", self.match_text(name, pages, self.name_threshold))
        for amount in request.amounts:
            keep(f"amount:{amount}", self.match_amount(amount, pages))
        for phrase in request.key_phrases:
            keep(f"phrase:{phrase}", self.match_text(phrase, pages, self.phrase_threshold))

        requested = len(request.dates) + len(request.names) + len(request.amounts) + len(request.key_phrases)
        logger.info(f"Grounded {len(grounded)}/{requested} entity values")
        return grounded

    def ground_extracted(
        self,
        entities: Iterable[Entity],
        pages: Sequence[PageText],
    ) -> Dict[str, List[MatchResult]]:
        """Ground extractor output by routing each label to its strategy"""
        return self.ground_entities(self.build_request(entities), pages)

    @staticmethod
    def build_request(entities: Iterable[Entity]) -> GroundingRequest:
        dates, names, amounts, phrases = [], [], [], []
        for entity in entities:
            if entity.label in DATE_LABELS:
                dates.append(entity.text)
            elif entity.label in NAME_LABELS:
                names.append(entity.text)
            elif entity.label in AMOUNT_LABELS:
                amounts.append(entity.text)
            else:
                phrases.append(entity.text)

        return GroundingRequest(
            dates=_unique(dates),
            names=_unique(names),
            amounts=_unique(amounts),
            key_phrases=_unique(phrases),
        )


_grounder_instance = None


def get_entity_grounder() -> EntityGrounder:
    """Get global grounder instance"""
    global _grounder_instance
    if _grounder_instance is None:
        _grounder_instance = EntityGrounder()
    return _grounder_instance


def match_date(date_str: str, pages: Sequence[PageText]) -> List[MatchResult]:
    return get_entity_grounder().match_date(date_str, pages)


def match_text(search_str: str, pages: Sequence[PageText], threshold: float = config.TEXT_MATCH_THRESHOLD) -> List[MatchResult]:
    return get_entity_grounder().match_text(search_str, pages, threshold)


def match_amount(amount_str: str, pages: Sequence[PageText]) -> List[MatchResult]:
    return get_entity_grounder().match_amount(amount_str, pages)


def ground_entities(request: GroundingRequest, pages: Sequence[PageText]) -> Dict[str, List[MatchResult]]:
    return get_entity_grounder().ground_entities(request, pages)
