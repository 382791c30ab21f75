import pytest
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).parent.parent))

from govdoc_ner.grounding.fuzzy_matcher import FuzzyMatcher, similarity


@pytest.fixture
def matcher():
    """Create fuzzy matcher instance"""
    return FuzzyMatcher()


def test_levenshtein_identity():
    """Identical and empty strings are fully similar"""
    assert similarity("행정동", "행정동") == 1.0
    assert similarity("", "") == 1.0


def test_levenshtein_distance(matcher):
    """Classic insert/delete/substitute distances"""
    assert matcher.levenshtein_distance("kitten", "sitting") == 3
    assert matcher.levenshtein_distance("2025531", "20250531") == 1
    assert matcher.levenshtein_distance("", "abc") == 3


def test_similarity_scale(matcher):
    assert matcher.similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert matcher.similarity("abc", "") == 0.0


def test_similarity_is_commutative(matcher):
    pairs = [("강남구청", "강남구 청사"), ("20250531", "2025531"), ("납부", "")]
    for a, b in pairs:
        assert matcher.similarity(a, b) == matcher.similarity(b, a)


def test_whitespace_is_significant(matcher):
    """No normalization inside the scorer"""
    assert matcher.similarity("세무 과", "세무과") < 1.0


def test_matches_reference_implementation(matcher):
    """Distance agrees with rapidfuzz on Korean and mixed strings"""
    Levenshtein = pytest.importorskip("rapidfuzz.distance").Levenshtein
    pairs = [
        ("행정복지센터", "행정복지 센타"),
        ("2025년3월15일", "20250315"),
        ("과태료450000원", "과태료 45,000원"),
        ("", "계좌번호"),
    ]
    for a, b in pairs:
        assert matcher.levenshtein_distance(a, b) == Levenshtein.distance(a, b)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
