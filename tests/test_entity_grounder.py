import pytest
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).parent.parent))

from govdoc_ner.grounding.entity_grounder import EntityGrounder, match_amount, match_date, match_text
from govdoc_ner.processors.entity_extractor import extract_by_regex
from govdoc_ner.processors.overlap_resolver import dedupe
from govdoc_ner.schemas import Entity, EntityLabel, GroundingRequest, PageText, TextItem


def page(page_number, *texts):
    items = [
        TextItem(text=text, x=72.0, y=100.0 + 20 * i, width=10.0 * len(text), height=12.0, page_number=page_number)
        for i, text in enumerate(texts)
    ]
    return PageText.from_items(page_number, items)


@pytest.fixture
def grounder():
    """Create grounder with default thresholds"""
    return EntityGrounder()


@pytest.fixture
def pages():
    """Two-page notice"""
    return [
        page(1, "2025.05.31", "과태료 450,000원", "강남구청 세무과"),
        page(2, "2025.03.15", "납부기한", "123-456-789012"),
    ]


def assert_ranked(matches):
    confidences = [m.confidence for m in matches]
    assert confidences == sorted(confidences, reverse=True)
    assert all(0.0 <= c <= 1.0 for c in confidences)


def test_iso_date_matches_dotted_date(grounder, pages):
    """Same digits after normalization is an exact match"""
    matches = grounder.match_date("2025-05-31", pages)

    assert matches[0].matched_text == "2025.05.31"
    assert matches[0].confidence == 1.0
    assert matches[0].text_item.page_number == 1
    assert_ranked(matches)


def test_korean_date_matches_dotted_date(grounder, pages):
    """Worded date matches through structural parsing"""
    matches = grounder.match_date("2025년 5월 31일", pages)

    assert matches[0].matched_text == "2025.05.31"
    assert matches[0].confidence == pytest.approx(0.95)
    assert_ranked(matches)


def test_fuzzy_date_match(grounder):
    """OCR noise in a date falls back to edit-distance similarity"""
    noisy = [page(1, "2025.O5.31")]
    matches = grounder.match_date("2025-05-31", noisy)

    assert len(matches) == 1
    assert matches[0].confidence == pytest.approx(1 - 1 / 8)


def test_date_without_match(grounder):
    assert grounder.match_date("2025-05-31", [page(1, "강남구청", "세무과")]) == []


def test_text_exact_and_containment(grounder, pages):
    exact = grounder.match_text("납부 기한", pages)
    assert exact[0].matched_text == "납부기한"
    assert exact[0].confidence == 1.0

    contained = grounder.match_text("강남구청", pages, threshold=0.8)
    assert contained[0].matched_text == "강남구청 세무과"
    assert contained[0].confidence == pytest.approx(0.9)


def test_text_fuzzy_threshold(grounder, pages):
    """One substituted syllable out of seven clears 0.7 but not 0.9"""
    matches = grounder.match_text("강남구청 세무팀", pages, threshold=0.7)
    assert matches[0].matched_text == "강남구청 세무과"
    assert matches[0].confidence == pytest.approx(6 / 7)

    assert grounder.match_text("강남구청 세무팀", pages, threshold=0.9) == []


def test_text_skips_items_without_content(grounder):
    """Punctuation-only items cannot contain every query"""
    assert grounder.match_text("강남구청", [page(1, "-", ". ,")]) == []


def test_amount_matching(grounder, pages):
    matches = grounder.match_amount("450,000원", pages)
    assert len(matches) == 1
    assert matches[0].matched_text == "과태료 450,000원"
    assert matches[0].confidence == pytest.approx(0.95)

    account = grounder.match_amount("123-456-789012", pages)
    assert account[0].matched_text == "123-456-789012"
    assert account[0].text_item.page_number == 2


def test_amount_containment(grounder):
    matches = grounder.match_amount("450,000", [page(1, "450,000원 (부가세 10%)")])
    assert len(matches) == 1
    assert matches[0].confidence == pytest.approx(0.9)


def test_empty_inputs_never_raise(grounder, pages):
    """Empty page index or empty query yields no matches"""
    assert grounder.match_date("2025-05-31", []) == []
    assert grounder.match_text("강남구청", []) == []
    assert grounder.match_amount("450,000원", []) == []
    assert grounder.match_date("", pages) == []
    assert grounder.match_text(" ", pages) == []
    assert grounder.match_amount("", pages) == []


def test_module_level_functions(pages):
    assert match_date("2025-03-15", pages)[0].confidence == 1.0
    assert match_text("납부기한", pages)[0].confidence == 1.0
    assert match_amount("450,000원", pages)[0].confidence == pytest.approx(0.95)


def test_ground_entities_keys(grounder, pages):
    request = GroundingRequest(
        dates=["2025-05-31"],
        names=["강남구청"],
        amounts=["450,000원"],
        key_phrases=["납부 기한", "존재하지 않는 문구"],
    )
    grounded = grounder.ground_entities(request, pages)

    assert set(grounded) == {"date:2025-05-31", "name:강남구청", "amount:450,000원", "phrase:납부 기한"}
    for matches in grounded.values():
        assert matches
        assert_ranked(matches)


def test_build_request_routes_labels():
    def entity(text, label):
        return Entity(text=text, label=label, start=0, end=len(text), confidence=0.8)

    request = EntityGrounder.build_request([
        entity("2025년 3월 15일", EntityLabel.DATE),
        entity("기한: 2025년 3월 15일", EntityLabel.DEADLINE),
        entity("강남구청", EntityLabel.ORGANIZATION),
        entity("450,000원", EntityLabel.MONEY),
        entity("123-456-789012", EntityLabel.ACCOUNT_NUMBER),
        entity("납부하세요", EntityLabel.ACTION),
        entity("2025년 3월 15일", EntityLabel.DATE),
    ])

    assert request.dates == ["2025년 3월 15일", "기한: 2025년 3월 15일"]
    assert request.names == ["강남구청"]
    assert request.amounts == ["450,000원", "123-456-789012"]
    assert request.key_phrases == ["납부하세요"]


def test_notice_end_to_end(grounder):
    """Extract from the notice text, then ground against the rendered layout"""
    text = "신청 기한: 2025년 3월 15일까지 계좌번호 123-456-789012로 납부하세요."
    layout = [page(1, "신청 기한:", "2025.03.15", "까지 계좌번호"), page(2, "123-456-789012", "로 납부하세요.")]

    entities = dedupe(extract_by_regex(text))
    grounded = grounder.ground_extracted(entities, layout)

    date_matches = grounded["date:2025년 3월 15일"]
    assert date_matches[0].matched_text == "2025.03.15"
    assert date_matches[0].confidence >= 0.95

    account_matches = grounded["amount:123-456-789012"]
    assert account_matches[0].text_item.page_number == 2

    assert grounder.match_date("2025-03-15", layout)[0].confidence >= 0.95


def test_page_item_invariant():
    """Items must belong to the page that holds them"""
    item = TextItem(text="2025.03.15", x=0, y=0, width=10, height=10, page_number=2)
    with pytest.raises(ValueError):
        PageText(page_number=1, items=[item], full_text="2025.03.15")


def test_full_text_is_space_joined():
    assert page(1, "신청 기한:", "2025.03.15").full_text == "신청 기한: 2025.03.15"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
