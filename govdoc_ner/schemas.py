from enum import Enum
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class EntityLabel(str, Enum):
    """Closed set of entity types found in administrative documents"""
    DATE = "DATE"
    MONEY = "MONEY"
    LOCATION = "LOCATION"
    ORGANIZATION = "ORGANIZATION"
    LAW_TERM = "LAW_TERM"
    ACTION = "ACTION"
    DEADLINE = "DEADLINE"
    PERSON = "PERSON"
    ACCOUNT_NUMBER = "ACCOUNT_NUMBER"
    TAX_TYPE = "TAX_TYPE"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class TextItem(_Frozen):
    """Positioned text fragment on a page"""
    text: str
    x: float
    y: float
    width: float
    height: float
    page_number: int = Field(..., ge=1)


class PageText(_Frozen):
    """All text items of one page"""
    page_number: int = Field(..., ge=1)
    items: List[TextItem] = Field(default_factory=list)
    full_text: str = ""

    @model_validator(mode="after")
    def _check_item_pages(self):
        for item in self.items:
            if item.page_number != self.page_number:
                raise ValueError(
                    f"text item on page {item.page_number} placed in page {self.page_number}"
                )
        return self

    @classmethod
    def from_items(cls, page_number: int, items: Sequence[TextItem]) -> "PageText":
        return cls(
            page_number=page_number,
            items=list(items),
            full_text=" ".join(item.text for item in items).strip(),
        )


class Bounds(_Frozen):
    """Rectangle in page coordinates"""
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class Entity(_Frozen):
    """Entity span inside the source text (character offsets)"""
    text: str
    label: EntityLabel
    start: int = Field(..., ge=0)
    end: int
    confidence: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_span(self):
        if self.end <= self.start:
            raise ValueError(f"entity end ({self.end}) must be greater than start ({self.start})")
        return self

    def overlaps(self, other: "Entity") -> bool:
        return self.start < other.end and other.start < self.end


class MatchResult(_Frozen):
    """One candidate position of an entity value in the page index"""
    text_item: TextItem
    confidence: float = Field(..., ge=0.0, le=1.0)
    matched_text: str


class ExtractionResult(_Frozen):
    """Entities plus the name of the source that produced them"""
    entities: List[Entity] = Field(default_factory=list)
    text: str
    model: str


class GroundingRequest(_Frozen):
    """Batch of entity values to locate, grouped by matching strategy"""
    dates: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)
    amounts: List[str] = Field(default_factory=list)
    key_phrases: List[str] = Field(default_factory=list)
