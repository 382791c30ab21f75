"""Entity extraction and layout grounding for Korean administrative documents."""

from .schemas import (
    Entity,
    EntityLabel,
    ExtractionResult,
    GroundingRequest,
    MatchResult,
    PageText,
    TextItem,
)
from .processors.entity_extractor import extract_by_regex
from .processors.overlap_resolver import dedupe
from .grounding.entity_grounder import EntityGrounder, ground_entities, match_amount, match_date, match_text
from .ner.orchestrator import ExtractionOrchestrator

__version__ = "1.0.0"

__all__ = [
    'Entity',
    'EntityLabel',
    'ExtractionResult',
    'GroundingRequest',
    'MatchResult',
    'PageText',
    'TextItem',
    'extract_by_regex',
    'dedupe',
    'EntityGrounder',
    'ground_entities',
    'match_amount',
    'match_date',
    'match_text',
    'ExtractionOrchestrator',
]
