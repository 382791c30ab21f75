"""Entity extraction with an ordered backend fallback chain.

    PRIMARY_BACKEND -> SECONDARY_BACKEND -> REGEX_ONLY
    (nothing configured)                 -> EMPTY

Each failed stage transitions to the next one; no exception reaches the
caller.
"""

from enum import Enum
from typing import List, Optional
import logging

import httpx

from govdoc_ner.config import NERBackendConfig
from govdoc_ner.processors.entity_extractor import RegexEntityExtractor, get_entity_extractor
from govdoc_ner.processors.overlap_resolver import dedupe
from govdoc_ner.ner.backends import PrimaryNERBackend, SecondaryNERBackend
from govdoc_ner.schemas import Entity, ExtractionResult
from govdoc_ner.utils.error_handler import ErrorHandler, NERBackendError

logger = logging.getLogger(__name__)

MODEL_HYBRID = "koelectra-huggingface-hybrid"
MODEL_REGEX_FALLBACK = "regex-fallback"
MODEL_NONE = "none"


class ExtractionStage(str, Enum):
    PRIMARY_BACKEND = "primary_backend"
    SECONDARY_BACKEND = "secondary_backend"
    REGEX_ONLY = "regex_only"
    EMPTY = "empty"


def initial_stage(backends: NERBackendConfig) -> ExtractionStage:
    """First stage to attempt for the given configuration"""
    if backends.has_primary:
        return ExtractionStage.PRIMARY_BACKEND
    if backends.has_secondary:
        return ExtractionStage.SECONDARY_BACKEND
    return ExtractionStage.EMPTY


def next_stage(stage: ExtractionStage, backends: NERBackendConfig) -> ExtractionStage:
    """Stage to attempt after ``stage`` failed"""
    if stage is ExtractionStage.PRIMARY_BACKEND:
        if backends.has_secondary:
            return ExtractionStage.SECONDARY_BACKEND
        return ExtractionStage.REGEX_ONLY
    if stage is ExtractionStage.SECONDARY_BACKEND:
        return ExtractionStage.REGEX_ONLY
    raise ValueError(f"{stage.value} cannot fail")


class ExtractionOrchestrator:
    """Compose remote NER backends, regex extraction and overlap resolution"""

    def __init__(
        self,
        backends: Optional[NERBackendConfig] = None,
        extractor: Optional[RegexEntityExtractor] = None,
        error_handler: Optional[ErrorHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.backends = backends if backends is not None else NERBackendConfig.from_env()
        self.extractor = extractor or get_entity_extractor()
        self.error_handler = error_handler or ErrorHandler()

        timeout = httpx.Timeout(self.backends.timeout_s, connect=self.backends.connect_timeout_s)
        self.primary = None
        self.secondary = None
        if self.backends.has_primary:
            self.primary = PrimaryNERBackend(
                self.backends.primary_url,
                timeout,
                default_confidence=self.backends.default_confidence,
                transport=transport,
            )
        if self.backends.has_secondary:
            self.secondary = SecondaryNERBackend(
                self.backends.secondary_url,
                self.backends.secondary_key,
                timeout,
                default_confidence=self.backends.default_confidence,
                transport=transport,
            )

    async def extract_entities(self, text: str) -> ExtractionResult:
        """Run the fallback chain until a stage produces a result"""
        stage = initial_stage(self.backends)

        while True:
            logger.debug(f"Extraction stage: {stage.value}")

            if stage is ExtractionStage.EMPTY:
                logger.warning("No NER backend configured, returning empty result")
                return ExtractionResult(entities=[], text=text, model=MODEL_NONE)

            if stage is ExtractionStage.REGEX_ONLY:
                entities = self.extractor.extract(text)
                logger.info(f"Regex fallback extracted {len(entities)} entities")
                return ExtractionResult(entities=entities, text=text, model=MODEL_REGEX_FALLBACK)

            try:
                if stage is ExtractionStage.PRIMARY_BACKEND:
                    entities = await self.primary.extract(text)
                    return ExtractionResult(entities=entities, text=text, model=self.primary.model_name)

                entities = self._merge_hybrid(await self.secondary.extract(text), text)
                return ExtractionResult(entities=entities, text=text, model=MODEL_HYBRID)

            except NERBackendError as e:
                self.error_handler.handle_error(e, {"stage": stage.value, "text_length": len(text)})
                stage = next_stage(stage, self.backends)
            except Exception as e:
                logger.error(f"Unexpected failure in {stage.value}: {e}", exc_info=True)
                self.error_handler.handle_error(e, {"stage": stage.value, "text_length": len(text)})
                stage = next_stage(stage, self.backends)

    def _merge_hybrid(self, remote: List[Entity], text: str) -> List[Entity]:
        # Remote entities first so they win confidence ties
        merged = dedupe(remote + self.extractor.extract(text))
        logger.info(f"Hybrid extraction: {len(remote)} remote, {len(merged)} after dedup")
        return merged
