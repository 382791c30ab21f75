"""HTTP clients for the remote NER backends."""

from typing import Any, Dict, List, Optional
import logging
import math

import httpx

from govdoc_ner.schemas import Entity, EntityLabel
from govdoc_ner.utils.error_handler import BackendUnavailableError, MalformedResponseError

logger = logging.getLogger(__name__)

# BIO tag bodies emitted by Korean token-classification models
TOKEN_LABEL_MAP: Dict[str, EntityLabel] = {
    "DATE": EntityLabel.DATE,
    "DAT": EntityLabel.DATE,
    "DT": EntityLabel.DATE,
    "MONEY": EntityLabel.MONEY,
    "LOCATION": EntityLabel.LOCATION,
    "LOC": EntityLabel.LOCATION,
    "LC": EntityLabel.LOCATION,
    "ORGANIZATION": EntityLabel.ORGANIZATION,
    "ORG": EntityLabel.ORGANIZATION,
    "OG": EntityLabel.ORGANIZATION,
    "PERSON": EntityLabel.PERSON,
    "PER": EntityLabel.PERSON,
    "PS": EntityLabel.PERSON,
}


def map_token_label(raw_label: str) -> Optional[EntityLabel]:
    """B-PER -> PERSON, ORG -> ORGANIZATION, unknown tags -> None"""
    tag = raw_label.strip().upper()
    if tag in TOKEN_LABEL_MAP:
        return TOKEN_LABEL_MAP[tag]
    if len(tag) > 2 and tag[1] == "-" and tag[0] in "BIES":
        return TOKEN_LABEL_MAP.get(tag[2:])
    return None


def _score(value: Any, default: float) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(score):
        return default
    return min(max(score, 0.0), 1.0)


class RemoteNERBackend:
    """Shared POST/decode logic for JSON NER services"""

    name = "remote"
    model_name = "remote"

    def __init__(
        self,
        url: str,
        timeout: httpx.Timeout,
        default_confidence: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.default_confidence = default_confidence
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _post(self, payload: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json=payload, headers=self._headers())
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise BackendUnavailableError(self.name, f"request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise BackendUnavailableError(
                self.name,
                f"returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(self.name, f"response is not JSON: {e}") from e

    async def extract(self, text: str) -> List[Entity]:
        raise NotImplementedError


class PrimaryNERBackend(RemoteNERBackend):
    """Dedicated NER worker: {"text"} in, {"entities": [...]} out"""

    name = "primary"
    model_name = "koelectra-cloudflare"

    async def extract(self, text: str) -> List[Entity]:
        data = await self._post({"text": text})
        if not isinstance(data, dict):
            raise MalformedResponseError(self.name, f"expected object, got {type(data).__name__}")

        raw_entities = data.get("entities") or []
        if not isinstance(raw_entities, list):
            raise MalformedResponseError(self.name, "'entities' is not a list")

        entities = []
        for raw in raw_entities:
            if not isinstance(raw, dict):
                raise MalformedResponseError(self.name, f"entity is not an object: {raw!r}")
            if raw.get("confidence") is None:
                raw = {**raw, "confidence": self.default_confidence}
            try:
                entities.append(Entity.model_validate(raw))
            except ValueError as e:
                raise MalformedResponseError(self.name, f"invalid entity {raw!r}: {e}") from e

        logger.info(f"Primary backend returned {len(entities)} entities")
        return entities


class SecondaryNERBackend(RemoteNERBackend):
    """Hosted token-classification inference endpoint (bearer key)"""

    name = "secondary"
    model_name = "koelectra-huggingface"

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: httpx.Timeout,
        default_confidence: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(url, timeout, default_confidence, transport)
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def extract(self, text: str) -> List[Entity]:
        data = await self._post({"inputs": text})

        if not isinstance(data, list):
            logger.info(f"Secondary backend returned {type(data).__name__}, no token predictions used")
            return []

        # Batched responses wrap the predictions in one more list
        if data and isinstance(data[0], list):
            data = data[0]

        entities = self.entities_from_tokens(text, data)
        logger.info(f"Secondary backend returned {len(entities)} entities")
        return entities

    def entities_from_tokens(self, text: str, tokens: List[Any]) -> List[Entity]:
        """Convert token predictions to entities, merging I- continuations"""
        entities: List[Entity] = []

        for token in tokens:
            if not isinstance(token, dict):
                continue
            raw_label = token.get("entity_group") or token.get("entity")
            start, end = token.get("start"), token.get("end")
            if not isinstance(raw_label, str) or type(start) is not int or type(end) is not int:
                continue

            label = map_token_label(raw_label)
            if label is None or not 0 <= start < end <= len(text):
                continue

            score = _score(token.get("score"), self.default_confidence)
            previous = entities[-1] if entities else None

            if (raw_label.upper().startswith("I-") and previous is not None
                    and previous.label == label and start <= previous.end + 1):
                start = previous.start
                end = max(end, previous.end)
                score = min(score, previous.confidence)
                entities.pop()

            try:
                entities.append(Entity(
                    text=text[start:end],
                    label=label,
                    start=start,
                    end=end,
                    confidence=score,
                ))
            except ValueError as e:
                raise MalformedResponseError(self.name, f"invalid token {token!r}: {e}") from e

        return entities
