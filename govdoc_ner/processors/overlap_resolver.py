from typing import Iterable, List
import logging

from govdoc_ner.schemas import Entity

logger = logging.getLogger(__name__)


def dedupe(entities: Iterable[Entity]) -> List[Entity]:
    """Greedy same-label overlap removal, highest confidence first.

    Candidates are visited by descending confidence (ties keep input order);
    a candidate is kept unless an already kept entity with the same label
    overlaps its [start, end) range. Entities of different labels never
    conflict. The survivors are returned ordered by start offset.
    """
    candidates = list(entities)
    ranked = sorted(candidates, key=lambda entity: entity.confidence, reverse=True)

    accepted: List[Entity] = []
    for candidate in ranked:
        if any(kept.label == candidate.label and kept.overlaps(candidate) for kept in accepted):
            continue
        accepted.append(candidate)

    if len(accepted) < len(candidates):
        logger.debug(f"Dropped {len(candidates) - len(accepted)} overlapping entities")

    return sorted(accepted, key=lambda entity: entity.start)
