"""Spatial proximity strategy: match the element nearest the recorded box."""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Optional

from ...dom.provider import DOMProvider
from ...geometry import BoundingBox, box_distance, center_distance, sizes_match
from ..descriptor import MIN_BOUNDING_SIZE, ElementDescriptor
from ..models import StrategyName, StrategyOutcome
from .base import LocatorStrategy

MAX_DISTANCE = 200
HIGH_CONFIDENCE_DISTANCE = 50
MEDIUM_CONFIDENCE_DISTANCE = 100
CLOSE_MATCH_BONUS = 0.20
MEDIUM_MATCH_BONUS = 0.10
TAG_MATCH_BONUS = 0.10
SIZE_MATCH_BONUS = 0.05
AMBIGUITY_PENALTY = 0.10
AMBIGUITY_DISTANCE = 20
MAX_CANDIDATES = 100


@dataclass
class SpatialCandidate:
    element: Any
    rect: BoundingBox
    distance: float
    center_distance: float
    tag_match: bool
    size_match: bool
    score: float


def spatial_confidence(
    candidate: SpatialCandidate,
    candidate_count: int,
    is_ambiguous: bool,
    base: float = 0.35,
    max_distance: float = MAX_DISTANCE,
) -> float:
    confidence = base
    if candidate.distance < HIGH_CONFIDENCE_DISTANCE:
        confidence += CLOSE_MATCH_BONUS
    elif candidate.distance < MEDIUM_CONFIDENCE_DISTANCE:
        confidence += MEDIUM_MATCH_BONUS
    else:
        span = max(max_distance - MEDIUM_CONFIDENCE_DISTANCE, 1)
        confidence -= (candidate.distance - MEDIUM_CONFIDENCE_DISTANCE) / span * 0.15

    if candidate.tag_match:
        confidence += TAG_MATCH_BONUS
    if candidate.size_match:
        confidence += SIZE_MATCH_BONUS
    if is_ambiguous:
        confidence -= AMBIGUITY_PENALTY
    if candidate_count > 3:
        confidence -= min(0.1, (candidate_count - 3) * 0.02)
    return max(0.0, min(1.0, confidence))


def _by_score(a: SpatialCandidate, b: SpatialCandidate) -> int:
    if abs(a.score - b.score) > 5:
        return -1 if a.score < b.score else 1
    if a.distance == b.distance:
        return 0
    return -1 if a.distance < b.distance else 1


class SpatialStrategy(LocatorStrategy):
    """Locate the visible element closest to the recorded bounding box.

    Args:
        max_distance: Largest box-gap distance (px) a candidate may have
    """

    name = StrategyName.BOUNDING_BOX

    def __init__(self, max_distance: float = MAX_DISTANCE):
        super().__init__()
        self.max_distance = max_distance

    async def nearby(
        self, target: BoundingBox, dom: DOMProvider, tag: Optional[str] = None
    ) -> list[SpatialCandidate]:
        candidates = []
        for element in await dom.all_elements(tag):
            style = await dom.style(element)
            if style.display == "none" or style.visibility == "hidden" or style.is_transparent:
                continue
            rect = await dom.bounding_rect(element)
            if rect.width < MIN_BOUNDING_SIZE or rect.height < MIN_BOUNDING_SIZE:
                continue

            distance = box_distance(target, rect)
            if distance > self.max_distance:
                continue

            tag_match = bool(tag) and await dom.tag_name(element) == tag
            size_match = sizes_match(target, rect)
            score = distance
            if tag_match:
                score -= 20
            if size_match:
                score -= 10
            candidates.append(
                SpatialCandidate(element, rect, distance, center_distance(target, rect), tag_match, size_match, score)
            )

        candidates.sort(key=cmp_to_key(_by_score))
        return candidates[:MAX_CANDIDATES]

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        target = descriptor.bounding
        candidates = await self.nearby(target, dom, descriptor.tag or None)
        if not candidates and descriptor.tag:
            candidates = await self.nearby(target, dom)
        if not candidates:
            return StrategyOutcome.miss(reason=f"no elements within {self.max_distance}px")

        best = candidates[0]
        is_ambiguous = len(candidates) > 1 and candidates[1].distance - best.distance < AMBIGUITY_DISTANCE
        confidence = spatial_confidence(
            best,
            len(candidates),
            is_ambiguous,
            base=self.base_confidence,
            max_distance=self.max_distance,
        )
        return StrategyOutcome(
            best.element,
            confidence,
            metadata={
                "distance": round(best.distance),
                "center_distance": round(best.center_distance),
                "tag_match": best.tag_match,
                "size_match": best.size_match,
                "candidate_count": len(candidates),
                "is_ambiguous": is_ambiguous,
            },
        )
