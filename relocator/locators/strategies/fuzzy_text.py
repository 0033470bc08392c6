"""Fuzzy text strategy: match elements by visible text similarity."""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Optional

from ...dom.provider import DOMProvider
from ...geometry import point_distance
from ..descriptor import ElementDescriptor
from ..models import StrategyName, StrategyOutcome
from ..text import (
    BIGRAM_WEIGHT,
    MIN_WORD_LENGTH,
    SHORT_TEXT_LENGTH,
    SIMILARITY_THRESHOLD,
    WORD_WEIGHT,
    compare_text,
    normalize_text,
)
from .base import LocatorStrategy

PRIORITY_TAGS = frozenset(
    {"button", "a", "label", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "td", "th", "option"}
)

HIGH_SIMILARITY = 0.80
EXACT_SIMILARITY = 0.95
HIGH_SIMILARITY_BONUS = 0.15
EXACT_MATCH_BONUS = 0.25
AMBIGUITY_PENALTY = 0.10
AMBIGUITY_MARGIN = 0.10
PRIORITY_TAG_BONUS = 0.03


@dataclass
class TextCandidate:
    element: Any
    text: str
    tag: str
    similarity: float
    is_priority_tag: bool
    score: float = 0.0


def fuzzy_confidence(
    similarity: float,
    candidate_count: int,
    is_ambiguous: bool,
    is_priority_tag: bool,
    base: float = 0.40,
    threshold: float = SIMILARITY_THRESHOLD,
) -> float:
    confidence = base
    if similarity >= EXACT_SIMILARITY:
        confidence += EXACT_MATCH_BONUS
    elif similarity >= HIGH_SIMILARITY:
        confidence += HIGH_SIMILARITY_BONUS
    else:
        scale = (similarity - threshold) / (HIGH_SIMILARITY - threshold)
        confidence += HIGH_SIMILARITY_BONUS * max(0.0, scale)

    if candidate_count > 1:
        confidence -= 0.10 * min(candidate_count - 1, 3) * 0.33
    if is_ambiguous:
        confidence -= AMBIGUITY_PENALTY
    if is_priority_tag:
        confidence += PRIORITY_TAG_BONUS
    return max(0.0, min(1.0, confidence))


def _by_similarity(a: TextCandidate, b: TextCandidate) -> int:
    if abs(a.similarity - b.similarity) > 0.05:
        return -1 if a.similarity > b.similarity else 1
    if a.is_priority_tag != b.is_priority_tag:
        return -1 if a.is_priority_tag else 1
    return 0


class FuzzyTextStrategy(LocatorStrategy):
    """Locate an element whose visible text resembles the recorded text.

    Args:
        threshold: Minimum similarity for a candidate to count
        short_text_length: Strings shorter than this blend in bigram similarity
        word_weight: Weight of word-set similarity in the blend
        bigram_weight: Weight of bigram similarity in the blend
    """

    name = StrategyName.FUZZY_TEXT

    def __init__(
        self,
        threshold: float = SIMILARITY_THRESHOLD,
        short_text_length: int = SHORT_TEXT_LENGTH,
        word_weight: float = WORD_WEIGHT,
        bigram_weight: float = BIGRAM_WEIGHT,
    ):
        super().__init__()
        self.threshold = threshold
        self.short_text_length = short_text_length
        self.word_weight = word_weight
        self.bigram_weight = bigram_weight

    def can_handle(self, descriptor: ElementDescriptor) -> bool:
        return len(normalize_text(descriptor.text)) >= MIN_WORD_LENGTH

    async def _elements(self, dom: DOMProvider, tag: Optional[str]) -> list[Any]:
        if tag:
            return await dom.all_elements(tag)
        elements = await dom.query_all(",".join(sorted(PRIORITY_TAGS)))
        if not elements:
            elements = await dom.all_elements()
        return elements

    async def candidates(self, descriptor: ElementDescriptor, dom: DOMProvider, tag: Optional[str] = None):
        found = []
        for element in await self._elements(dom, tag):
            style = await dom.style(element)
            if style.display == "none" or style.visibility == "hidden":
                continue
            text = await dom.visible_text(element)
            if len(text) < MIN_WORD_LENGTH:
                continue
            comparison = compare_text(
                descriptor.text,
                text,
                threshold=self.threshold,
                short_text_length=self.short_text_length,
                word_weight=self.word_weight,
                bigram_weight=self.bigram_weight,
            )
            if comparison.is_match:
                element_tag = await dom.tag_name(element)
                found.append(
                    TextCandidate(element, text, element_tag, comparison.score, element_tag in PRIORITY_TAGS)
                )
        return sorted(found, key=cmp_to_key(_by_similarity))

    async def score_candidate(self, candidate: TextCandidate, descriptor: ElementDescriptor, dom: DOMProvider) -> float:
        score = candidate.similarity * 0.6
        if descriptor.tag and candidate.tag == descriptor.tag:
            score += 0.15
        if candidate.is_priority_tag:
            score += 0.05

        if descriptor.bounding:
            rect = await dom.bounding_rect(candidate.element)
            distance = point_distance(rect.x, rect.y, descriptor.bounding.x, descriptor.bounding.y)
            if distance < 50:
                score += 0.15
            elif distance < 100:
                score += 0.10
            elif distance < 200:
                score += 0.05

        if descriptor.classes:
            element_classes = set(await dom.class_list(candidate.element))
            overlap = sum(1 for c in descriptor.classes if c in element_classes)
            if overlap:
                score += min(0.1, overlap * 0.03)

        return min(1.0, score)

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        candidates = await self.candidates(descriptor, dom, descriptor.tag or None)
        if not candidates and descriptor.tag:
            candidates = await self.candidates(descriptor, dom)
        if not candidates:
            return StrategyOutcome.miss(reason="no elements with matching text")

        for candidate in candidates:
            candidate.score = await self.score_candidate(candidate, descriptor, dom)
        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)

        best = ranked[0]
        is_ambiguous = len(ranked) > 1 and abs(best.score - ranked[1].score) < AMBIGUITY_MARGIN
        confidence = fuzzy_confidence(
            best.similarity,
            len(ranked),
            is_ambiguous,
            best.is_priority_tag,
            base=self.base_confidence,
            threshold=self.threshold,
        )
        return StrategyOutcome(
            best.element,
            confidence,
            metadata={
                "similarity": round(best.similarity, 4),
                "candidate_count": len(ranked),
                "is_ambiguous": is_ambiguous,
                "is_priority_tag": best.is_priority_tag,
                "matched_text": best.text[:100],
            },
        )
