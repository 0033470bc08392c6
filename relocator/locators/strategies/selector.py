"""Generated CSS selector strategy.

Builds several selector variants from the descriptor, counts matches for
each, and keeps the best one: unique first, then fewest matches, then
highest specificity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...dom.provider import DOMProvider
from ...errors import DOMQueryError
from ..descriptor import ElementDescriptor
from ..models import StrategyName, StrategyOutcome
from ..selectors import attribute_selector, css_escape, quote_attribute_value, specificity
from .base import LocatorStrategy

UNIQUE_BONUS = 0.15
ID_BONUS = 0.10
AMBIGUITY_PENALTY = 0.15
CLASS_ONLY_PENALTY = 0.05
TAG_ONLY_PENALTY = 0.20
MAX_SPECIFICITY_BONUS = 0.05


class SelectorType(str, Enum):
    RECORDED = "recorded"
    ID = "id"
    COMBINED = "combined"
    CLASS = "class"
    ATTRIBUTE = "attribute"
    TAG_ONLY = "tag-only"


@dataclass
class SelectorVariant:
    selector: str
    type: SelectorType
    specificity: int
    match_count: int = 0
    first_match: object = None

    @property
    def is_unique(self) -> bool:
        return self.match_count == 1


def build_combined_selector(descriptor: ElementDescriptor) -> str:
    parts = [descriptor.tag] if descriptor.tag else []
    if descriptor.id:
        parts.append(f"#{css_escape(descriptor.id)}")
        return "".join(parts)
    parts += [f".{css_escape(c)}" for c in descriptor.stable_classes]
    for attribute, value in (
        ("name", descriptor.name),
        ("placeholder", descriptor.placeholder),
        ("aria-label", descriptor.aria),
    ):
        if value:
            parts.append(f"[{attribute}={quote_attribute_value(value)}]")
    return "".join(parts)


def build_class_selector(descriptor: ElementDescriptor) -> str:
    classes = descriptor.stable_classes
    if not classes:
        return ""
    return descriptor.tag + "".join(f".{css_escape(c)}" for c in classes)


def selector_candidates(descriptor: ElementDescriptor) -> list[tuple[str, SelectorType]]:
    """Selector strings to test, in generation order."""
    candidates = []
    if descriptor.css:
        candidates.append((descriptor.css, SelectorType.RECORDED))
    if descriptor.id:
        candidates.append((f"{descriptor.tag}#{css_escape(descriptor.id)}", SelectorType.ID))
    combined = build_combined_selector(descriptor)
    if combined:
        candidates.append((combined, SelectorType.COMBINED))
    class_selector = build_class_selector(descriptor)
    if class_selector and class_selector != combined:
        candidates.append((class_selector, SelectorType.CLASS))
    if descriptor.name:
        candidates.append((attribute_selector("name", descriptor.name, descriptor.tag), SelectorType.ATTRIBUTE))
    if descriptor.placeholder:
        candidates.append(
            (attribute_selector("placeholder", descriptor.placeholder, descriptor.tag), SelectorType.ATTRIBUTE)
        )
    if descriptor.tag:
        candidates.append((descriptor.tag, SelectorType.TAG_ONLY))
    return candidates


def rank_variants(variants: list[SelectorVariant]) -> list[SelectorVariant]:
    return sorted(variants, key=lambda v: (not v.is_unique, v.match_count, -v.specificity))


def select_best_variant(variants: list[SelectorVariant]) -> Optional[SelectorVariant]:
    ranked = rank_variants(variants)
    for variant in ranked:
        if variant.is_unique:
            return variant
    return next((v for v in ranked if v.match_count > 0), None)


def selector_confidence(variant: SelectorVariant, base: float) -> float:
    confidence = base
    if variant.is_unique:
        confidence += UNIQUE_BONUS
    if variant.type == SelectorType.ID:
        confidence += ID_BONUS
    if variant.match_count > 1:
        confidence -= min(AMBIGUITY_PENALTY, AMBIGUITY_PENALTY * (variant.match_count - 1) * 0.5)
    if variant.type == SelectorType.CLASS:
        confidence -= CLASS_ONLY_PENALTY
    if variant.type == SelectorType.TAG_ONLY:
        confidence -= TAG_ONLY_PENALTY
    confidence += min(MAX_SPECIFICITY_BONUS, variant.specificity / 1000)
    return max(0.0, min(1.0, confidence))


class GeneratedSelectorStrategy(LocatorStrategy):
    name = StrategyName.CSS

    async def variants(self, descriptor: ElementDescriptor, dom: DOMProvider) -> list[SelectorVariant]:
        variants = []
        for selector, selector_type in selector_candidates(descriptor):
            variant = SelectorVariant(selector, selector_type, specificity(selector))
            try:
                matches = await dom.query_all(selector)
            except DOMQueryError as e:
                # A bad variant counts as zero matches; the others still apply.
                self.log.debug("Selector variant rejected", selector=selector, error=str(e))
                matches = []
            variant.match_count = len(matches)
            variant.first_match = matches[0] if matches else None
            variants.append(variant)
        return variants

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        variants = await self.variants(descriptor, dom)
        best = select_best_variant(variants)
        if best is None:
            return StrategyOutcome.miss(variants=len(variants))
        return StrategyOutcome(
            best.first_match,
            selector_confidence(best, self.base_confidence),
            metadata={
                "selector": best.selector,
                "selector_type": best.type.value,
                "match_count": best.match_count,
                "specificity": best.specificity,
                "variants": len(variants),
            },
        )
