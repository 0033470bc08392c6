"""Exact-match strategies: one attribute-equality lookup, first match wins."""

from typing import Iterable

from ...dom.provider import DOMProvider
from ..descriptor import ElementDescriptor
from ..models import StrategyName, StrategyOutcome
from ..selectors import attribute_selector
from .base import LocatorStrategy

# Test-automation keys checked before any other data attribute.
PRIORITY_DATA_KEYS = ("testid", "test-id", "cy", "automation-id", "id")


class XPathStrategy(LocatorStrategy):
    name = StrategyName.XPATH

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        nodes = await dom.evaluate_xpath(descriptor.xpath)
        if not nodes:
            return StrategyOutcome.miss()
        return StrategyOutcome(nodes[0], self.base_confidence, metadata={"match_count": len(nodes)})


class _AttributeStrategy(LocatorStrategy):
    """Tries ``(attribute, value)`` pairs in order until one matches."""

    def candidates(self, descriptor: ElementDescriptor) -> Iterable[tuple[str, str]]:
        raise NotImplementedError

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        for attribute, value in self.candidates(descriptor):
            matches = await dom.query_all(attribute_selector(attribute, value))
            if matches:
                return StrategyOutcome(
                    matches[0],
                    self.base_confidence,
                    metadata={"attribute": attribute, "match_count": len(matches)},
                )
        return StrategyOutcome.miss()


class IdStrategy(_AttributeStrategy):
    name = StrategyName.ID

    def candidates(self, descriptor):
        yield "id", descriptor.id

    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        outcome = await super()._locate(descriptor, dom)
        if outcome.found:
            # Confirmation is informational; confidence stays at the base tier.
            confirmed = False
            if descriptor.name:
                confirmed = await dom.attribute(outcome.element, "name") == descriptor.name
            if not confirmed and descriptor.tag:
                confirmed = await dom.tag_name(outcome.element) == descriptor.tag
            outcome.metadata["confirmed"] = confirmed
        return outcome


class NameStrategy(_AttributeStrategy):
    name = StrategyName.NAME

    def candidates(self, descriptor):
        yield "name", descriptor.name


class AriaStrategy(_AttributeStrategy):
    name = StrategyName.ARIA

    def candidates(self, descriptor):
        for attribute in ("aria-label", "aria-labelledby", "aria-describedby"):
            yield attribute, descriptor.aria


class PlaceholderStrategy(_AttributeStrategy):
    name = StrategyName.PLACEHOLDER

    def candidates(self, descriptor):
        yield "placeholder", descriptor.placeholder


def data_attribute_name(key: str) -> str:
    return key if key.startswith("data-") else f"data-{key}"


class DataAttributeStrategy(_AttributeStrategy):
    name = StrategyName.DATA_ATTRIBUTES

    def candidates(self, descriptor):
        attrs = {data_attribute_name(k): v for k, v in descriptor.data_attrs.items() if v}
        ordered = [data_attribute_name(k) for k in PRIORITY_DATA_KEYS]
        ordered += [k for k in attrs if k not in ordered]
        for attribute in ordered:
            if attribute in attrs:
                yield attribute, str(attrs[attribute])
