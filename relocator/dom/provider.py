"""DOM query capability consumed by strategies and the resolver.

Implementations wrap a concrete document: a static lxml snapshot
(``SnapshotDOM``) or a live Playwright page (``PlaywrightDOM``). Element
references are opaque to callers and only meaningful to the provider that
returned them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..geometry import BoundingBox

# Elements whose text never counts as visible text.
SKIP_TEXT_TAGS = frozenset(
    {"script", "style", "noscript", "template", "iframe", "svg", "head", "meta", "link"}
)

Element = Any


@dataclass(frozen=True)
class ElementStyle:
    """The computed style properties that decide visibility."""

    display: str = "block"
    visibility: str = "visible"
    opacity: str = "1"

    @property
    def is_transparent(self) -> bool:
        try:
            return float(self.opacity) == 0
        except (TypeError, ValueError):
            return False


def is_visible(style: ElementStyle, rect: BoundingBox) -> bool:
    """Visible means rendered, not hidden, not fully transparent, and non-empty."""
    if style.display == "none":
        return False
    if style.visibility == "hidden":
        return False
    if style.is_transparent:
        return False
    return rect.width > 0 and rect.height > 0


class DOMProvider(ABC):
    """Abstract query interface over one document root.

    All query methods may raise ``DOMQueryError`` for malformed selectors or
    expressions. Everything is async so a live browser can back it.
    """

    @abstractmethod
    async def query_all(self, selector: str) -> list[Element]:
        """All elements matching a CSS selector, in document order."""

    async def query_one(self, selector: str) -> Optional[Element]:
        matches = await self.query_all(selector)
        return matches[0] if matches else None

    @abstractmethod
    async def evaluate_xpath(self, expression: str, context: Optional[Element] = None) -> list[Element]:
        """Element nodes selected by an XPath expression, in document order."""

    @abstractmethod
    async def all_elements(self, tag: Optional[str] = None) -> list[Element]:
        """Every element (under body when present) or every element of ``tag``."""

    @abstractmethod
    async def bounding_rect(self, element: Element) -> BoundingBox:
        """Viewport rectangle of an element. Unrendered elements are empty."""

    @abstractmethod
    async def style(self, element: Element) -> ElementStyle:
        """Computed display, visibility, and opacity."""

    @abstractmethod
    async def attribute(self, element: Element, name: str) -> Optional[str]:
        """Attribute value or None."""

    @abstractmethod
    async def tag_name(self, element: Element) -> str:
        """Lowercase tag name."""

    @abstractmethod
    async def text_content(self, element: Element) -> str:
        """Rendered text of an element (``innerText`` semantics)."""

    async def class_list(self, element: Element) -> list[str]:
        value = await self.attribute(element, "class")
        return value.split() if value else []

    async def property_value(self, element: Element) -> Optional[str]:
        """Current form value. Snapshots only know the ``value`` attribute."""
        return await self.attribute(element, "value")

    async def visible_text(self, element: Element) -> str:
        tag = await self.tag_name(element)
        if tag in SKIP_TEXT_TAGS:
            return ""
        if tag == "input":
            return (await self.property_value(element)) or (await self.attribute(element, "placeholder")) or ""
        if tag == "textarea":
            value = await self.property_value(element)
            if value is None:
                value = await self.text_content(element)
            return value or ""
        return await self.text_content(element)

    async def is_visible(self, element: Element) -> bool:
        return is_visible(await self.style(element), await self.bounding_rect(element))

    @abstractmethod
    async def scoped(
        self,
        iframe_chain: Optional[Sequence[int]] = None,
        shadow_hosts: Optional[Sequence[str]] = None,
    ) -> "DOMProvider":
        """Provider rooted inside the given frame chain then shadow host chain.

        ``iframe_chain`` lists frame indices (document order of
        ``iframe, frame``) from the top document down. ``shadow_hosts`` lists
        selectors, each resolved inside the previous host's shadow root.
        Raises ``DOMQueryError`` when a link cannot be resolved.
        """
