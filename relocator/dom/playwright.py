"""Live DOM provider over a Playwright page.

Elements are Playwright ``ElementHandle`` objects. CSS queries pierce open
shadow roots (Playwright's default CSS engine); XPath does not.
"""

from typing import Any, Optional, Sequence, Union

import structlog
from playwright.async_api import ElementHandle, Frame, Page
from playwright.async_api import Error as PlaywrightError

from ..errors import DOMQueryError
from ..geometry import BoundingBox
from .provider import DOMProvider, ElementStyle
from .snapshot import SnapshotDOM

logger = structlog.get_logger(__name__)

Root = Union[Page, Frame, ElementHandle]

_STYLE_JS = """
(el) => {
    const s = window.getComputedStyle(el);
    return { display: s.display, visibility: s.visibility, opacity: s.opacity };
}
"""

_TEXT_JS = "(el) => (el.innerText ?? el.textContent ?? '')"
_VALUE_JS = "(el) => ('value' in el ? String(el.value) : null)"
_TAG_JS = "(el) => el.tagName.toLowerCase()"
_HAS_SHADOW_JS = "(el) => !!el.shadowRoot"

# Serializes the document (and same-origin frames) into the tree consumed by
# SnapshotDOM.from_capture. Rects and computed styles are read in the page.
CAPTURE_SNAPSHOT_JS = """
() => {
    const serialize = (el) => {
        const node = { tag: el.tagName.toLowerCase() };

        const attrs = {};
        for (const attr of el.attributes || []) {
            attrs[attr.name] = attr.value;
        }
        node.attributes = attrs;

        const r = el.getBoundingClientRect();
        node.rect = { x: r.x, y: r.y, width: r.width, height: r.height };

        const s = window.getComputedStyle(el);
        node.style = { display: s.display, visibility: s.visibility, opacity: s.opacity };

        if ('value' in el && typeof el.value === 'string') {
            node.value = el.value;
        }

        const children = [];
        if (node.tag !== 'script' && node.tag !== 'style') {
            for (const child of el.childNodes) {
                if (child.nodeType === Node.ELEMENT_NODE) {
                    children.push(serialize(child));
                } else if (child.nodeType === Node.TEXT_NODE && child.textContent) {
                    children.push({ text: child.textContent.substring(0, 1000) });
                }
            }
        }
        node.children = children;

        if (el.shadowRoot) {
            node.shadowChildren = Array.from(el.shadowRoot.children).map(serialize);
        }

        if (node.tag === 'iframe' || node.tag === 'frame') {
            try {
                const doc = el.contentDocument;
                node.frame = doc && doc.documentElement ? serialize(doc.documentElement) : null;
            } catch (e) {
                node.frame = null;  // cross-origin
            }
        }
        return node;
    };
    return serialize(document.documentElement);
}
"""


class PlaywrightDOM(DOMProvider):
    """DOM provider for a live Playwright page, frame, or shadow host."""

    def __init__(self, root: Root, is_shadow_host: bool = False):
        self._root = root
        self._is_shadow_host = is_shadow_host
        self.log = logger.bind(component="playwright_dom")

    async def _handles(self, selector: str) -> list[ElementHandle]:
        try:
            return await self._root.query_selector_all(selector)
        except PlaywrightError as e:
            raise DOMQueryError(f"Query failed for {selector!r}: {e.message}", query=selector) from e

    async def _evaluate(self, element: ElementHandle, script: str) -> Any:
        try:
            return await element.evaluate(script)
        except PlaywrightError as e:
            raise DOMQueryError(f"Element evaluation failed: {e.message}") from e

    async def scoped(
        self,
        iframe_chain: Optional[Sequence[int]] = None,
        shadow_hosts: Optional[Sequence[str]] = None,
    ) -> "PlaywrightDOM":
        dom: PlaywrightDOM = self
        for index in iframe_chain or ():
            frames = await dom._handles("iframe, frame")
            if index < 0 or index >= len(frames):
                raise DOMQueryError(f"Frame index {index} out of range ({len(frames)} frames)")
            frame = await frames[index].content_frame()
            if frame is None:
                raise DOMQueryError(f"Frame {index} is not accessible")
            dom = PlaywrightDOM(frame)

        for selector in shadow_hosts or ():
            host = await dom.query_one(selector)
            if host is None:
                raise DOMQueryError(f"Shadow host not found: {selector}", query=selector)
            if not await dom._evaluate(host, _HAS_SHADOW_JS):
                raise DOMQueryError(f"Element has no shadow root: {selector}", query=selector)
            dom = PlaywrightDOM(host, is_shadow_host=True)

        return dom

    async def query_all(self, selector: str) -> list[ElementHandle]:
        return await self._handles(selector)

    async def evaluate_xpath(self, expression: str, context: Optional[ElementHandle] = None) -> list[ElementHandle]:
        root = self._root if context is None else context
        try:
            return await root.query_selector_all(f"xpath={expression}")
        except PlaywrightError as e:
            raise DOMQueryError(f"Invalid XPath {expression!r}: {e.message}", query=expression) from e

    async def all_elements(self, tag: Optional[str] = None) -> list[ElementHandle]:
        if tag:
            return await self._handles(tag)
        return await self._handles("*" if self._is_shadow_host else "body *")

    async def bounding_rect(self, element: ElementHandle) -> BoundingBox:
        try:
            box = await element.bounding_box()
        except PlaywrightError as e:
            raise DOMQueryError(f"Could not measure element: {e.message}") from e
        return BoundingBox.from_dict(box) or BoundingBox()

    async def style(self, element: ElementHandle) -> ElementStyle:
        s = await self._evaluate(element, _STYLE_JS)
        return ElementStyle(display=s["display"], visibility=s["visibility"], opacity=str(s["opacity"]))

    async def attribute(self, element: ElementHandle, name: str) -> Optional[str]:
        try:
            return await element.get_attribute(name)
        except PlaywrightError as e:
            raise DOMQueryError(f"Could not read attribute {name}: {e.message}") from e

    async def tag_name(self, element: ElementHandle) -> str:
        return await self._evaluate(element, _TAG_JS)

    async def text_content(self, element: ElementHandle) -> str:
        return await self._evaluate(element, _TEXT_JS) or ""

    async def property_value(self, element: ElementHandle) -> Optional[str]:
        return await self._evaluate(element, _VALUE_JS)


async def capture_snapshot(page: Page) -> SnapshotDOM:
    """Capture the page (including same-origin frames) as a ``SnapshotDOM``.

    Args:
        page: Playwright page instance

    Returns:
        Snapshot with the page's real geometry and computed styles
    """
    payload = await page.evaluate(CAPTURE_SNAPSHOT_JS)
    logger.debug("DOM snapshot captured", url=page.url)
    return SnapshotDOM.from_capture(payload)
