"""Static DOM provider backed by lxml.

A ``SnapshotDOM`` answers the same queries as a live page from either:
- plain HTML plus a layout map (``css selector -> BoundingBox``), or
- a JSON tree captured from a real page by ``CAPTURE_SNAPSHOT_JS``.

Declarative shadow roots (``<template shadowrootmode="open">``) act as
shadow boundaries: their content is invisible to document-level queries and
reachable only through ``scoped(shadow_hosts=...)``. Embedded frames are
separate ``SnapshotDOM`` instances listed in the document order of their
``iframe``/``frame`` elements.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import lxml.html
import structlog
from cssselect import ExpressionError, HTMLTranslator, SelectorError
from lxml import etree

from ..errors import DOMQueryError
from ..geometry import BoundingBox
from .provider import SKIP_TEXT_TAGS, DOMProvider, Element, ElementStyle

logger = structlog.get_logger(__name__)

DEFAULT_RECT = BoundingBox(0, 0, 100, 20)

# Elements that never produce a layout box.
NON_RENDERED_TAGS = frozenset(
    {"head", "script", "style", "meta", "link", "title", "template", "noscript", "base"}
)

_translator = HTMLTranslator()


def _parse_inline_style(value: Optional[str]) -> dict[str, str]:
    props: dict[str, str] = {}
    if not value:
        return props
    for declaration in value.split(";"):
        if ":" not in declaration:
            continue
        name, _, prop_value = declaration.partition(":")
        prop_value = prop_value.replace("!important", "").strip().lower()
        props[name.strip().lower()] = prop_value
    return props


def _is_shadow_root(element: Element) -> bool:
    return element.tag == "template" and element.get("shadowrootmode") is not None


def _css_to_xpath(selector: str, prefix: str) -> str:
    try:
        return _translator.css_to_xpath(selector, prefix=prefix)
    except (SelectorError, ExpressionError) as e:
        raise DOMQueryError(f"Invalid selector {selector!r}: {e}", query=selector) from e


@dataclass
class _SnapshotState:
    """Per-document data shared by every scope of that document."""

    document: Any
    default_rect: BoundingBox = DEFAULT_RECT
    rects: dict = field(default_factory=dict)
    styles: dict = field(default_factory=dict)
    values: dict = field(default_factory=dict)
    frames: list = field(default_factory=list)
    captured: bool = False


class SnapshotDOM(DOMProvider):
    """DOM provider over an lxml tree.

    Example:
        dom = SnapshotDOM.from_html(
            "<html><body><button id='go'>Go</button></body></html>",
            layout={"#go": BoundingBox(10, 10, 80, 30)},
        )
        [button] = await dom.query_all("#go")
    """

    def __init__(self, state: _SnapshotState, root: Optional[Element] = None):
        self._state = state
        self._root = state.document if root is None else root
        self._is_document = self._root is state.document
        self.log = logger.bind(component="snapshot_dom")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_html(
        cls,
        html: str,
        layout: Optional[Mapping[str, BoundingBox]] = None,
        default_rect: BoundingBox = DEFAULT_RECT,
        frames: Optional[Sequence["SnapshotDOM"]] = None,
    ) -> "SnapshotDOM":
        """Parse HTML and apply a layout map.

        Every element matched by a layout selector gets that rectangle
        (later entries win). Other rendered elements get ``default_rect``.
        """
        document = lxml.html.document_fromstring(html)
        state = _SnapshotState(document=document, default_rect=default_rect, frames=list(frames or []))

        for selector, rect in (layout or {}).items():
            xpath = _css_to_xpath(selector, "descendant-or-self::")
            for element in document.xpath(xpath):
                state.rects[element] = rect

        return cls(state)

    @classmethod
    def from_capture(cls, payload: Mapping[str, Any]) -> "SnapshotDOM":
        """Build from the JSON tree produced by ``CAPTURE_SNAPSHOT_JS``."""
        state = _SnapshotState(document=None, default_rect=BoundingBox(), captured=True)
        state.document = cls._build_node(payload, state)
        return cls(state)

    @classmethod
    def _build_node(cls, node: Mapping[str, Any], state: _SnapshotState) -> Element:
        element = lxml.html.html_parser.makeelement(node.get("tag", "div"))
        for name, value in (node.get("attributes") or {}).items():
            try:
                element.set(name, value)
            except (ValueError, TypeError):
                # Names like "@click" are valid in the DOM but not in XML.
                continue

        if node.get("rect") is not None:
            state.rects[element] = BoundingBox.from_dict(node["rect"])
        style = node.get("style")
        if style:
            state.styles[element] = ElementStyle(
                display=style.get("display", "block"),
                visibility=style.get("visibility", "visible"),
                opacity=str(style.get("opacity", "1")),
            )
        if node.get("value") is not None:
            state.values[element] = node["value"]

        if node.get("shadowChildren"):
            shadow = lxml.html.html_parser.makeelement("template", {"shadowrootmode": "open"})
            element.append(shadow)
            cls._append_children(shadow, node["shadowChildren"], state)

        cls._append_children(element, node.get("children") or [], state)

        if node.get("tag") in ("iframe", "frame"):
            frame = node.get("frame")
            state.frames.append(cls.from_capture(frame) if frame else None)

        return element

    @classmethod
    def _append_children(cls, parent: Element, children, state: _SnapshotState) -> None:
        for child in children:
            if "text" in child and "tag" not in child:
                last = parent[-1] if len(parent) else None
                if last is None:
                    parent.text = (parent.text or "") + child["text"]
                else:
                    last.tail = (last.tail or "") + child["text"]
                continue
            parent.append(cls._build_node(child, state))

    # ------------------------------------------------------------------
    # Scope handling
    # ------------------------------------------------------------------

    def _in_scope(self, element: Element) -> bool:
        if not isinstance(element.tag, str):
            return False
        if element is self._root:
            return self._is_document
        if _is_shadow_root(element):
            return False
        node = element.getparent()
        while node is not None:
            if node is self._root:
                return True
            if node.tag == "template":
                return False
            node = node.getparent()
        return False

    def _filter(self, elements) -> list[Element]:
        return [el for el in elements if isinstance(el, etree._Element) and self._in_scope(el)]

    async def scoped(
        self,
        iframe_chain: Optional[Sequence[int]] = None,
        shadow_hosts: Optional[Sequence[str]] = None,
    ) -> "SnapshotDOM":
        dom: SnapshotDOM = self
        for index in iframe_chain or ():
            frames = dom._state.frames
            if index < 0 or index >= len(frames):
                raise DOMQueryError(f"Frame index {index} out of range ({len(frames)} frames)")
            if frames[index] is None:
                raise DOMQueryError(f"Frame {index} is not accessible")
            dom = frames[index]

        for selector in shadow_hosts or ():
            host = await dom.query_one(selector)
            if host is None:
                raise DOMQueryError(f"Shadow host not found: {selector}", query=selector)
            shadow_root = next((child for child in host if _is_shadow_root(child)), None)
            if shadow_root is None:
                raise DOMQueryError(f"Element has no shadow root: {selector}", query=selector)
            dom = SnapshotDOM(dom._state, root=shadow_root)

        return dom

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_all(self, selector: str) -> list[Element]:
        prefix = "descendant-or-self::" if self._is_document else "descendant::"
        xpath = _css_to_xpath(selector, prefix)
        try:
            return self._filter(self._root.xpath(xpath))
        except etree.XPathError as e:
            raise DOMQueryError(f"Selector evaluation failed: {e}", query=selector) from e

    async def evaluate_xpath(self, expression: str, context: Optional[Element] = None) -> list[Element]:
        node = self._root if context is None else context
        try:
            result = node.xpath(expression)
        except etree.XPathError as e:
            raise DOMQueryError(f"Invalid XPath {expression!r}: {e}", query=expression) from e
        if not isinstance(result, list):
            return []
        return self._filter(result)

    async def all_elements(self, tag: Optional[str] = None) -> list[Element]:
        if tag:
            return self._filter(self._root.iter(tag.lower()))
        base = self._root
        if self._is_document:
            body = self._state.document.find("body")
            if body is not None:
                base = body
        return self._filter(el for el in base.iter() if el is not base)

    # ------------------------------------------------------------------
    # Element readers
    # ------------------------------------------------------------------

    def _collapsed(self, element: Element) -> bool:
        node = element
        while node is not None:
            if isinstance(node.tag, str) and not _is_shadow_root(node):
                if node.tag in NON_RENDERED_TAGS:
                    return True
                if node.get("hidden") is not None:
                    return True
                if _parse_inline_style(node.get("style")).get("display") == "none":
                    return True
            node = node.getparent()
        return False

    async def bounding_rect(self, element: Element) -> BoundingBox:
        if self._state.captured:
            return self._state.rects.get(element, BoundingBox())
        if self._collapsed(element):
            return BoundingBox()
        return self._state.rects.get(element, self._state.default_rect)

    async def style(self, element: Element) -> ElementStyle:
        if self._state.captured:
            return self._state.styles.get(element, ElementStyle())

        own = _parse_inline_style(element.get("style"))
        display = own.get("display", "block")
        if element.get("hidden") is not None:
            display = "none"

        visibility = own.get("visibility")
        node = element.getparent()
        while visibility is None and node is not None:
            if isinstance(node.tag, str):
                visibility = _parse_inline_style(node.get("style")).get("visibility")
            node = node.getparent()

        return ElementStyle(
            display=display,
            visibility=visibility or "visible",
            opacity=own.get("opacity", "1"),
        )

    async def attribute(self, element: Element, name: str) -> Optional[str]:
        return element.get(name)

    async def tag_name(self, element: Element) -> str:
        return element.tag.lower() if isinstance(element.tag, str) else ""

    async def property_value(self, element: Element) -> Optional[str]:
        if element in self._state.values:
            return self._state.values[element]
        return element.get("value")

    async def text_content(self, element: Element) -> str:
        return " ".join(self._rendered_text(element).split())

    def _rendered_text(self, element: Element) -> str:
        parts = [element.text or ""]
        for child in element:
            if isinstance(child.tag, str) and child.tag not in SKIP_TEXT_TAGS and not self._hidden(child):
                parts.append(" " if child.tag == "br" else self._rendered_text(child))
            parts.append(child.tail or "")
        return "".join(parts)

    def _hidden(self, element: Element) -> bool:
        if self._state.captured:
            return self._state.styles.get(element, ElementStyle()).display == "none"
        if element.get("hidden") is not None:
            return True
        return _parse_inline_style(element.get("style")).get("display") == "none"

    def to_html(self) -> str:
        return lxml.html.tostring(self._root, encoding="unicode")
