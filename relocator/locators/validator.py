"""Descriptor validation: structured issues for a recorded descriptor.

Checks run against the descriptor alone, without a DOM:

- errors: no core locator, malformed xpath or css, bad bounding box
- warnings: no id or name, no text-like field, volatile classes, missing
  tag, bounding box as the only core locator
- info: no data attributes, frame or shadow DOM context
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from cssselect import HTMLTranslator, SelectorError
from lxml import etree

from .models import StrategyName
from .selectors import is_stable_class

if TYPE_CHECKING:
    from .descriptor import ElementDescriptor


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCode(str, Enum):
    MISSING_LOCATOR = "missing_locator"
    INVALID_XPATH = "invalid_xpath"
    INVALID_CSS = "invalid_css"
    INVALID_BOUNDING = "invalid_bounding"
    MISSING_TAG = "missing_tag"
    NO_UNIQUE_ID = "no_unique_id"
    NO_TEXT_CONTENT = "no_text_content"
    DYNAMIC_CLASSES = "dynamic_classes"
    POSITIONAL_ONLY = "positional_only"
    NO_DATA_ATTRS = "no_data_attrs"
    IFRAME_CONTEXT = "iframe_context"
    SHADOW_DOM_CONTEXT = "shadow_dom_context"


@dataclass(frozen=True)
class ValidationIssue:
    severity: IssueSeverity
    code: IssueCode
    message: str
    attribute: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code.value,
            "message": self.message,
            "attribute": self.attribute,
        }


@dataclass
class ValidationReport:
    """Outcome of validating one descriptor."""

    issues: list[ValidationIssue] = field(default_factory=list)
    quality_score: int = 0
    available_strategies: list[StrategyName] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    @property
    def recommended_strategy(self) -> Optional[StrategyName]:
        return self.available_strategies[0] if self.available_strategies else None

    def codes(self) -> list[IssueCode]:
        return [i.code for i in self.issues]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "quality_score": self.quality_score,
            "issues": [i.to_dict() for i in self.issues],
            "available_strategies": [s.value for s in self.available_strategies],
            "recommended_strategy": self.recommended_strategy.value if self.recommended_strategy else None,
        }


_css_translator = HTMLTranslator()


def is_valid_xpath(expression: str) -> bool:
    try:
        etree.XPath(expression)
    except etree.XPathSyntaxError:
        return False
    return True


def is_valid_css(selector: str) -> bool:
    try:
        _css_translator.css_to_xpath(selector)
    except SelectorError:
        return False
    return True


def validate_descriptor(descriptor: "ElementDescriptor") -> ValidationReport:
    """Collect every issue with ``descriptor`` in severity order."""
    issues: list[ValidationIssue] = []

    def add(severity: IssueSeverity, code: IssueCode, message: str, attribute: Optional[str] = None) -> None:
        issues.append(ValidationIssue(severity, code, message, attribute))

    # Errors
    if not descriptor.is_viable():
        add(IssueSeverity.ERROR, IssueCode.MISSING_LOCATOR, "Descriptor has no xpath, id, name, css or bounding box")
    if descriptor.xpath and not is_valid_xpath(descriptor.xpath):
        add(IssueSeverity.ERROR, IssueCode.INVALID_XPATH, f"Invalid XPath: {descriptor.xpath}", "xpath")
    if descriptor.css and not is_valid_css(descriptor.css):
        add(IssueSeverity.ERROR, IssueCode.INVALID_CSS, f"Invalid CSS selector: {descriptor.css}", "css")
    bounding = descriptor.bounding
    if bounding is not None:
        finite = all(math.isfinite(v) for v in (bounding.x, bounding.y, bounding.width, bounding.height))
        if not finite or bounding.width < 0 or bounding.height < 0:
            add(IssueSeverity.ERROR, IssueCode.INVALID_BOUNDING, "Bounding box has invalid dimensions", "bounding")

    # Warnings
    if not descriptor.tag:
        add(IssueSeverity.WARNING, IssueCode.MISSING_TAG, "Descriptor has no tag name", "tag")
    if not descriptor.id and not descriptor.name:
        add(IssueSeverity.WARNING, IssueCode.NO_UNIQUE_ID, "Element has no id or name attribute")
    if not (descriptor.has_text or descriptor.placeholder or descriptor.aria):
        add(IssueSeverity.WARNING, IssueCode.NO_TEXT_CONTENT, "Element has no text, placeholder or aria label")
    volatile = [c for c in descriptor.classes if not is_stable_class(c)]
    if volatile:
        add(
            IssueSeverity.WARNING,
            IssueCode.DYNAMIC_CLASSES,
            f"Generated selectors skip volatile classes: {', '.join(volatile)}",
            "classes",
        )
    if bounding is not None and not (descriptor.xpath or descriptor.id or descriptor.name or descriptor.css):
        add(IssueSeverity.WARNING, IssueCode.POSITIONAL_ONLY, "Only the bounding box locates this element")

    # Info
    if not any(descriptor.data_attrs.values()):
        add(IssueSeverity.INFO, IssueCode.NO_DATA_ATTRS, "Element has no data attributes", "data_attrs")
    if descriptor.in_iframe:
        add(
            IssueSeverity.INFO,
            IssueCode.IFRAME_CONTEXT,
            f"Element is inside {len(descriptor.iframe_chain)} frame(s)",
            "iframe_chain",
        )
    if descriptor.in_shadow_dom:
        add(
            IssueSeverity.INFO,
            IssueCode.SHADOW_DOM_CONTEXT,
            f"Element is inside {len(descriptor.shadow_hosts)} shadow root(s)",
            "shadow_hosts",
        )

    return ValidationReport(
        issues=issues,
        quality_score=descriptor.quality_score(),
        available_strategies=descriptor.available_strategies(),
    )
