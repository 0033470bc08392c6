"""Element descriptor: the recorded identity of a UI element.

A descriptor is captured once at record time and never mutated afterwards.
Helpers return new descriptors instead of changing fields in place.
"""

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..geometry import BoundingBox
from .models import DEFAULT_STRATEGY_ORDER, StrategyName
from .selectors import stable_classes
from .validator import ValidationReport, validate_descriptor

MIN_BOUNDING_SIZE = 5
MIN_BOUNDING_COORDINATE = -1000

# Weights for quality_score, summing to 100.
QUALITY_WEIGHTS = {
    "xpath": 25,
    "id": 20,
    "name": 15,
    "aria": 10,
    "placeholder": 10,
    "data_attrs": 8,
    "css": 7,
    "bounding": 5,
}

# Recording format (camelCase) to attribute names.
_WIRE_KEYS = {
    "dataAttrs": "data_attrs",
    "pageUrl": "page_url",
    "iframeChain": "iframe_chain",
    "shadowHosts": "shadow_hosts",
}


@dataclass(frozen=True)
class ElementDescriptor:
    """Identifying attributes of a recorded element.

    All fields may be empty. A descriptor is viable when at least one of
    xpath, id, name, css or bounding is present.

    Descriptors are hashable. ``data_attrs`` is a read-only mapping and
    takes part in equality but not in the hash.
    """

    tag: str = ""
    id: str = ""
    name: str = ""
    placeholder: str = ""
    aria: str = ""
    data_attrs: Mapping[str, str] = field(default_factory=dict, hash=False)
    text: str = ""
    css: str = ""
    xpath: str = ""
    classes: tuple[str, ...] = ()
    page_url: str = ""
    bounding: Optional[BoundingBox] = None
    iframe_chain: Optional[tuple[int, ...]] = None
    shadow_hosts: Optional[tuple[str, ...]] = None

    def __post_init__(self):
        # Normalize container types so callers can pass lists and dicts freely.
        object.__setattr__(self, "tag", (self.tag or "").lower())
        object.__setattr__(self, "data_attrs", MappingProxyType(dict(self.data_attrs or {})))
        object.__setattr__(self, "classes", tuple(c for c in (self.classes or ()) if c))
        if isinstance(self.bounding, dict):
            object.__setattr__(self, "bounding", BoundingBox.from_dict(self.bounding))
        if self.iframe_chain is not None:
            object.__setattr__(self, "iframe_chain", tuple(int(i) for i in self.iframe_chain))
        if self.shadow_hosts is not None:
            object.__setattr__(self, "shadow_hosts", tuple(self.shadow_hosts))

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    @property
    def has_valid_bounding(self) -> bool:
        b = self.bounding
        if b is None:
            return False
        if b.width < MIN_BOUNDING_SIZE or b.height < MIN_BOUNDING_SIZE:
            return False
        return b.x >= MIN_BOUNDING_COORDINATE and b.y >= MIN_BOUNDING_COORDINATE

    @property
    def stable_classes(self) -> list[str]:
        return stable_classes(self.classes)

    @property
    def in_iframe(self) -> bool:
        return bool(self.iframe_chain)

    @property
    def in_shadow_dom(self) -> bool:
        return bool(self.shadow_hosts)

    def is_viable(self) -> bool:
        return bool(self.xpath or self.id or self.name or self.css or self.bounding)

    def can_use(self, strategy: StrategyName) -> bool:
        """Whether ``strategy`` has enough recorded data to attempt a lookup."""
        strategy = StrategyName(strategy)
        if strategy == StrategyName.XPATH:
            return bool(self.xpath)
        if strategy == StrategyName.ID:
            return bool(self.id)
        if strategy == StrategyName.NAME:
            return bool(self.name)
        if strategy == StrategyName.ARIA:
            return bool(self.aria)
        if strategy == StrategyName.PLACEHOLDER:
            return bool(self.placeholder)
        if strategy == StrategyName.DATA_ATTRIBUTES:
            return any(v for v in self.data_attrs.values())
        if strategy == StrategyName.CSS:
            return bool(
                self.css
                or self.id
                or self.tag
                or self.stable_classes
                or self.name
                or self.placeholder
                or self.aria
            )
        if strategy == StrategyName.FUZZY_TEXT:
            return self.has_text
        return self.has_valid_bounding

    def available_strategies(self) -> list[StrategyName]:
        """Strategies that can be attempted for this descriptor, in priority order."""
        return [s for s in DEFAULT_STRATEGY_ORDER if self.can_use(s)]

    def validate(self) -> ValidationReport:
        """Structured issues with this descriptor, most severe first."""
        return validate_descriptor(self)

    def quality_score(self) -> int:
        """Score 0-100 of how well this descriptor can be relocated."""
        score = 0
        for key, weight in QUALITY_WEIGHTS.items():
            if getattr(self, key):
                score += weight
        return score

    def merge(self, other: "ElementDescriptor") -> "ElementDescriptor":
        """Return a new descriptor preferring non-empty values from ``other``."""
        updates = {}
        for f in fields(self):
            value = getattr(other, f.name)
            if value:
                updates[f.name] = value
        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["data_attrs"] = dict(self.data_attrs)
        data["classes"] = list(self.classes)
        data["bounding"] = self.bounding.to_dict() if self.bounding else None
        data["iframe_chain"] = list(self.iframe_chain) if self.iframe_chain is not None else None
        data["shadow_hosts"] = list(self.shadow_hosts) if self.shadow_hosts is not None else None
        reverse = {v: k for k, v in _WIRE_KEYS.items()}
        return {reverse.get(k, k): v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ElementDescriptor":
        """Build from a recorded payload (camelCase or snake_case keys)."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            key = _WIRE_KEYS.get(key, key)
            if key in known and value is not None:
                kwargs[key] = value
        if "bounding" in kwargs:
            kwargs["bounding"] = BoundingBox.from_dict(kwargs["bounding"])
        for key in ("tag", "id", "name", "placeholder", "aria", "text", "css", "xpath", "page_url"):
            if key in kwargs:
                kwargs[key] = str(kwargs[key])
        return cls(**kwargs)
