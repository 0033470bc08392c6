"""Data models for element resolution.

- StrategyName: the nine matching strategies, in default priority order
- StrategyOutcome: what a single strategy attempt produced
- StrategyDiagnostic: why an attempt did not resolve the element
- FindOptions: per-call resolver configuration
- MatchResult: the outcome of one resolution call
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import NotFoundError, StrategyError


class StrategyName(str, Enum):
    """Element matching strategies."""

    XPATH = "xpath"
    ID = "id"
    NAME = "name"
    ARIA = "aria"
    PLACEHOLDER = "placeholder"
    DATA_ATTRIBUTES = "data_attributes"
    CSS = "css"
    FUZZY_TEXT = "fuzzy_text"
    BOUNDING_BOX = "bounding_box"


DEFAULT_STRATEGY_ORDER: tuple[StrategyName, ...] = tuple(StrategyName)

BASE_CONFIDENCE: dict[StrategyName, float] = {
    StrategyName.XPATH: 1.0,
    StrategyName.ID: 0.9,
    StrategyName.NAME: 0.8,
    StrategyName.ARIA: 0.75,
    StrategyName.PLACEHOLDER: 0.7,
    StrategyName.DATA_ATTRIBUTES: 0.65,
    StrategyName.CSS: 0.6,
    StrategyName.FUZZY_TEXT: 0.4,
    StrategyName.BOUNDING_BOX: 0.35,
}


class DiagnosticReason(str, Enum):
    """Why a strategy attempt was not accepted."""

    NO_MATCH = "no_match"
    ERROR = "error"
    NOT_VISIBLE = "not_visible"
    LOW_CONFIDENCE = "low_confidence"


@dataclass
class StrategyOutcome:
    """Result of one strategy attempt. Either ``element`` or ``error`` may be set."""

    element: Any = None
    confidence: float = 0.0
    error: Optional[StrategyError] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.element is not None

    @classmethod
    def miss(cls, **metadata) -> "StrategyOutcome":
        return cls(metadata=metadata)

    @classmethod
    def failed(cls, error: StrategyError) -> "StrategyOutcome":
        return cls(error=error)


@dataclass(frozen=True)
class StrategyDiagnostic:
    """Record of an attempted strategy that did not resolve the element."""

    strategy: StrategyName
    reason: DiagnosticReason
    detail: Optional[str] = None
    confidence: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason.value,
            "detail": self.detail,
            "confidence": self.confidence,
        }


@dataclass
class FindOptions:
    """Options for a single resolution call.

    Example:
        options = FindOptions(
            timeout_ms=5000,
            min_confidence=0.5,
            disabled_strategies=[StrategyName.BOUNDING_BOX],
        )
    """

    timeout_ms: int = 2000
    retry_interval_ms: int = 150
    max_retries: int = 13
    min_confidence: float = 0.0
    require_visible: bool = True
    strategy_order: Optional[list[StrategyName]] = None
    disabled_strategies: list[StrategyName] = field(default_factory=list)

    # Provider already rooted at the right frame/shadow boundary.
    # When None the resolver scopes by the descriptor's chains on every pass.
    scope: Any = None

    exponential_backoff: bool = False
    backoff_multiplier: float = 1.5
    max_backoff_delay_ms: int = 2000

    def ordered_strategies(self) -> list[StrategyName]:
        order = self.strategy_order or list(DEFAULT_STRATEGY_ORDER)
        disabled = {StrategyName(s) for s in self.disabled_strategies}
        seen: list[StrategyName] = []
        for name in order:
            name = StrategyName(name)
            if name not in disabled and name not in seen:
                seen.append(name)
        return seen

    def retry_delay_ms(self, retry: int) -> float:
        """Delay before pass ``retry + 1`` (``retry`` counts completed retries)."""
        if not self.exponential_backoff:
            return float(self.retry_interval_ms)
        delay = self.retry_interval_ms * (self.backoff_multiplier ** retry)
        return float(min(delay, self.max_backoff_delay_ms))


@dataclass
class MatchResult:
    """Outcome of one resolution call. Created fresh per call."""

    element: Any = None
    strategy: Optional[StrategyName] = None
    confidence: float = 0.0
    duration_ms: int = 0
    retries: int = 0
    attempted: list[StrategyName] = field(default_factory=list)
    diagnostics: list[StrategyDiagnostic] = field(default_factory=list)
    message: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.element is not None

    def raise_for_element(self) -> Any:
        """Return the element, raising ``NotFoundError`` for a null match."""
        if self.element is None:
            raise NotFoundError(self)
        return self.element

    def to_dict(self) -> dict[str, Any]:
        """Serializable view. The element reference itself is omitted."""
        return {
            "found": self.found,
            "strategy": self.strategy.value if self.strategy else None,
            "confidence": round(self.confidence, 4),
            "duration_ms": self.duration_ms,
            "retries": self.retries,
            "attempted": [s.value for s in self.attempted],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "message": self.message,
            "metadata": self.metadata,
        }
