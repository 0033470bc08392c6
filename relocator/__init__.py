"""relocator: find recorded UI elements again and replay steps against them.

Two layers:
- locators: a multi-strategy resolver that turns an ElementDescriptor into a
  live element with a confidence score
- execution: a pausable run state machine and run loop that resolves and acts
  on each step under a failure policy
"""

from .config import RelocatorSettings, get_preset, get_settings
from .errors import (
    DOMQueryError,
    EmptyRunError,
    ExecutionFailure,
    InvalidTransitionError,
    NotFoundError,
    RelocatorError,
    StrategyError,
)
from .execution import (
    ExecutionSummary,
    ReplayRunner,
    RunLifecycle,
    RunStateMachine,
    Step,
    StepResult,
    StepStatus,
)
from .geometry import BoundingBox
from .locators import ElementDescriptor, ElementResolver, FindOptions, MatchResult, StrategyName

__version__ = "0.1.0"

__all__ = [
    "ElementDescriptor",
    "BoundingBox",
    "ElementResolver",
    "FindOptions",
    "MatchResult",
    "StrategyName",
    "RunStateMachine",
    "RunLifecycle",
    "ReplayRunner",
    "Step",
    "StepResult",
    "StepStatus",
    "ExecutionSummary",
    "RelocatorSettings",
    "get_settings",
    "get_preset",
    "RelocatorError",
    "DOMQueryError",
    "StrategyError",
    "NotFoundError",
    "InvalidTransitionError",
    "ExecutionFailure",
    "EmptyRunError",
]
