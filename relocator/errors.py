"""Error taxonomy for element relocation and run execution.

Low-level DOM and strategy errors are recovered locally by the resolver.
Only structural misuse (starting an active run, running an empty step list)
is raised to callers.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .locators.models import MatchResult


class RelocatorError(Exception):
    """Base class for all relocator errors."""


class DOMQueryError(RelocatorError):
    """A DOM provider could not evaluate a query (bad selector, stale handle)."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class StrategyError(RelocatorError):
    """A single strategy failed while querying the document."""

    def __init__(self, strategy: str, message: str):
        super().__init__(f"{strategy}: {message}")
        self.strategy = strategy
        self.message = message

    def to_dict(self) -> dict:
        return {"strategy": self.strategy, "message": self.message}


class NotFoundError(RelocatorError):
    """All strategies and retries were exhausted without a match."""

    def __init__(self, result: "MatchResult"):
        super().__init__(result.message or "Element not found")
        self.result = result


class InvalidTransitionError(RelocatorError):
    """A lifecycle transition was requested that the state table forbids."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition from {current} to {target}")
        self.current = current
        self.target = target


class ExecutionFailure(RelocatorError):
    """A step failed to resolve its element or to perform its action."""

    def __init__(self, step_id: str, message: str, not_found: bool = False):
        super().__init__(message)
        self.step_id = step_id
        self.message = message
        self.not_found = not_found


class EmptyRunError(RelocatorError, ValueError):
    """A run was started with no steps."""
