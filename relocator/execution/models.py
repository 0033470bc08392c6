"""Data models for replay execution.

- RunLifecycle: the run state machine's states and legal transitions
- Step: one relocate-then-act unit of a run
- StepResult: the recorded outcome of a step
- RunProgress / RunTiming / RunSnapshot: frozen views of run state
- StateChangeEvent: what subscribers receive on every mutation
- ExecutionSummary: the final report of a run
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..locators.descriptor import ElementDescriptor


class RunLifecycle(str, Enum):
    """Lifecycle states of a run."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"
    ERROR = "error"


VALID_TRANSITIONS: dict[RunLifecycle, frozenset[RunLifecycle]] = {
    RunLifecycle.IDLE: frozenset({RunLifecycle.RUNNING}),
    RunLifecycle.RUNNING: frozenset(
        {RunLifecycle.PAUSED, RunLifecycle.STOPPED, RunLifecycle.COMPLETED, RunLifecycle.ERROR}
    ),
    RunLifecycle.PAUSED: frozenset({RunLifecycle.RUNNING, RunLifecycle.STOPPED}),
    RunLifecycle.STOPPED: frozenset({RunLifecycle.IDLE}),
    RunLifecycle.COMPLETED: frozenset({RunLifecycle.IDLE}),
    RunLifecycle.ERROR: frozenset({RunLifecycle.IDLE}),
}

ACTIVE_STATES = frozenset({RunLifecycle.RUNNING, RunLifecycle.PAUSED})
TERMINAL_STATES = frozenset({RunLifecycle.STOPPED, RunLifecycle.COMPLETED, RunLifecycle.ERROR})


def can_transition(current: RunLifecycle, target: RunLifecycle) -> bool:
    return target in VALID_TRANSITIONS[current]


class StepStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StopReason(str, Enum):
    """Why a run ended."""

    COMPLETED = "completed"
    STEP_FAILED = "step_failed"
    CONSECUTIVE_FAILURES = "consecutive_failures"
    STOPPED = "stopped"


class EventType(str, Enum):
    LIFECYCLE = "lifecycle"
    PROGRESS = "progress"
    STEP_COMPLETED = "step_completed"
    ERROR = "error"
    RESET = "reset"


@dataclass(frozen=True)
class Step:
    """A recorded step: find the element described, then perform ``action``.

    Example:
        step = Step(
            id="login-submit",
            descriptor=ElementDescriptor(tag="button", id="submit"),
            action="click",
        )
    """

    id: str
    descriptor: ElementDescriptor
    action: str = "click"
    value: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            id=str(data["id"]),
            descriptor=ElementDescriptor.from_dict(data.get("descriptor") or data.get("bundle") or {}),
            action=data.get("action", "click"),
            value=data.get("value"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step. Appended to the run, never mutated."""

    step_id: str
    status: StepStatus
    duration_ms: int = 0
    error: Optional[str] = None
    strategy: Optional[str] = None
    confidence: Optional[float] = None
    step_index: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == StepStatus.PASSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_index": self.step_index,
            "status": self.status.value,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "strategy": self.strategy,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class RunProgress:
    current_step: int = 0
    total_steps: int = 0
    percentage: int = 0
    passed_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0

    @property
    def remaining_steps(self) -> int:
        return max(0, self.total_steps - self.current_step)


@dataclass(frozen=True)
class RunTiming:
    """Timing in milliseconds. ``elapsed_ms`` excludes paused time."""

    start_time: Optional[float] = None
    end_time: Optional[float] = None
    elapsed_ms: int = 0
    paused_ms: int = 0
    average_step_ms: Optional[float] = None
    estimated_remaining_ms: Optional[float] = None


@dataclass(frozen=True)
class RunSnapshot:
    """A read-only copy of the run state."""

    lifecycle: RunLifecycle = RunLifecycle.IDLE
    progress: RunProgress = field(default_factory=RunProgress)
    timing: RunTiming = field(default_factory=RunTiming)
    results: tuple[StepResult, ...] = ()
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle in ACTIVE_STATES

    def to_dict(self) -> dict[str, Any]:
        return {
            "lifecycle": self.lifecycle.value,
            "progress": {
                "current_step": self.progress.current_step,
                "total_steps": self.progress.total_steps,
                "percentage": self.progress.percentage,
                "passed_steps": self.progress.passed_steps,
                "failed_steps": self.progress.failed_steps,
                "skipped_steps": self.progress.skipped_steps,
                "remaining_steps": self.progress.remaining_steps,
            },
            "timing": {
                "elapsed_ms": self.timing.elapsed_ms,
                "paused_ms": self.timing.paused_ms,
                "average_step_ms": self.timing.average_step_ms,
                "estimated_remaining_ms": self.timing.estimated_remaining_ms,
            },
            "results": [r.to_dict() for r in self.results],
            "error": self.error,
        }


@dataclass(frozen=True)
class StateChangeEvent:
    type: EventType
    previous: RunSnapshot
    current: RunSnapshot
    timestamp: float


@dataclass
class RunOptions:
    """Failure policy and pacing for a run."""

    continue_on_failure: bool = False
    max_consecutive_failures: int = 0  # 0 disables the ceiling
    step_delay_ms: int = 0
    human_delay_ms: Optional[tuple[int, int]] = None
    skip_on_not_found: bool = False


@dataclass
class ExecutionSummary:
    """Final report of a run."""

    total_steps: int
    passed_steps: int
    failed_steps: int
    skipped_steps: int
    duration_ms: int
    results: list[StepResult]
    stop_reason: StopReason
    lifecycle: RunLifecycle
    stopped_early: bool = False
    stopped_at_step: Optional[int] = None
    first_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failed_steps == 0 and not self.stopped_early

    @property
    def average_step_ms(self) -> float:
        if not self.results:
            return 0.0
        return sum(r.duration_ms for r in self.results) / len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_steps": self.total_steps,
            "passed_steps": self.passed_steps,
            "failed_steps": self.failed_steps,
            "skipped_steps": self.skipped_steps,
            "duration_ms": self.duration_ms,
            "average_step_ms": round(self.average_step_ms, 1),
            "stop_reason": self.stop_reason.value,
            "lifecycle": self.lifecycle.value,
            "stopped_early": self.stopped_early,
            "stopped_at_step": self.stopped_at_step,
            "first_error": self.first_error,
            "results": [r.to_dict() for r in self.results],
        }
