"""Run state machine: lifecycle, progress, timing, and change notifications.

Lifecycle transitions:

    idle --start--> running --pause--> paused
                      |  ^               |
                      |  +----resume-----+
                      |                  |
                      +--stop--> stopped <+ stop
                      +--complete--> completed
                      +--set_error--> error

    stopped / completed / error --reset--> idle

``start`` is also accepted from stopped, completed, and error, beginning a
fresh run. Calling it while running or paused raises
``InvalidTransitionError``; every other disallowed call returns False and
leaves the state untouched.

All mutators are synchronous and must be called from a single owner (one
asyncio task). Readers get frozen ``RunSnapshot`` copies.
"""

import time
from typing import Callable, Optional

import structlog

from ..errors import InvalidTransitionError
from .models import (
    ACTIVE_STATES,
    EventType,
    RunLifecycle,
    RunProgress,
    RunSnapshot,
    RunTiming,
    StateChangeEvent,
    StepResult,
    StepStatus,
    can_transition,
)

logger = structlog.get_logger()

StateChangeCallback = Callable[[StateChangeEvent], None]


def format_elapsed(ms: Optional[float]) -> str:
    """Format milliseconds as ``M:SS`` or ``H:MM:SS``."""
    total_seconds = int((ms or 0) // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_eta(ms: Optional[float]) -> str:
    """Human-readable remaining time estimate."""
    if ms is None:
        return "calculating..."
    if ms <= 0:
        return "done"
    seconds = int(round(ms / 1000))
    if seconds < 60:
        return f"~{max(seconds, 1)}s remaining"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"~{minutes}m {seconds}s remaining"
    hours, minutes = divmod(minutes, 60)
    return f"~{hours}h {minutes}m remaining"


class RunStateMachine:
    """Single-owner controller for one run's lifecycle and progress.

    Args:
        clock: Wall clock in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._subscribers: list[StateChangeCallback] = []
        self.log = logger.bind(component="state_machine")
        self._clear()

    def _clear(self) -> None:
        self._lifecycle = RunLifecycle.IDLE
        self._total_steps = 0
        self._current_step = 0
        self._passed = 0
        self._failed = 0
        self._skipped = 0
        self._results: list[StepResult] = []
        self._durations: list[int] = []
        self._error: Optional[str] = None
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._paused_ms = 0.0
        self._paused_at: Optional[float] = None
        self._percentage_override: Optional[int] = None

    def _now_ms(self) -> float:
        return self._clock() * 1000

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def lifecycle(self) -> RunLifecycle:
        return self._lifecycle

    @property
    def is_active(self) -> bool:
        return self._lifecycle in ACTIVE_STATES

    @property
    def is_paused(self) -> bool:
        return self._lifecycle == RunLifecycle.PAUSED

    @property
    def results(self) -> list[StepResult]:
        return list(self._results)

    @property
    def error(self) -> Optional[str]:
        return self._error

    def elapsed_ms(self) -> int:
        """Run time so far, excluding every paused interval."""
        if self._start_time is None:
            return 0
        now = self._now_ms()
        end = self._end_time if self._end_time is not None else now
        elapsed = end - self._start_time - self._paused_ms
        if self._paused_at is not None:
            elapsed -= now - self._paused_at
        return max(0, int(round(elapsed)))

    def _percentage(self) -> int:
        if self._percentage_override is not None:
            return self._percentage_override
        if self._total_steps == 0:
            return 0
        return round(100 * self._current_step / self._total_steps)

    def _average_step_ms(self) -> Optional[float]:
        if not self._durations:
            return None
        return sum(self._durations) / len(self._durations)

    def _estimated_remaining_ms(self) -> Optional[float]:
        remaining = max(0, self._total_steps - self._current_step)
        if remaining == 0:
            return 0.0
        average = self._average_step_ms()
        if average is None:
            return None
        return remaining * average

    def snapshot(self) -> RunSnapshot:
        paused_ms = self._paused_ms
        if self._paused_at is not None:
            paused_ms += self._now_ms() - self._paused_at
        return RunSnapshot(
            lifecycle=self._lifecycle,
            progress=RunProgress(
                current_step=self._current_step,
                total_steps=self._total_steps,
                percentage=self._percentage(),
                passed_steps=self._passed,
                failed_steps=self._failed,
                skipped_steps=self._skipped,
            ),
            timing=RunTiming(
                start_time=self._start_time,
                end_time=self._end_time,
                elapsed_ms=self.elapsed_ms(),
                paused_ms=int(round(paused_ms)),
                average_step_ms=self._average_step_ms(),
                estimated_remaining_ms=self._estimated_remaining_ms(),
            ),
            results=tuple(self._results),
            error=self._error,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: StateChangeCallback) -> Callable[[], None]:
        """Register ``callback`` for every change. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, event_type: EventType, previous: RunSnapshot) -> None:
        event = StateChangeEvent(
            type=event_type,
            previous=previous,
            current=self.snapshot(),
            timestamp=self._clock(),
        )
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                self.log.warning("State change subscriber failed", event_type=event_type.value, error=str(e))

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    def start(self, total_steps: int) -> bool:
        """Begin a fresh run of ``total_steps`` steps.

        Raises:
            InvalidTransitionError: If a run is already running or paused
        """
        if self.is_active:
            raise InvalidTransitionError(self._lifecycle.value, RunLifecycle.RUNNING.value)

        previous = self.snapshot()
        self._clear()
        self._total_steps = total_steps
        self._start_time = self._now_ms()
        self._lifecycle = RunLifecycle.RUNNING
        self.log.debug("Run started", total_steps=total_steps)
        self._emit(EventType.LIFECYCLE, previous)
        return True

    def _transition(self, target: RunLifecycle) -> Optional[RunSnapshot]:
        if not can_transition(self._lifecycle, target):
            self.log.debug("Transition rejected", current=self._lifecycle.value, target=target.value)
            return None
        previous = self.snapshot()
        self._lifecycle = target
        return previous

    def _end_pause(self) -> None:
        if self._paused_at is not None:
            self._paused_ms += self._now_ms() - self._paused_at
            self._paused_at = None

    def pause(self) -> bool:
        previous = self._transition(RunLifecycle.PAUSED)
        if previous is None:
            return False
        self._paused_at = self._now_ms()
        self._emit(EventType.LIFECYCLE, previous)
        return True

    def resume(self) -> bool:
        if self._lifecycle != RunLifecycle.PAUSED:
            return False
        previous = self._transition(RunLifecycle.RUNNING)
        self._end_pause()
        self._emit(EventType.LIFECYCLE, previous)
        return True

    def stop(self) -> bool:
        previous = self._transition(RunLifecycle.STOPPED)
        if previous is None:
            return False
        self._end_pause()
        self._end_time = self._now_ms()
        self._emit(EventType.LIFECYCLE, previous)
        return True

    def complete(self) -> bool:
        previous = self._transition(RunLifecycle.COMPLETED)
        if previous is None:
            return False
        self._end_time = self._now_ms()
        self._percentage_override = 100
        self._emit(EventType.LIFECYCLE, previous)
        return True

    def set_error(self, message: str) -> bool:
        previous = self._transition(RunLifecycle.ERROR)
        if previous is None:
            return False
        self._error = message
        self._end_time = self._now_ms()
        self._emit(EventType.ERROR, previous)
        return True

    def reset(self) -> bool:
        if not can_transition(self._lifecycle, RunLifecycle.IDLE):
            return False
        previous = self.snapshot()
        self._clear()
        self._emit(EventType.RESET, previous)
        return True

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def set_current_step(self, index: int) -> bool:
        if not self.is_active:
            return False
        previous = self.snapshot()
        self._current_step = index
        self._emit(EventType.PROGRESS, previous)
        return True

    def complete_step(self, result: StepResult) -> bool:
        if not self.is_active:
            return False
        previous = self.snapshot()
        self._results.append(result)
        if result.status == StepStatus.PASSED:
            self._passed += 1
        elif result.status == StepStatus.FAILED:
            self._failed += 1
        elif result.status == StepStatus.SKIPPED:
            self._skipped += 1
        self._durations.append(result.duration_ms)
        self._current_step += 1
        self._emit(EventType.STEP_COMPLETED, previous)
        return True

    def skip_step(self, step_id: str, reason: Optional[str] = None) -> bool:
        return self.complete_step(StepResult(step_id=step_id, status=StepStatus.SKIPPED, error=reason))

    def __repr__(self) -> str:
        snap = self.snapshot()
        return (
            f"RunStateMachine(lifecycle={snap.lifecycle.value}, "
            f"step={snap.progress.current_step}/{snap.progress.total_steps})"
        )
