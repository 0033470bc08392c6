"""Replay run loop.

Drives a list of steps through the resolver and an external action
primitive, under the control of a ``RunStateMachine``:

    for each step:
        checkpoint (wait while paused, leave if stopped)
        resolve element  ->  perform action  ->  complete_step
        apply failure policy
        inter-step delay

Stop is cooperative: an in-flight resolution or action finishes, and the
run ends at the next checkpoint.
"""

import asyncio
import random
import time
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

import structlog

from ..dom.provider import DOMProvider
from ..errors import EmptyRunError, ExecutionFailure, InvalidTransitionError
from ..locators.models import FindOptions, MatchResult
from ..locators.resolver import ElementResolver
from ..utils.logging import LogContext, RunLogger
from .models import (
    ExecutionSummary,
    RunLifecycle,
    RunOptions,
    StateChangeEvent,
    Step,
    StepResult,
    StepStatus,
    StopReason,
)
from .state_machine import RunStateMachine

if TYPE_CHECKING:
    from ..config import RelocatorSettings

logger = structlog.get_logger()

# Performs the interaction on a resolved element. Returning False or raising
# marks the step failed; any other return value counts as success.
ActionPrimitive = Callable[[Step, Any, DOMProvider], Awaitable[Optional[bool]]]


class ReplayRunner:
    """Execute steps with pause/resume/stop and a failure policy.

    Example:
        runner = ReplayRunner(ElementResolver(), perform_action)
        summary = await runner.run(steps, PlaywrightDOM(page))
        if not summary.success:
            print(summary.first_error)
    """

    def __init__(
        self,
        resolver: ElementResolver,
        action: ActionPrimitive,
        options: Optional[RunOptions] = None,
        find_options: Optional[FindOptions] = None,
        state: Optional[RunStateMachine] = None,
        rng: Optional[random.Random] = None,
    ):
        self.resolver = resolver
        self.action = action
        self.options = options or RunOptions()
        self.find_options = find_options
        self.state = state or RunStateMachine()
        self._rng = rng or random.Random()
        self._resume = asyncio.Event()
        self._resume.set()
        self.state.subscribe(self._on_state_change)
        self.log = logger.bind(component="runner")

    @classmethod
    def from_settings(cls, settings: "RelocatorSettings", action: ActionPrimitive) -> "ReplayRunner":
        return cls(
            ElementResolver.from_settings(settings),
            action,
            options=settings.run_options(),
            find_options=settings.find_options(),
        )

    def _on_state_change(self, event: StateChangeEvent) -> None:
        if event.current.lifecycle == RunLifecycle.PAUSED:
            self._resume.clear()
        else:
            self._resume.set()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def pause(self) -> bool:
        return self.state.pause()

    def resume(self) -> bool:
        return self.state.resume()

    def stop(self) -> bool:
        return self.state.stop()

    async def _checkpoint(self) -> bool:
        """Block while paused. True if the run should continue."""
        while self.state.lifecycle == RunLifecycle.PAUSED:
            await self._resume.wait()
        return self.state.lifecycle == RunLifecycle.RUNNING

    async def _delay(self) -> None:
        delay_ms = float(self.options.step_delay_ms)
        if self.options.human_delay_ms:
            low, high = self.options.human_delay_ms
            delay_ms += self._rng.uniform(low, high)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _resolve_and_act(self, step: Step, dom: DOMProvider) -> MatchResult:
        match = await self.resolver.find(step.descriptor, dom, self.find_options)
        if not match.found:
            raise ExecutionFailure(step.id, match.message or "Element not found", not_found=True)

        try:
            outcome = await self.action(step, match.element, dom)
        except Exception as e:
            raise ExecutionFailure(step.id, f"Action '{step.action}' failed: {e}") from e
        if outcome is False:
            raise ExecutionFailure(step.id, f"Action '{step.action}' reported failure")
        return match

    async def execute_step(self, index: int, step: Step, dom: DOMProvider, run_log: RunLogger) -> StepResult:
        started = time.monotonic()
        self.state.set_current_step(index)
        run_log.step_started(index, step.id, step.action)

        def elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            match = await self._resolve_and_act(step, dom)
        except ExecutionFailure as failure:
            if failure.not_found and self.options.skip_on_not_found:
                run_log.step_skipped(index, step.id, failure.message)
                return StepResult(step.id, StepStatus.SKIPPED, elapsed(), failure.message, step_index=index)
            run_log.step_failed(index, step.id, failure.message)
            return StepResult(step.id, StepStatus.FAILED, elapsed(), failure.message, step_index=index)

        result = StepResult(
            step.id,
            StepStatus.PASSED,
            elapsed(),
            strategy=match.strategy.value,
            confidence=match.confidence,
            step_index=index,
        )
        run_log.step_completed(index, step.id, result.duration_ms, result.strategy, result.confidence)
        return result

    async def run(self, steps: Sequence[Step], dom: DOMProvider, run_id: Optional[str] = None) -> ExecutionSummary:
        """Execute ``steps`` in order and return the summary.

        Raises:
            EmptyRunError: If ``steps`` is empty
            InvalidTransitionError: If this runner's state machine is already active
        """
        if not steps:
            raise EmptyRunError("Cannot run an empty step list")

        run_id = run_id or uuid.uuid4().hex[:12]
        run_log = RunLogger(run_id, total_steps=len(steps))
        self.state.start(len(steps))

        with LogContext(run_id=run_id):
            run_log.run_started(
                continue_on_failure=self.options.continue_on_failure,
                max_consecutive_failures=self.options.max_consecutive_failures,
            )
            summary = await self._run_steps(steps, dom, run_log)
            run_log.run_finished(
                summary.stop_reason.value,
                summary.duration_ms,
                summary.passed_steps,
                summary.failed_steps,
            )
        return summary

    async def _run_steps(self, steps: Sequence[Step], dom: DOMProvider, run_log: RunLogger) -> ExecutionSummary:
        results: list[StepResult] = []
        consecutive_failures = 0
        stop_reason = StopReason.COMPLETED
        stopped_at: Optional[int] = None
        error: Optional[str] = None
        limit = self.options.max_consecutive_failures
        last = len(steps) - 1

        for index, step in enumerate(steps):
            if not await self._checkpoint():
                stop_reason, stopped_at = StopReason.STOPPED, index
                break

            result = await self.execute_step(index, step, dom, run_log)
            results.append(result)
            self.state.complete_step(result)

            if result.status == StepStatus.FAILED:
                consecutive_failures += 1
                if not self.options.continue_on_failure:
                    stop_reason, stopped_at = StopReason.STEP_FAILED, index
                    error = result.error or f"Step {step.id} failed"
                    break
                if limit > 0 and consecutive_failures >= limit:
                    stop_reason, stopped_at = StopReason.CONSECUTIVE_FAILURES, index
                    error = f"Max consecutive failures ({limit}) reached"
                    break
            elif result.status == StepStatus.PASSED:
                consecutive_failures = 0

            if index < last:
                await self._delay()

        if stop_reason != StopReason.STOPPED:
            stop_reason, stopped_at = await self._finish(stop_reason, stopped_at, last, error)

        return self._summarize(steps, results, stop_reason, stopped_at)

    async def _finish(
        self,
        stop_reason: StopReason,
        stopped_at: Optional[int],
        last: int,
        error: Optional[str],
    ) -> tuple[StopReason, Optional[int]]:
        """Move the state machine to its terminal state.

        A pause requested during the step that ended the run is honored
        first. A stop seen here ends the run as stopped at that step.
        """
        if not await self._checkpoint():
            return StopReason.STOPPED, stopped_at if stopped_at is not None else last

        if stop_reason == StopReason.COMPLETED:
            ended = self.state.complete()
            target = RunLifecycle.COMPLETED
        else:
            ended = self.state.set_error(error)
            target = RunLifecycle.ERROR
        if not ended:
            raise InvalidTransitionError(self.state.lifecycle.value, target.value)
        return stop_reason, stopped_at

    def _summarize(
        self,
        steps: Sequence[Step],
        results: list[StepResult],
        stop_reason: StopReason,
        stopped_at: Optional[int],
    ) -> ExecutionSummary:
        passed = sum(1 for r in results if r.status == StepStatus.PASSED)
        failed = sum(1 for r in results if r.status == StepStatus.FAILED)
        skipped = sum(1 for r in results if r.status == StepStatus.SKIPPED)
        first_error = next((r.error for r in results if r.status == StepStatus.FAILED), None)

        return ExecutionSummary(
            total_steps=len(steps),
            passed_steps=passed,
            failed_steps=failed,
            skipped_steps=skipped + (len(steps) - len(results)),
            duration_ms=self.state.elapsed_ms(),
            results=results,
            stop_reason=stop_reason,
            lifecycle=self.state.lifecycle,
            stopped_early=stopped_at is not None,
            stopped_at_step=stopped_at,
            first_error=first_error or self.state.error,
        )
