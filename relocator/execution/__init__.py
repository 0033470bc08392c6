"""Replay execution: run state machine and run loop.

    steps ──> ReplayRunner ──> ElementResolver.find ──> action primitive
                   │
                   └──> RunStateMachine (lifecycle, progress, timing, events)
"""

from .models import (
    VALID_TRANSITIONS,
    EventType,
    ExecutionSummary,
    RunLifecycle,
    RunOptions,
    RunProgress,
    RunSnapshot,
    RunTiming,
    StateChangeEvent,
    Step,
    StepResult,
    StepStatus,
    StopReason,
    can_transition,
)
from .runner import ActionPrimitive, ReplayRunner
from .state_machine import RunStateMachine, format_elapsed, format_eta

__all__ = [
    # State machine
    "RunStateMachine",
    "RunLifecycle",
    "VALID_TRANSITIONS",
    "can_transition",
    "RunSnapshot",
    "RunProgress",
    "RunTiming",
    "StateChangeEvent",
    "EventType",
    # Run loop
    "ReplayRunner",
    "ActionPrimitive",
    "RunOptions",
    "Step",
    "StepResult",
    "StepStatus",
    "StopReason",
    "ExecutionSummary",
    # Formatting
    "format_elapsed",
    "format_eta",
]
