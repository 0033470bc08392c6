"""Element resolver: runs strategies in priority order with retry.

The resolver turns a recorded ``ElementDescriptor`` into a live element:

    ElementDescriptor
          |
          v
    +-----------------------------+
    | pass: for each strategy     |   xpath -> id -> name -> aria ->
    |   locate -> visible? ->     |   placeholder -> data attrs -> css ->
    |   confidence >= floor?      |   fuzzy text -> bounding box
    +-----------------------------+
          | no match
          v
    sleep(retry interval) and repeat until retries or time run out

The first strategy whose match passes the visibility check and the
confidence floor wins. Lower-priority strategies are never consulted once a
higher one is accepted, and results are not re-ranked across strategies.
"""

import asyncio
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, Mapping, Optional

import structlog

from ..dom.provider import DOMProvider
from ..errors import DOMQueryError
from .descriptor import ElementDescriptor
from .models import (
    DiagnosticReason,
    FindOptions,
    MatchResult,
    StrategyDiagnostic,
    StrategyName,
)
from .strategies import LocatorStrategy, build_strategies

if TYPE_CHECKING:
    from ..config import RelocatorSettings

logger = structlog.get_logger()


class ElementResolver:
    """Resolve descriptors against a DOM provider.

    One resolver per run. Strategies are constructed here, not shared.

    Args:
        options: Default options for ``find`` calls
        strategies: Strategy instances by name (defaults to all nine)
        fuzzy_threshold: Similarity floor for the fuzzy text strategy
        spatial_threshold_px: Distance ceiling for the spatial strategy
        clock: Monotonic clock in seconds
    """

    def __init__(
        self,
        options: Optional[FindOptions] = None,
        strategies: Optional[Mapping[StrategyName, LocatorStrategy]] = None,
        fuzzy_threshold: Optional[float] = None,
        spatial_threshold_px: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.options = options or FindOptions()
        if strategies is None:
            strategies = build_strategies(fuzzy_threshold, spatial_threshold_px)
        self.strategies: dict[StrategyName, LocatorStrategy] = {StrategyName(k): v for k, v in strategies.items()}
        self._clock = clock
        self.log = logger.bind(component="resolver")

    @classmethod
    def from_settings(cls, settings: "RelocatorSettings") -> "ElementResolver":
        return cls(
            options=settings.find_options(),
            fuzzy_threshold=settings.fuzzy_threshold,
            spatial_threshold_px=settings.spatial_threshold_px,
        )

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    async def find(
        self,
        descriptor: ElementDescriptor,
        dom: DOMProvider,
        options: Optional[FindOptions] = None,
    ) -> MatchResult:
        """Resolve ``descriptor``, retrying until a match or until retries or time run out.

        At least one pass always runs. Never raises for a missing element;
        use ``MatchResult.raise_for_element()`` for that.
        """
        options = options or self.options
        start = self._clock()
        retries = 0
        attempted: list[StrategyName] = []
        diagnostics: dict[StrategyName, StrategyDiagnostic] = {}
        scope_error: Optional[str] = None

        while True:
            result, scope_error = await self._pass(descriptor, dom, options, attempted, diagnostics)
            if result is not None:
                result.duration_ms = self._elapsed_ms(start)
                result.retries = retries
                self.log.debug(
                    "Element resolved",
                    strategy=result.strategy.value,
                    confidence=round(result.confidence, 3),
                    retries=retries,
                    duration_ms=result.duration_ms,
                )
                return result

            delay_ms = options.retry_delay_ms(retries)
            if retries >= options.max_retries or self._elapsed_ms(start) + delay_ms >= options.timeout_ms:
                break
            await asyncio.sleep(delay_ms / 1000)
            retries += 1

        return self._not_found(start, retries, attempted, diagnostics, scope_error)

    async def find_once(
        self,
        descriptor: ElementDescriptor,
        dom: DOMProvider,
        options: Optional[FindOptions] = None,
    ) -> MatchResult:
        """Single pass over the strategies with no sleep."""
        options = options or self.options
        start = self._clock()
        attempted: list[StrategyName] = []
        diagnostics: dict[StrategyName, StrategyDiagnostic] = {}

        result, scope_error = await self._pass(descriptor, dom, options, attempted, diagnostics)
        if result is not None:
            result.duration_ms = self._elapsed_ms(start)
            return result
        return self._not_found(start, 0, attempted, diagnostics, scope_error)

    async def find_with(
        self,
        strategy: StrategyName | str,
        descriptor: ElementDescriptor,
        dom: DOMProvider,
        options: Optional[FindOptions] = None,
    ) -> MatchResult:
        """Single pass with one named strategy, ignoring order and disabled lists.

        Visibility and the confidence floor still apply. An unknown or
        unregistered strategy yields a not-found result.
        """
        options = options or self.options
        start = self._clock()
        try:
            name = StrategyName(strategy)
        except ValueError:
            name = None
        if name is None or name not in self.strategies:
            return MatchResult(
                duration_ms=self._elapsed_ms(start),
                message=f"Strategy '{getattr(strategy, 'value', strategy)}' not found",
            )
        if not self.strategies[name].can_handle(descriptor):
            return MatchResult(
                strategy=name,
                duration_ms=self._elapsed_ms(start),
                message=f"Strategy '{name.value}' cannot handle this descriptor",
            )

        single = replace(options, strategy_order=[name], disabled_strategies=[])
        attempted: list[StrategyName] = []
        diagnostics: dict[StrategyName, StrategyDiagnostic] = {}
        result, scope_error = await self._pass(descriptor, dom, single, attempted, diagnostics)
        if result is not None:
            result.duration_ms = self._elapsed_ms(start)
            return result
        return self._not_found(start, 0, attempted, diagnostics, scope_error)

    async def _scope(self, descriptor: ElementDescriptor, dom: DOMProvider, options: FindOptions) -> DOMProvider:
        if options.scope is not None:
            return options.scope
        if descriptor.iframe_chain or descriptor.shadow_hosts:
            return await dom.scoped(descriptor.iframe_chain, descriptor.shadow_hosts)
        return dom

    async def _pass(
        self,
        descriptor: ElementDescriptor,
        dom: DOMProvider,
        options: FindOptions,
        attempted: list[StrategyName],
        diagnostics: dict[StrategyName, StrategyDiagnostic],
    ) -> tuple[Optional[MatchResult], Optional[str]]:
        # Frames and shadow hosts may appear between retries, so scope per pass.
        try:
            scope = await self._scope(descriptor, dom, options)
        except DOMQueryError as e:
            self.log.debug("Scope resolution failed", error=str(e))
            return None, str(e)

        for name in options.ordered_strategies():
            strategy = self.strategies.get(name)
            if strategy is None or not strategy.can_handle(descriptor):
                continue
            if name not in attempted:
                attempted.append(name)

            outcome = await strategy.locate(descriptor, scope)
            if outcome.error is not None:
                diagnostics[name] = StrategyDiagnostic(name, DiagnosticReason.ERROR, outcome.error.message)
                continue
            if not outcome.found:
                diagnostics[name] = StrategyDiagnostic(name, DiagnosticReason.NO_MATCH, outcome.metadata.get("reason"))
                continue

            if options.require_visible:
                try:
                    visible = await scope.is_visible(outcome.element)
                except DOMQueryError as e:
                    diagnostics[name] = StrategyDiagnostic(name, DiagnosticReason.ERROR, str(e))
                    continue
                if not visible:
                    diagnostics[name] = StrategyDiagnostic(
                        name, DiagnosticReason.NOT_VISIBLE, "element is not visible", outcome.confidence
                    )
                    continue

            if outcome.confidence < options.min_confidence:
                diagnostics[name] = StrategyDiagnostic(
                    name,
                    DiagnosticReason.LOW_CONFIDENCE,
                    f"confidence {outcome.confidence:.2f} below {options.min_confidence:.2f}",
                    outcome.confidence,
                )
                continue

            return (
                MatchResult(
                    element=outcome.element,
                    strategy=name,
                    confidence=outcome.confidence,
                    attempted=list(attempted),
                    diagnostics=list(diagnostics.values()),
                    metadata=outcome.metadata,
                ),
                None,
            )

        return None, None

    def _not_found(
        self,
        start: float,
        retries: int,
        attempted: list[StrategyName],
        diagnostics: dict[StrategyName, StrategyDiagnostic],
        scope_error: Optional[str],
    ) -> MatchResult:
        if scope_error:
            message = f"Could not reach element scope: {scope_error}"
        elif not attempted:
            message = "No strategy can handle this descriptor"
        else:
            message = f"Element not found after {retries} retries and {len(attempted)} strategies"

        result = MatchResult(
            duration_ms=self._elapsed_ms(start),
            retries=retries,
            attempted=list(attempted),
            diagnostics=list(diagnostics.values()),
            message=message,
        )
        self.log.info(
            "Element not found",
            retries=retries,
            attempted=[s.value for s in attempted],
            duration_ms=result.duration_ms,
        )
        return result
