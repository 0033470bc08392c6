"""Base class for element matching strategies."""

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from ...dom.provider import DOMProvider
from ...errors import DOMQueryError, StrategyError
from ..descriptor import ElementDescriptor
from ..models import BASE_CONFIDENCE, StrategyName, StrategyOutcome

logger = structlog.get_logger()


class LocatorStrategy(ABC):
    """One matching policy with a fixed base confidence tier.

    Subclasses implement ``_locate``. ``locate`` wraps it so DOM errors come
    back as a ``StrategyError`` value instead of propagating.
    """

    name: StrategyName

    def __init__(self):
        self.log = logger.bind(component="strategy", strategy=self.name.value)

    @property
    def base_confidence(self) -> float:
        return BASE_CONFIDENCE[self.name]

    def can_handle(self, descriptor: ElementDescriptor) -> bool:
        return descriptor.can_use(self.name)

    async def locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        if not self.can_handle(descriptor):
            return StrategyOutcome.miss(reason="insufficient descriptor data")
        try:
            return await self._locate(descriptor, dom)
        except DOMQueryError as e:
            self.log.debug("Strategy query failed", error=str(e))
            return StrategyOutcome.failed(StrategyError(self.name.value, str(e)))

    async def find(self, descriptor: ElementDescriptor, dom: DOMProvider) -> Optional[Any]:
        """Matched element or None."""
        return (await self.locate(descriptor, dom)).element

    @abstractmethod
    async def _locate(self, descriptor: ElementDescriptor, dom: DOMProvider) -> StrategyOutcome:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_confidence={self.base_confidence})"
