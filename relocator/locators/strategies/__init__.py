"""Element matching strategies and their registry."""

from typing import Optional

from ..models import StrategyName
from .base import LocatorStrategy
from .exact import (
    AriaStrategy,
    DataAttributeStrategy,
    IdStrategy,
    NameStrategy,
    PlaceholderStrategy,
    XPathStrategy,
)
from .fuzzy_text import FuzzyTextStrategy
from .selector import GeneratedSelectorStrategy
from .spatial import SpatialStrategy

STRATEGY_CLASSES: dict[StrategyName, type[LocatorStrategy]] = {
    StrategyName.XPATH: XPathStrategy,
    StrategyName.ID: IdStrategy,
    StrategyName.NAME: NameStrategy,
    StrategyName.ARIA: AriaStrategy,
    StrategyName.PLACEHOLDER: PlaceholderStrategy,
    StrategyName.DATA_ATTRIBUTES: DataAttributeStrategy,
    StrategyName.CSS: GeneratedSelectorStrategy,
    StrategyName.FUZZY_TEXT: FuzzyTextStrategy,
    StrategyName.BOUNDING_BOX: SpatialStrategy,
}


def build_strategies(
    fuzzy_threshold: Optional[float] = None,
    spatial_threshold_px: Optional[float] = None,
) -> dict[StrategyName, LocatorStrategy]:
    """Construct one instance of every strategy."""
    strategies: dict[StrategyName, LocatorStrategy] = {}
    for name, cls in STRATEGY_CLASSES.items():
        if cls is FuzzyTextStrategy and fuzzy_threshold is not None:
            strategies[name] = FuzzyTextStrategy(threshold=fuzzy_threshold)
        elif cls is SpatialStrategy and spatial_threshold_px is not None:
            strategies[name] = SpatialStrategy(max_distance=spatial_threshold_px)
        else:
            strategies[name] = cls()
    return strategies


__all__ = [
    "LocatorStrategy",
    "XPathStrategy",
    "IdStrategy",
    "NameStrategy",
    "AriaStrategy",
    "PlaceholderStrategy",
    "DataAttributeStrategy",
    "GeneratedSelectorStrategy",
    "FuzzyTextStrategy",
    "SpatialStrategy",
    "STRATEGY_CLASSES",
    "build_strategies",
]
