"""Multi-strategy element resolution.

Turns a recorded ElementDescriptor into a live element with a confidence
score, trying exact strategies before heuristic ones.
"""

from .descriptor import ElementDescriptor
from .models import (
    BASE_CONFIDENCE,
    DEFAULT_STRATEGY_ORDER,
    DiagnosticReason,
    FindOptions,
    MatchResult,
    StrategyDiagnostic,
    StrategyName,
    StrategyOutcome,
)
from .resolver import ElementResolver
from .strategies import STRATEGY_CLASSES, LocatorStrategy, build_strategies
from .text import bigram_similarity, compare_text, dice_coefficient, extract_words, normalize_text
from .validator import IssueCode, IssueSeverity, ValidationIssue, ValidationReport, validate_descriptor

__all__ = [
    # Descriptor and results
    "ElementDescriptor",
    "MatchResult",
    "FindOptions",
    "StrategyOutcome",
    "StrategyDiagnostic",
    "DiagnosticReason",
    # Strategies
    "StrategyName",
    "BASE_CONFIDENCE",
    "DEFAULT_STRATEGY_ORDER",
    "LocatorStrategy",
    "STRATEGY_CLASSES",
    "build_strategies",
    # Resolver
    "ElementResolver",
    # Validation
    "validate_descriptor",
    "ValidationReport",
    "ValidationIssue",
    "IssueSeverity",
    "IssueCode",
    # Text similarity
    "normalize_text",
    "extract_words",
    "dice_coefficient",
    "bigram_similarity",
    "compare_text",
]
