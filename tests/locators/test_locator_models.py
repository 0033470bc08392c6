"""Tests for resolver option and result models."""

import pytest

from relocator.errors import NotFoundError, StrategyError
from relocator.locators.models import (
    BASE_CONFIDENCE,
    DEFAULT_STRATEGY_ORDER,
    DiagnosticReason,
    FindOptions,
    MatchResult,
    StrategyDiagnostic,
    StrategyName,
    StrategyOutcome,
)


class TestStrategyTiers:
    def test_default_order_is_descending_confidence(self):
        confidences = [BASE_CONFIDENCE[name] for name in DEFAULT_STRATEGY_ORDER]
        assert confidences == sorted(confidences, reverse=True)
        assert len(DEFAULT_STRATEGY_ORDER) == 9


class TestFindOptions:
    """Tests for FindOptions."""

    def test_defaults(self):
        options = FindOptions()
        assert (options.timeout_ms, options.retry_interval_ms, options.max_retries) == (2000, 150, 13)
        assert options.ordered_strategies() == list(DEFAULT_STRATEGY_ORDER)

    def test_ordered_strategies(self):
        options = FindOptions(
            strategy_order=["name", StrategyName.ID, "name", StrategyName.XPATH],
            disabled_strategies=["xpath"],
        )
        assert options.ordered_strategies() == [StrategyName.NAME, StrategyName.ID]

    def test_fixed_interval(self):
        assert FindOptions(retry_interval_ms=150).retry_delay_ms(5) == 150

    def test_exponential_backoff(self):
        options = FindOptions(
            retry_interval_ms=100, exponential_backoff=True, backoff_multiplier=1.5, max_backoff_delay_ms=200
        )
        assert options.retry_delay_ms(0) == 100
        assert options.retry_delay_ms(1) == pytest.approx(150)
        assert options.retry_delay_ms(2) == 200


class TestStrategyOutcome:
    def test_constructors(self):
        assert not StrategyOutcome.miss(reason="x").found
        failed = StrategyOutcome.failed(StrategyError("css", "bad selector"))
        assert failed.error.to_dict() == {"strategy": "css", "message": "bad selector"}
        assert str(failed.error) == "css: bad selector"


class TestMatchResult:
    """Tests for MatchResult."""

    def test_raise_for_element(self):
        element = object()
        assert MatchResult(element=element).raise_for_element() is element

        missing = MatchResult(message="Element not found after 13 retries and 2 strategies")
        with pytest.raises(NotFoundError) as exc_info:
            missing.raise_for_element()
        assert exc_info.value.result is missing
        assert "13 retries" in str(exc_info.value)

    def test_to_dict_omits_element(self):
        result = MatchResult(
            element=object(),
            strategy=StrategyName.ID,
            confidence=0.912345,
            attempted=[StrategyName.XPATH, StrategyName.ID],
            diagnostics=[StrategyDiagnostic(StrategyName.XPATH, DiagnosticReason.NO_MATCH)],
        )
        data = result.to_dict()

        assert "element" not in data
        assert data["found"] is True
        assert data["strategy"] == "id"
        assert data["confidence"] == 0.9123
        assert data["attempted"] == ["xpath", "id"]
        assert data["diagnostics"][0]["reason"] == "no_match"
