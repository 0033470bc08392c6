"""Tests for exact-match strategies."""

import pytest

from relocator.errors import StrategyError
from relocator.locators.descriptor import ElementDescriptor
from relocator.locators.strategies import (
    AriaStrategy,
    DataAttributeStrategy,
    IdStrategy,
    NameStrategy,
    PlaceholderStrategy,
    XPathStrategy,
)

FORM = """
<form>
  <label id="email-label">Email</label>
  <input id="email" name="email" placeholder="you@example.com" aria-labelledby="email-label"
         data-testid="email-input" data-cy="email">
  <input name="email" id="email-dup">
  <button id="go" aria-label="Send form" data-role="submit">Send</button>
  <span aria-describedby="hint">?</span>
</form>
"""


class TestXPathStrategy:
    """Tests for XPathStrategy."""

    @pytest.mark.asyncio
    async def test_finds_first_node_with_full_confidence(self, make_dom):
        dom = make_dom(FORM)
        outcome = await XPathStrategy().locate(ElementDescriptor(xpath="//input"), dom)

        assert outcome.found
        assert outcome.element.get("id") == "email"
        assert outcome.confidence == 1.0
        assert outcome.metadata["match_count"] == 2

    @pytest.mark.asyncio
    async def test_no_match(self, make_dom):
        outcome = await XPathStrategy().locate(ElementDescriptor(xpath="//select"), make_dom(FORM))
        assert not outcome.found
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_malformed_expression_returns_error_value(self, make_dom):
        outcome = await XPathStrategy().locate(ElementDescriptor(xpath="//input[@id="), make_dom(FORM))

        assert not outcome.found
        assert isinstance(outcome.error, StrategyError)
        assert outcome.error.strategy == "xpath"

    @pytest.mark.asyncio
    async def test_cannot_handle_without_xpath(self, make_dom):
        strategy = XPathStrategy()
        assert not strategy.can_handle(ElementDescriptor(id="go"))
        outcome = await strategy.locate(ElementDescriptor(id="go"), make_dom(FORM))
        assert not outcome.found

    @pytest.mark.asyncio
    async def test_find_returns_element(self, make_dom):
        element = await XPathStrategy().find(ElementDescriptor(xpath="//button"), make_dom(FORM))
        assert element.get("id") == "go"


class TestIdStrategy:
    """Tests for IdStrategy."""

    @pytest.mark.asyncio
    async def test_confirmed_by_name(self, make_dom):
        outcome = await IdStrategy().locate(ElementDescriptor(id="email", name="email"), make_dom(FORM))

        assert outcome.element.get("id") == "email"
        assert outcome.confidence == 0.9
        assert outcome.metadata["confirmed"] is True

    @pytest.mark.asyncio
    async def test_unconfirmed_keeps_base_confidence(self, make_dom):
        outcome = await IdStrategy().locate(ElementDescriptor(id="email", tag="select"), make_dom(FORM))

        assert outcome.found
        assert outcome.confidence == 0.9
        assert outcome.metadata["confirmed"] is False

    @pytest.mark.asyncio
    async def test_special_characters_in_id(self, make_dom):
        dom = make_dom('<div id="user.name:1">x</div>')
        outcome = await IdStrategy().locate(ElementDescriptor(id="user.name:1"), dom)
        assert outcome.found


class TestNameStrategy:
    """Tests for NameStrategy."""

    @pytest.mark.asyncio
    async def test_first_match_wins(self, make_dom):
        outcome = await NameStrategy().locate(ElementDescriptor(name="email"), make_dom(FORM))

        assert outcome.element.get("id") == "email"
        assert outcome.confidence == 0.8
        assert outcome.metadata["match_count"] == 2


class TestAriaStrategy:
    """Tests for AriaStrategy."""

    @pytest.mark.asyncio
    async def test_aria_label(self, make_dom):
        outcome = await AriaStrategy().locate(ElementDescriptor(aria="Send form"), make_dom(FORM))
        assert outcome.element.get("id") == "go"
        assert outcome.metadata["attribute"] == "aria-label"
        assert outcome.confidence == 0.75

    @pytest.mark.asyncio
    async def test_falls_back_to_labelledby(self, make_dom):
        outcome = await AriaStrategy().locate(ElementDescriptor(aria="email-label"), make_dom(FORM))
        assert outcome.element.get("id") == "email"
        assert outcome.metadata["attribute"] == "aria-labelledby"

    @pytest.mark.asyncio
    async def test_falls_back_to_describedby(self, make_dom):
        outcome = await AriaStrategy().locate(ElementDescriptor(aria="hint"), make_dom(FORM))
        assert outcome.metadata["attribute"] == "aria-describedby"


class TestPlaceholderStrategy:
    """Tests for PlaceholderStrategy."""

    @pytest.mark.asyncio
    async def test_placeholder(self, make_dom):
        outcome = await PlaceholderStrategy().locate(ElementDescriptor(placeholder="you@example.com"), make_dom(FORM))
        assert outcome.element.get("id") == "email"
        assert outcome.confidence == 0.7


class TestDataAttributeStrategy:
    """Tests for DataAttributeStrategy."""

    @pytest.mark.asyncio
    async def test_priority_key_tried_first(self, make_dom):
        descriptor = ElementDescriptor(data_attrs={"role": "submit", "testid": "email-input"})
        outcome = await DataAttributeStrategy().locate(descriptor, make_dom(FORM))

        assert outcome.element.get("id") == "email"
        assert outcome.metadata["attribute"] == "data-testid"
        assert outcome.confidence == 0.65

    @pytest.mark.asyncio
    async def test_falls_back_to_other_keys(self, make_dom):
        descriptor = ElementDescriptor(data_attrs={"testid": "gone", "data-role": "submit"})
        outcome = await DataAttributeStrategy().locate(descriptor, make_dom(FORM))

        assert outcome.element.get("id") == "go"
        assert outcome.metadata["attribute"] == "data-role"

    def test_candidate_order(self):
        descriptor = ElementDescriptor(data_attrs={"x": "1", "cy": "2", "data-testid": "3", "empty": ""})
        pairs = list(DataAttributeStrategy().candidates(descriptor))
        assert pairs == [("data-testid", "3"), ("data-cy", "2"), ("data-x", "1")]
