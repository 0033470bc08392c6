"""Tests for the generated CSS selector strategy."""

import pytest

from relocator.locators.descriptor import ElementDescriptor
from relocator.locators.strategies import GeneratedSelectorStrategy
from relocator.locators.strategies.selector import (
    SelectorType,
    SelectorVariant,
    rank_variants,
    select_best_variant,
    selector_candidates,
    selector_confidence,
)


class TestSelectorCandidates:
    """Tests for variant generation."""

    def test_attribute_only_descriptor(self):
        descriptor = ElementDescriptor(tag="input", name="q", placeholder="Search")
        candidates = selector_candidates(descriptor)

        assert candidates == [
            ('input[name="q"][placeholder="Search"]', SelectorType.COMBINED),
            ('input[name="q"]', SelectorType.ATTRIBUTE),
            ('input[placeholder="Search"]', SelectorType.ATTRIBUTE),
            ("input", SelectorType.TAG_ONLY),
        ]

    def test_recorded_css_comes_first(self):
        descriptor = ElementDescriptor(css="form > button", tag="button")
        assert selector_candidates(descriptor)[0] == ("form > button", SelectorType.RECORDED)

    def test_id_short_circuits_combined(self):
        candidates = selector_candidates(ElementDescriptor(tag="button", id="save", classes=("btn",)))
        assert ("button#save", SelectorType.ID) in candidates
        assert ("button#save", SelectorType.COMBINED) in candidates
        assert ("button.btn", SelectorType.CLASS) in candidates

    def test_volatile_classes_are_dropped(self):
        candidates = selector_candidates(ElementDescriptor(classes=("is-active", "css-1x2y3z")))
        assert candidates == []


class TestVariantRanking:
    """Tests for ranking and confidence of selector variants."""

    def test_unique_beats_fewer_specific(self):
        broad = SelectorVariant("button", SelectorType.TAG_ONLY, 1, match_count=3)
        unique = SelectorVariant("button.save", SelectorType.CLASS, 11, match_count=1)
        assert rank_variants([broad, unique])[0] is unique
        assert select_best_variant([broad, unique]) is unique

    def test_specificity_breaks_ties(self):
        low = SelectorVariant(".save", SelectorType.CLASS, 10, match_count=1)
        high = SelectorVariant("button#save", SelectorType.ID, 101, match_count=1)
        assert select_best_variant([low, high]) is high

    def test_no_matches(self):
        assert select_best_variant([SelectorVariant("div", SelectorType.TAG_ONLY, 1)]) is None

    def test_id_variant_confidence(self):
        variant = SelectorVariant("button#save", SelectorType.ID, 101, match_count=1)
        assert selector_confidence(variant, 0.6) == pytest.approx(0.9)

    def test_ambiguous_tag_only_confidence(self):
        variant = SelectorVariant("li", SelectorType.TAG_ONLY, 1, match_count=2)
        assert selector_confidence(variant, 0.6) == pytest.approx(0.326)

    def test_confidence_is_clamped(self):
        variant = SelectorVariant("li", SelectorType.TAG_ONLY, 1, match_count=50)
        assert 0.0 <= selector_confidence(variant, 0.1) <= 1.0


class TestGeneratedSelectorStrategy:
    """Tests for GeneratedSelectorStrategy against a snapshot document."""

    @pytest.mark.asyncio
    async def test_id_variant(self, make_dom):
        dom = make_dom('<button id="save">Save</button><button>Cancel</button>')
        outcome = await GeneratedSelectorStrategy().locate(ElementDescriptor(tag="button", id="save"), dom)

        assert outcome.element.get("id") == "save"
        assert outcome.metadata["selector_type"] == "id"
        assert outcome.confidence == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_class_combination_disambiguates(self, make_dom):
        dom = make_dom('<button class="btn">A</button><button class="btn btn-primary">B</button>')
        descriptor = ElementDescriptor(tag="button", classes=("btn", "btn-primary"))
        outcome = await GeneratedSelectorStrategy().locate(descriptor, dom)

        assert outcome.element.text == "B"
        assert outcome.metadata["selector"] == "button.btn.btn-primary"
        assert outcome.metadata["match_count"] == 1
        assert outcome.confidence == pytest.approx(0.771)

    @pytest.mark.asyncio
    async def test_recorded_selector(self, make_dom):
        dom = make_dom('<ul id="main"><li class="item">1</li><li class="item">2</li></ul>')
        descriptor = ElementDescriptor(css="#main > .item:nth-child(2)")
        outcome = await GeneratedSelectorStrategy().locate(descriptor, dom)

        assert outcome.element.text == "2"
        assert outcome.metadata["selector_type"] == "recorded"
        assert outcome.confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_ambiguous_falls_back_to_first_match(self, make_dom):
        dom = make_dom("<ul><li>1</li><li>2</li></ul>")
        outcome = await GeneratedSelectorStrategy().locate(ElementDescriptor(tag="li"), dom)

        assert outcome.element.text == "1"
        assert outcome.metadata["match_count"] == 2
        assert outcome.confidence == pytest.approx(0.526)

    @pytest.mark.asyncio
    async def test_invalid_recorded_selector_is_skipped(self, make_dom):
        dom = make_dom('<button id="go">Go</button>')
        descriptor = ElementDescriptor(css="div[", tag="button", id="go")
        outcome = await GeneratedSelectorStrategy().locate(descriptor, dom)

        assert outcome.found
        assert outcome.error is None
        assert outcome.metadata["selector_type"] == "id"

    @pytest.mark.asyncio
    async def test_no_variant_matches(self, make_dom):
        dom = make_dom("<p>nothing here</p>")
        outcome = await GeneratedSelectorStrategy().locate(ElementDescriptor(tag="button", name="q"), dom)

        assert not outcome.found
        assert outcome.metadata["variants"] == 3
