"""Tests for in-view filtering helpers."""

import pytest
from pixico.schemas.views import PromptCard
from pixico.services.filtering import ALL_CATEGORIES, filter_by_text, select_tab, tab_labels


@pytest.mark.unit
class TestFilterByText:
    rows = [
        {"email": "ada@pixico.test", "full_name": "Ada Lovelace"},
        {"email": "grace@pixico.test", "full_name": None},
        {"email": None, "full_name": "Alan Turing"},
    ]

    def test_matches_any_field_case_insensitively(self):
        result = filter_by_text(self.rows, "TURING", ("email", "full_name"))

        assert result == [self.rows[2]]

    def test_blank_query_keeps_everything(self):
        assert filter_by_text(self.rows, "  ", ("email",)) == self.rows
        assert filter_by_text(self.rows, None, ("email",)) == self.rows

    def test_null_fields_never_match(self):
        assert filter_by_text(self.rows, "grace", ("full_name",)) == []


@pytest.mark.unit
class TestTabs:
    def test_select_tab_on_models(self):
        cards = [
            PromptCard(id=1, slug="a", title="A", category="Art", model="Midjourney", image="/a.png"),
            PromptCard(id=2, slug="b", title="B", category="Logos", model="DALL-E", image="/b.png"),
        ]

        assert select_tab(cards, "Logos", "category", ALL_CATEGORIES) == [cards[1]]
        assert select_tab(cards, ALL_CATEGORIES, "category", ALL_CATEGORIES) == cards
        assert select_tab(cards, None, "category", ALL_CATEGORIES) == cards

    def test_unknown_tab_selects_nothing(self):
        assert select_tab([{"status": "new"}], "spam", "status", "all") == []

    def test_tab_labels_dedupe_and_lead_with_all(self):
        assert tab_labels(["Art", "Logos", "Art", None, ""], ALL_CATEGORIES) == [
            "All",
            "Art",
            "Logos",
        ]
