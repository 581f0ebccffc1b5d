"""Tests for the adversary and environment browsers."""

import pytest

from daggerforge.browser import AdversaryBrowser, CardBrowser, EnvironmentBrowser
from daggerforge.models import Adversary, Environment
from daggerforge.packs import load_builtin_pack, parse_pack
from daggerforge.storage import DataManager


@pytest.fixture
def packs():
    void = parse_pack({
        "name": "The Void",
        "source": "void",
        "adversaries": [{"name": "Umbral Captain", "tier": "2", "type": "Leader (Umbra-Touched)"}],
        "environments": [{"name": "Starless Rift", "tier": 3, "type": "Traversal"}],
    })
    return [load_builtin_pack(), void]


@pytest.fixture
def data_manager(tmp_path) -> DataManager:
    return DataManager(data_dir=tmp_path)


class TestAdversaryBrowser:
    """Tests for AdversaryBrowser."""

    def test_merges_packs_and_custom_cards(self, packs, data_manager):
        """Pack cards come first, followed by custom cards."""
        data_manager.add_adversary(Adversary(name="Bog Hag", tier="1", type="Skulk", source="custom"))
        browser = AdversaryBrowser(packs, data_manager)
        names = [a.name for a in browser.results()]
        assert names[0] == "Acid Burrower"
        assert names[-2:] == ["Umbral Captain", "Bog Hag"]

    def test_fuzzy_query(self, packs, data_manager):
        """A loose query still finds the intended card."""
        browser = AdversaryBrowser(packs, data_manager)
        results = browser.set_query("acid burr")
        assert results[0].name == "Acid Burrower"

    def test_horde_family_from_core(self, packs, data_manager):
        """Filtering on Horde also returns qualified horde variants."""
        browser = AdversaryBrowser(packs, data_manager)
        assert [a.name for a in browser.set_types(["Horde"])] == ["Swarm of Rats"]

    def test_display_type_filter(self, packs, data_manager):
        """The full display type works as a type filter."""
        browser = AdversaryBrowser(packs, data_manager)
        assert [a.name for a in browser.set_types(["Leader (Umbra-Touched)"])] == ["Umbral Captain"]

    def test_refresh_keeps_filters(self, packs, data_manager):
        """Refreshing reloads cards without dropping active filters."""
        browser = AdversaryBrowser(packs, data_manager)
        browser.set_sources(["custom"])
        assert browser.results() == []

        data_manager.add_adversary(Adversary(name="Bog Hag", source="custom"))
        browser.refresh()
        assert browser.filters.sources == ["custom"]
        assert [a.name for a in browser.results()] == ["Bog Hag"]

    def test_facets_follow_data(self, packs, data_manager):
        """Facet values track the cards currently loaded."""
        data_manager.add_adversary(Adversary(name="Bog Hag", tier="4", source="custom"))
        browser = AdversaryBrowser(packs, data_manager)
        facets = browser.facets()
        assert facets["sources"] == ["core", "custom", "void"]
        assert facets["tiers"] == ["1", "2", "4"]
        assert "Horde (10/HP)" in facets["types"]
        assert "Leader" in facets["types"]

    def test_toggle(self, packs, data_manager):
        """Toggling a value adds it, toggling again removes it."""
        browser = AdversaryBrowser(packs, data_manager)
        browser.toggle("tiers", "2")
        assert browser.filters.tiers == ["2"]
        browser.toggle("tiers", "1")
        assert browser.filters.tiers == ["2", "1"]
        browser.toggle("tiers", "2")
        assert browser.filters.tiers == ["1"]

    def test_toggle_unknown_field(self, packs, data_manager):
        """Only known facets can be toggled."""
        browser = AdversaryBrowser(packs, data_manager)
        with pytest.raises(ValueError):
            browser.toggle("colour", "red")

    def test_clear(self, packs, data_manager):
        """Clearing filters shows every card again."""
        browser = AdversaryBrowser(packs, data_manager)
        total = len(browser.results())
        browser.set_tiers(["2"])
        assert len(browser.clear()) == total


class TestEnvironmentBrowser:
    """Tests for EnvironmentBrowser."""

    def test_tier_filter(self, packs, data_manager):
        """Only items in the selected tier are returned."""
        data_manager.add_environment(Environment(name="Mire", tier=3, type="Exploration", source="custom"))
        browser = EnvironmentBrowser(packs, data_manager)
        assert [e.name for e in browser.set_tiers(["3"])] == ["Starless Rift", "Mire"]

    def test_type_filter(self, packs, data_manager):
        """Environments filter by type."""
        browser = EnvironmentBrowser(packs, data_manager)
        assert [e.name for e in browser.set_types(["social"])] == ["Bustling Marketplace"]


class TestCardBrowser:
    """Tests for the generic CardBrowser."""

    def test_custom_provider(self):
        """Any callable can supply the cards."""
        cards = [Adversary(name="A"), Adversary(name="B")]
        browser = CardBrowser(lambda: cards)
        assert browser.results() == cards
        cards.append(Adversary(name="C"))
        browser.refresh()
        assert len(browser.results()) == 3
