"""
Card browsers for adversaries and environments.

A browser merges built-in pack content with the user's custom cards
and drives a SearchEngine over the combined list. Rendering is left to
the caller; a browser only decides which cards are visible.
"""

import logging
from typing import Callable, Generic, TypeVar

from .models import Adversary, Environment
from .packs import ContentPack
from .search import FACET_FIELDS, SearchEngine, SearchFilters
from .storage import DataManager

logger = logging.getLogger("daggerforge.browser")

CardT = TypeVar("CardT", Adversary, Environment)


class CardBrowser(Generic[CardT]):
    """Searchable listing over a card provider.

    Args:
        provider: Callable returning the full card list on each refresh.
        kind: Label used in log messages ("adversaries", "environments").
    """

    def __init__(self, provider: Callable[[], list[CardT]], kind: str = "cards"):
        self._provider = provider
        self.kind = kind
        self.engine: SearchEngine[CardT] = SearchEngine()
        self.refresh()

    def refresh(self) -> None:
        """Reload cards from the provider, keeping the active filters."""
        snapshot = self.engine.get_filters()
        self.engine.set_items(self._provider())
        self.engine.set_filters(
            query=snapshot.query,
            tiers=snapshot.tiers,
            sources=snapshot.sources,
            types=snapshot.types,
        )
        logger.debug(f"🔄 Refreshed {self.kind} browser ({len(self.engine.items)} cards)")

    def set_query(self, query: str) -> list[CardT]:
        self.engine.set_filters(query=query)
        return self.results()

    def set_tiers(self, tiers: list[str]) -> list[CardT]:
        self.engine.set_filters(tiers=tiers)
        return self.results()

    def set_sources(self, sources: list[str]) -> list[CardT]:
        self.engine.set_filters(sources=sources)
        return self.results()

    def set_types(self, types: list[str]) -> list[CardT]:
        self.engine.set_filters(types=types)
        return self.results()

    def toggle(self, field_name: str, value: str) -> list[CardT]:
        """Add or remove one value from a multi-select facet."""
        if field_name not in FACET_FIELDS:
            raise ValueError(f"Unknown filter field: '{field_name}'")
        selected: list[str] = getattr(self.engine.get_filters(), field_name)
        if value in selected:
            selected.remove(value)
        else:
            selected.append(value)
        self.engine.set_filters({field_name: selected})
        return self.results()

    def clear(self) -> list[CardT]:
        self.engine.clear_filters()
        return self.results()

    @property
    def filters(self) -> SearchFilters:
        return self.engine.get_filters()

    def results(self) -> list[CardT]:
        return self.engine.search()

    def facets(self) -> dict[str, list[str]]:
        """Selectable values for every facet, taken from the loaded cards."""
        return {name: self.engine.get_available_options(name) for name in FACET_FIELDS}


class AdversaryBrowser(CardBrowser[Adversary]):
    """Browser over pack adversaries followed by custom adversaries."""

    def __init__(self, packs: list[ContentPack], data_manager: DataManager):
        self.packs = packs
        self.data_manager = data_manager
        super().__init__(self._load, kind="adversaries")

    def _load(self) -> list[Adversary]:
        cards: list[Adversary] = []
        for pack in self.packs:
            cards.extend(pack.adversaries)
        cards.extend(self.data_manager.get_adversaries())
        return cards


class EnvironmentBrowser(CardBrowser[Environment]):
    """Browser over pack environments followed by custom environments."""

    def __init__(self, packs: list[ContentPack], data_manager: DataManager):
        self.packs = packs
        self.data_manager = data_manager
        super().__init__(self._load, kind="environments")

    def _load(self) -> list[Environment]:
        cards: list[Environment] = []
        for pack in self.packs:
            cards.extend(pack.environments)
        cards.extend(self.data_manager.get_environments())
        return cards
