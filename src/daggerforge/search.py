"""
Search and filtering engine for the adversary and environment browsers.

Combines fuzzy subsequence text matching (with relevance ranking) and
multi-select categorical filters over tier, source and type. Also
discovers the filter values actually present in the loaded collection
so the browsers never rely on a hardcoded master list.

Key pieces:
- fuzzy_score: Subsequence scorer rewarding contiguous, early matches.
- SearchFilters: Mutable filter state owned by the engine.
- SearchEngine: Holds the collection and filters, returns ranked results.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, TypeVar

logger = logging.getLogger("daggerforge.search")

T = TypeVar("T")

DEFAULT_SOURCE = "core"

# Weight applied to the name score; name is the primary identifier
NAME_WEIGHT = 2.0

# Score deducted per character before the first match
POSITION_PENALTY = 0.1

FACET_FIELDS = ("tiers", "sources", "types")

HORDE_TYPE = "horde"


def fuzzy_score(text: str, query: str) -> float:
    """Score how well ``query`` matches ``text`` as an ordered subsequence.

    Each matched character is worth one point plus a bonus that grows by
    one for every directly preceding matched character, so a contiguous
    run of length k scores k(k+1)/2. The index of the first matched
    character is penalised by 0.1 per position.

    Args:
        text: Text to search in.
        query: Characters to look for, in order.

    Returns:
        Relevance score, 0.0 when the query is not a subsequence of the text.
    """
    if not query or not text:
        return 0.0

    text_lower = text.lower()
    query_lower = query.lower()

    score = 0.0
    consecutive = 0
    query_index = 0
    first_match = -1
    last_match = -2

    for text_index, char in enumerate(text_lower):
        if query_index >= len(query_lower):
            break
        if char != query_lower[query_index]:
            continue

        if first_match < 0:
            first_match = text_index
        if last_match == text_index - 1:
            consecutive += 1
        else:
            consecutive = 0

        score += 1 + consecutive
        last_match = text_index
        query_index += 1

    if query_index < len(query_lower):
        return 0.0

    return max(0.0, score - first_match * POSITION_PENALTY)


def _read(item: Any, *names: str, default: Any = None) -> Any:
    """Read the first present field from a mapping or an attribute-bearing object."""
    for name in names:
        if isinstance(item, Mapping):
            value = item.get(name)
        else:
            value = getattr(item, name, None)
        if value is not None:
            return value
    return default


def _item_name(item: Any) -> str:
    # Required field: a missing name surfaces as KeyError/AttributeError
    if isinstance(item, Mapping):
        return item["name"]
    return item.name


def _item_tier(item: Any) -> str:
    tier = _read(item, "tier", "Tier")
    return "" if tier is None else str(tier)


def _item_source(item: Any) -> str:
    return _read(item, "source", "Source") or DEFAULT_SOURCE


def _item_type(item: Any) -> str:
    return _read(item, "type", default="") or ""


def _item_display_type(item: Any) -> str:
    return _read(item, "displayType", "display_type", default="") or ""


def _item_desc(item: Any) -> str:
    return _read(item, "desc", default="") or ""


@dataclass
class SearchFilters:
    """Filter state for a search.

    Attributes:
        query: Free text; empty means no text filter.
        tiers: Tier labels to keep; empty means every tier.
        sources: Source labels to keep (case-insensitive); empty means every source.
        types: Type labels to keep (case-insensitive); empty means every type.
    """

    query: str = ""
    tiers: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)

    def copy(self) -> "SearchFilters":
        return SearchFilters(
            query=self.query,
            tiers=list(self.tiers),
            sources=list(self.sources),
            types=list(self.types),
        )


class SearchEngine(Generic[T]):
    """Filters and ranks a collection of cards.

    Items are anything exposing ``name``, ``tier``, ``type``, ``source``
    and ``desc`` either as mapping keys or attributes. The engine only
    reads them and keeps no cache between calls.
    """

    def __init__(self, items: Iterable[T] | None = None):
        self._items: list[T] = list(items) if items is not None else []
        self._filters = SearchFilters()

    @property
    def items(self) -> list[T]:
        return self._items

    def set_items(self, items: Iterable[T]) -> None:
        """Replace the whole working collection."""
        self._items = list(items)
        logger.debug(f"🔎 Search collection set ({len(self._items)} items)")

    def set_filters(self, filters: Mapping[str, Any] | None = None, **partial: Any) -> None:
        """Merge filter fields into the current state.

        Each supplied field fully replaces the stored one; fields not
        supplied are left untouched. Does not run a search.

        Raises:
            ValueError: If an unknown filter field is supplied.
        """
        updates = dict(filters or {})
        updates.update(partial)
        self._filters = self._merged(updates)

    def get_filters(self) -> SearchFilters:
        """Return a copy of the current filters, safe to restore later."""
        return self._filters.copy()

    def clear_filters(self) -> None:
        """Reset every filter to its empty state."""
        self._filters = SearchFilters()

    def search(self) -> list[T]:
        """Return the items passing all active filters.

        With a text query the result is sorted by descending relevance;
        otherwise the original collection order is kept.
        """
        return self._run(self._filters)

    def search_with(self, filters: Mapping[str, Any] | None = None, **partial: Any) -> list[T]:
        """Search with temporary filter overrides, leaving stored filters untouched."""
        updates = dict(filters or {})
        updates.update(partial)
        return self._run(self._merged(updates))

    def result_count(self) -> int:
        return len(self.search())

    def count_with(self, filters: Mapping[str, Any] | None = None, **partial: Any) -> int:
        return len(self.search_with(filters, **partial))

    def score_item(self, item: T, query: str) -> float:
        """Aggregate relevance of an item: best of weighted name, type and description."""
        return max(
            fuzzy_score(_item_name(item), query) * NAME_WEIGHT,
            fuzzy_score(_item_type(item), query),
            fuzzy_score(_item_desc(item), query),
        )

    def get_available_options(self, field_name: str) -> list[str]:
        """List the distinct values present in the collection for a facet.

        Args:
            field_name: One of "tiers", "sources" or "types".

        Returns:
            Sorted, de-duplicated values with empty strings removed.

        Raises:
            ValueError: If the facet name is unknown.
        """
        if field_name not in FACET_FIELDS:
            raise ValueError(
                f"Unknown filter field: '{field_name}'. Must be one of: {', '.join(FACET_FIELDS)}"
            )

        options: set[str] = set()
        for item in self._items:
            if field_name == "tiers":
                options.add(_item_tier(item))
            elif field_name == "sources":
                options.add(_item_source(item))
            else:
                options.add(_item_type(item))
                options.add(_item_display_type(item))

        options.discard("")
        return sorted(options)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _merged(self, updates: Mapping[str, Any]) -> SearchFilters:
        merged = self._filters.copy()
        for key, value in updates.items():
            if key == "query":
                merged.query = value
            elif key in FACET_FIELDS:
                setattr(merged, key, [str(v) for v in value])
            else:
                raise ValueError(f"Unknown filter field: '{key}'")
        return merged

    def _run(self, filters: SearchFilters) -> list[T]:
        tiers = set(filters.tiers)
        sources = {s.lower() for s in filters.sources}
        types = {t.lower() for t in filters.types}

        candidates = [
            item for item in self._items
            if self._matches_tier(item, tiers)
            and self._matches_source(item, sources)
            and self._matches_type(item, types)
        ]

        query = filters.query.strip()
        if not query:
            return candidates

        scored: list[tuple[float, T]] = []
        for item in candidates:
            score = self.score_item(item, query)
            if score > 0:
                scored.append((score, item))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        logger.debug(f"🔎 Query '{query}' matched {len(scored)}/{len(self._items)} items")
        return [item for _, item in scored]

    @staticmethod
    def _matches_tier(item: Any, tiers: set[str]) -> bool:
        if not tiers:
            return True
        return _item_tier(item) in tiers

    @staticmethod
    def _matches_source(item: Any, sources: set[str]) -> bool:
        if not sources:
            return True
        return _item_source(item).lower() in sources

    @staticmethod
    def _matches_type(item: Any, types: set[str]) -> bool:
        if not types:
            return True

        item_type = _item_type(item).lower()
        display_type = _item_display_type(item).lower()

        if item_type in types or (display_type and display_type in types):
            return True

        # Horde sub-variants like "Horde (2/HP)" belong to the horde family
        if HORDE_TYPE in types:
            return item_type == HORDE_TYPE or item_type.startswith(f"{HORDE_TYPE} (")

        return False
