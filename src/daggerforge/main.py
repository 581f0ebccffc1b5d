"""
DaggerForge MCP Server
Browse, create and manage DaggerForge adversary and environment cards,
plus the dice roller and battle point calculator, as FastMCP tools.
"""

import json
import logging
import os
from pathlib import Path
from typing import Annotated, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field, ValidationError

from .browser import AdversaryBrowser, CardBrowser, EnvironmentBrowser
from .dice import DiceNotationError, roll_dice as roll_dice_expression
from .encounters import (
    EncounterBudget,
    InsufficientBattlePointsError,
    role_cost,
)
from .models import Adversary, Environment, normalise_adversary, normalise_environment
from .packs import discover_packs, load_builtin_pack
from .storage import DataManager, DataManagerError

logger = logging.getLogger("daggerforge")

logging.basicConfig(
    level=logging.DEBUG,
    )

if not load_dotenv():
    logger.warning("❌ .env file invalid or not found! Using default data directory.")

data_path = Path(os.getenv("DAGGERFORGE_DATA_DIR", "daggerforge_data")).resolve()
packs_path = Path(os.getenv("DAGGERFORGE_PACKS_DIR", str(data_path / "packs"))).resolve()
logger.debug(f"📂 Data path: {data_path}")

data_manager = DataManager(data_dir=data_path)
data_manager.load()

packs = [load_builtin_pack(), *discover_packs(packs_path)]
logger.debug(f"📦 {len(packs)} content packs loaded")

adversary_browser = AdversaryBrowser(packs, data_manager)
environment_browser = EnvironmentBrowser(packs, data_manager)

mcp = FastMCP(
    name="daggerforge"
)

logger.debug("✅ Server initialized, registering tools")


# ----------------------------------------------------------------------
# Formatting helpers
# ----------------------------------------------------------------------

def _format_adversary_line(adversary: Adversary) -> str:
    card_type = adversary.display_type or adversary.type
    return f"- **{adversary.name}** (Tier {adversary.tier} {card_type}, {adversary.source}): {adversary.desc}"


def _format_environment_line(environment: Environment) -> str:
    card_type = environment.display_type or environment.type
    return f"- **{environment.name}** (Tier {environment.tier} {card_type}, {environment.source}): {environment.desc}"


def _search_logic(
    browser: CardBrowser,
    query: str = "",
    tiers: list[str] | None = None,
    sources: list[str] | None = None,
    types: list[str] | None = None,
    limit: int = 20,
) -> str:
    """Apply a full filter set to a browser and format the visible cards."""
    browser.refresh()
    browser.engine.clear_filters()
    browser.engine.set_filters(
        query=query,
        tiers=tiers or [],
        sources=sources or [],
        types=types or [],
    )
    results = browser.results()

    if not results:
        return f"No {browser.kind} found matching your filters."

    formatter = _format_adversary_line if browser.kind == "adversaries" else _format_environment_line
    lines = [f"# Found {len(results)} {browser.kind}"]
    lines.extend(formatter(card) for card in results[:limit])
    if len(results) > limit:
        lines.append(f"\n_…and {len(results) - limit} more. Narrow your filters to see them._")
    return "\n".join(lines)


def _filter_options_logic(browser: CardBrowser) -> str:
    browser.refresh()
    facets = browser.facets()
    lines = [f"# Filter options for {browser.kind}"]
    for name, values in facets.items():
        lines.append(f"**{name.capitalize()}:** {', '.join(values) if values else '(none)'}")
    return "\n".join(lines)


def _statistics_logic(manager: DataManager) -> str:
    stats = manager.get_statistics()
    lines = [
        "# Custom card store",
        f"- Version: {stats['version']}",
        f"- Last updated: {stats['last_updated']}",
        f"- Adversaries: {stats['total_adversaries']}",
    ]
    for source, count in sorted(stats["adversaries_by_source"].items()):
        lines.append(f"  - {source}: {count}")
    lines.append(f"- Environments: {stats['total_environments']}")
    for source, count in sorted(stats["environments_by_source"].items()):
        lines.append(f"  - {source}: {count}")
    return "\n".join(lines)


def _create_adversary_logic(manager: DataManager, browser: CardBrowser, card: str) -> str:
    try:
        raw = json.loads(card)
        raw.setdefault("source", "custom")
        adversary = normalise_adversary(raw)
    except (json.JSONDecodeError, AttributeError, TypeError, ValidationError) as e:
        return f"❌ Invalid adversary: {e}"
    if not adversary.name:
        return "❌ Invalid adversary: a name is required"

    manager.add_adversary(adversary)
    browser.refresh()
    return f"✅ Saved adversary '{adversary.name}' ({adversary.id})"


def _create_environment_logic(manager: DataManager, browser: CardBrowser, card: str) -> str:
    try:
        raw = json.loads(card)
        raw.setdefault("source", "custom")
        environment = normalise_environment(raw)
    except (json.JSONDecodeError, AttributeError, TypeError, ValidationError) as e:
        return f"❌ Invalid environment: {e}"
    if not environment.name:
        return "❌ Invalid environment: a name is required"

    manager.add_environment(environment)
    browser.refresh()
    return f"✅ Saved environment '{environment.name}' ({environment.id})"


def _encounter_budget_logic(
    pc_count: int,
    adjustments: list[int] | None = None,
    roles: list[str] | None = None,
) -> str:
    budget = EncounterBudget()
    budget.calculate_base(pc_count)
    for value in adjustments or []:
        budget.adjust(value)

    lines = [f"# Battle points for {pc_count} PCs", f"- Base: {budget.base_bp}"]
    for role in roles or []:
        try:
            remaining = budget.spend(role_cost(role), label=role)
            lines.append(f"- {role}: -{role_cost(role)} (remaining {remaining})")
        except (ValueError, InsufficientBattlePointsError) as e:
            lines.append(f"- {role}: ❌ {e}")

    totals = budget.totals()
    lines.append(f"- Adjustments: {totals.total_adjustments:+d}")
    lines.append(f"- Spent: {totals.total_spent}")
    lines.append(f"- **Remaining: {totals.remaining}**")
    return "\n".join(lines)


# ----------------------------------------------------------------------
# Browse Tools
# ----------------------------------------------------------------------

@mcp.tool
def search_adversaries(
    query: Annotated[str, Field(description="Fuzzy text to match against name, type and description")] = "",
    tiers: Annotated[list[str] | None, Field(description="Tiers to include (e.g., ['1', '2'])")] = None,
    sources: Annotated[list[str] | None, Field(description="Sources to include (e.g., ['core', 'custom'])")] = None,
    types: Annotated[list[str] | None, Field(description="Types to include (e.g., ['Solo', 'Horde'])")] = None,
    limit: Annotated[int, Field(description="Maximum number of cards to list", ge=1)] = 20,
) -> str:
    """Search adversary cards with fuzzy text matching and tier/source/type filters."""
    return _search_logic(adversary_browser, query, tiers, sources, types, limit)


@mcp.tool
def search_environments(
    query: Annotated[str, Field(description="Fuzzy text to match against name, type and description")] = "",
    tiers: Annotated[list[str] | None, Field(description="Tiers to include (e.g., ['1'])")] = None,
    sources: Annotated[list[str] | None, Field(description="Sources to include")] = None,
    types: Annotated[list[str] | None, Field(description="Types to include (e.g., ['Social'])")] = None,
    limit: Annotated[int, Field(description="Maximum number of cards to list", ge=1)] = 20,
) -> str:
    """Search environment cards with fuzzy text matching and tier/source/type filters."""
    return _search_logic(environment_browser, query, tiers, sources, types, limit)


@mcp.tool
def list_filter_options(
    card_kind: Annotated[Literal["adversaries", "environments"], Field(description="Which cards to inspect")],
) -> str:
    """List the tiers, sources and types present in the loaded cards."""
    browser = adversary_browser if card_kind == "adversaries" else environment_browser
    return _filter_options_logic(browser)


# ----------------------------------------------------------------------
# Custom Card Tools
# ----------------------------------------------------------------------

@mcp.tool
def create_adversary(
    card: Annotated[str, Field(description="Adversary as a JSON object (name, tier, type, desc, hp, features, ...)")],
) -> str:
    """Save a custom adversary card."""
    return _create_adversary_logic(data_manager, adversary_browser, card)


@mcp.tool
def create_environment(
    card: Annotated[str, Field(description="Environment as a JSON object (name, tier, type, desc, impulse, features, ...)")],
) -> str:
    """Save a custom environment card."""
    return _create_environment_logic(data_manager, environment_browser, card)


@mcp.tool
def delete_custom_card(
    card_kind: Annotated[Literal["adversaries", "environments"], Field(description="Which store to delete from")],
    card_id: Annotated[str, Field(description="ID of the custom card to delete")],
) -> str:
    """Delete a custom card by ID."""
    if card_kind == "adversaries":
        cards = data_manager.get_adversaries()
        delete = data_manager.delete_adversary
        browser: CardBrowser = adversary_browser
    else:
        cards = data_manager.get_environments()
        delete = data_manager.delete_environment
        browser = environment_browser

    for index, card in enumerate(cards):
        if card.id == card_id:
            delete(index)
            browser.refresh()
            return f"🗑️ Deleted '{card.name}'"
    return f"❌ No custom {card_kind} card with ID '{card_id}'"


@mcp.tool
def data_statistics() -> str:
    """Summarise the custom card store."""
    return _statistics_logic(data_manager)


@mcp.tool
def export_custom_data() -> str:
    """Export all custom cards as JSON."""
    return data_manager.export_data()


@mcp.tool
def import_custom_data(
    data: Annotated[str, Field(description="JSON previously produced by export_custom_data (legacy layouts accepted)")],
) -> str:
    """Import custom cards from JSON."""
    try:
        adversary_count, environment_count = data_manager.import_data(data)
    except DataManagerError as e:
        return f"❌ Import failed: {e}"
    adversary_browser.refresh()
    environment_browser.refresh()
    return f"📥 Imported {adversary_count} adversaries and {environment_count} environments"


# ----------------------------------------------------------------------
# Utility Tools
# ----------------------------------------------------------------------

@mcp.tool
def roll_dice(
    expression: Annotated[str, Field(description="Dice expression (e.g., '2d6 + 1d8 + 3', '1d20')")],
) -> str:
    """Roll dice."""
    try:
        result = roll_dice_expression(expression)
    except DiceNotationError as e:
        return f"❌ {e}"
    return f"🎲 **{result.expression}** -> {result.details} = **{result.total}**"


@mcp.tool
def encounter_budget(
    pc_count: Annotated[int, Field(description="Number of player characters", ge=1)],
    adjustments: Annotated[list[int] | None, Field(description="Budget adjustments (e.g., [-1, 2])")] = None,
    roles: Annotated[list[str] | None, Field(description="Adversary roles to buy in order (e.g., ['Solo', 'Minion'])")] = None,
) -> str:
    """Calculate and spend a battle point budget for an encounter."""
    return _encounter_budget_logic(pc_count, adjustments, roles)


logger.debug("✅ All tools successfully registered. DaggerForge server running! 🗡️")

def main() -> None:
    """Main entry point for the DaggerForge MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
