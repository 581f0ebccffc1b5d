"""
Persistence for user-authored cards.

All custom adversaries and environments live in a single JSON sidecar
file. Older plugin releases kept them under several legacy keys; those
are migrated into the unified arrays on load and on import.
"""

import json
import logging
import time
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import Adversary, Environment

logger = logging.getLogger("daggerforge.storage")

STORAGE_VERSION = "2.0"
DATA_FILENAME = "data.json"

LEGACY_ADVERSARY_KEYS = ("custom_Adversaries", "incredible_Adversaries")
LEGACY_ENVIRONMENT_KEYS = ("custom_Environments", "incredible_Environments")
# Cards stored under this key predate the source field
LEGACY_BROSKIES_KEY = "custom_Broskies"
LEGACY_BROSKIES_SOURCE = "broskies"


def _now_ms() -> int:
    return int(time.time() * 1000)


class DataManagerError(Exception):
    """Error reading or writing the custom card store."""
    pass


class StoredData(BaseModel):
    """On-disk layout of the card store."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = STORAGE_VERSION
    adversaries: list[Adversary] = Field(default_factory=list)
    environments: list[Environment] = Field(default_factory=list)
    last_updated: int = Field(default_factory=_now_ms, alias="lastUpdated")


def _collect_legacy(raw: dict[str, Any]) -> tuple[list[dict], list[dict]]:
    """Gather cards stored under legacy keys into adversary/environment lists."""
    adversaries: list[dict] = []
    environments: list[dict] = []

    for key in LEGACY_ADVERSARY_KEYS:
        if isinstance(raw.get(key), list):
            adversaries.extend(raw[key])
    if isinstance(raw.get(LEGACY_BROSKIES_KEY), list):
        adversaries.extend(
            {**card, "source": LEGACY_BROSKIES_SOURCE} for card in raw[LEGACY_BROSKIES_KEY]
        )

    for key in LEGACY_ENVIRONMENT_KEYS:
        if isinstance(raw.get(key), list):
            environments.extend(raw[key])

    return adversaries, environments


class DataManager:
    """Stores custom adversaries and environments in a JSON file.

    Cards are addressed by their index in the stored arrays, matching
    the order they were added in.
    """

    def __init__(self, data_dir: str | Path = "daggerforge_data", filename: str = DATA_FILENAME):
        self.data_dir = Path(data_dir)
        self.data_file = self.data_dir / filename
        self._data = StoredData()
        logger.debug(f"📂 DataManager using {self.data_file}")

    # ------------------------------------------------------------------ #
    # Load / save
    # ------------------------------------------------------------------ #

    def load(self) -> None:
        """Load the store from disk, migrating legacy keys.

        A missing file leaves the store empty and writes nothing.

        Raises:
            DataManagerError: If the file exists but is not a valid store.
        """
        if not self.data_file.exists():
            logger.debug("📂 No card store on disk yet")
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                saved = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error loading card store {self.data_file}: {e}")
            raise DataManagerError(f"Could not read {self.data_file}: {e}") from e

        if not saved:
            return
        if not isinstance(saved, dict):
            raise DataManagerError(f"Invalid card store {self.data_file}: expected a JSON object")

        legacy_adversaries, legacy_environments = _collect_legacy(saved)
        base = {
            key: value for key, value in saved.items()
            if key in ("version", "adversaries", "environments", "lastUpdated")
        }

        try:
            self._data = StoredData.model_validate(base)
            self._data.adversaries.extend(Adversary.model_validate(a) for a in legacy_adversaries)
            self._data.environments.extend(Environment.model_validate(e) for e in legacy_environments)
        except ValidationError as e:
            logger.error(f"❌ Invalid card store {self.data_file}: {e}")
            raise DataManagerError(f"Invalid card store {self.data_file}: {e}") from e

        if legacy_adversaries or legacy_environments:
            logger.info(
                f"📦 Migrated {len(legacy_adversaries)} adversaries and "
                f"{len(legacy_environments)} environments from legacy keys"
            )

        self._save()
        logger.debug(
            f"✅ Loaded {len(self._data.adversaries)} adversaries, "
            f"{len(self._data.environments)} environments"
        )

    def _save(self) -> None:
        self._data.last_updated = _now_ms()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.data_file, "w", encoding="utf-8") as f:
            json.dump(self._dump(), f, indent=2)

    def _dump(self) -> dict[str, Any]:
        return {
            "version": self._data.version,
            "adversaries": [a.to_dict() for a in self._data.adversaries],
            "environments": [e.to_dict() for e in self._data.environments],
            "lastUpdated": self._data.last_updated,
        }

    # ------------------------------------------------------------------ #
    # Adversaries
    # ------------------------------------------------------------------ #

    def add_adversary(self, adversary: Adversary) -> None:
        self._data.adversaries.append(adversary)
        self._save()
        logger.info(f"✅ Added adversary '{adversary.name}'")

    def get_adversaries(self) -> list[Adversary]:
        return self._data.adversaries

    def get_adversaries_by_source(self, source: str) -> list[Adversary]:
        return [a for a in self._data.adversaries if a.source.lower() == source.lower()]

    def update_adversary(self, index: int, adversary: Adversary) -> bool:
        """Replace the adversary at ``index``. Out-of-range indexes are ignored."""
        if index < 0 or index >= len(self._data.adversaries):
            logger.warning(f"⚠️ No adversary at index {index}")
            return False
        self._data.adversaries[index] = adversary
        self._save()
        return True

    def delete_adversary(self, index: int) -> bool:
        """Remove the adversary at ``index``. Out-of-range indexes are ignored."""
        if index < 0 or index >= len(self._data.adversaries):
            logger.warning(f"⚠️ No adversary at index {index}")
            return False
        removed = self._data.adversaries.pop(index)
        self._save()
        logger.info(f"🗑️ Deleted adversary '{removed.name}'")
        return True

    def search_adversaries(self, query: str) -> list[Adversary]:
        query_lower = query.lower()
        return [a for a in self._data.adversaries if query_lower in a.name.lower()]

    # ------------------------------------------------------------------ #
    # Environments
    # ------------------------------------------------------------------ #

    def add_environment(self, environment: Environment) -> None:
        self._data.environments.append(environment)
        self._save()
        logger.info(f"✅ Added environment '{environment.name}'")

    def get_environments(self) -> list[Environment]:
        return self._data.environments

    def get_environments_by_source(self, source: str) -> list[Environment]:
        return [e for e in self._data.environments if e.source.lower() == source.lower()]

    def update_environment(self, index: int, environment: Environment) -> bool:
        """Replace the environment at ``index``. Out-of-range indexes are ignored."""
        if index < 0 or index >= len(self._data.environments):
            logger.warning(f"⚠️ No environment at index {index}")
            return False
        self._data.environments[index] = environment
        self._save()
        return True

    def delete_environment(self, index: int) -> bool:
        """Remove the environment at ``index``. Out-of-range indexes are ignored."""
        if index < 0 or index >= len(self._data.environments):
            logger.warning(f"⚠️ No environment at index {index}")
            return False
        removed = self._data.environments.pop(index)
        self._save()
        logger.info(f"🗑️ Deleted environment '{removed.name}'")
        return True

    def search_environments(self, query: str) -> list[Environment]:
        query_lower = query.lower()
        return [e for e in self._data.environments if query_lower in e.name.lower()]

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def export_data(self) -> str:
        """Serialise the whole store as indented JSON."""
        return json.dumps(self._dump(), indent=2)

    def import_data(self, json_string: str) -> tuple[int, int]:
        """Append cards from an exported (or legacy) JSON document.

        Returns:
            Tuple of (adversaries_imported, environments_imported).

        Raises:
            DataManagerError: If the document is not valid JSON or holds invalid cards.
        """
        try:
            imported = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise DataManagerError(f"Import is not valid JSON: {e}") from e
        if not isinstance(imported, dict):
            raise DataManagerError("Import must be a JSON object")

        legacy_adversaries, legacy_environments = _collect_legacy(imported)
        raw_adversaries = list(imported.get("adversaries") or []) + legacy_adversaries
        raw_environments = list(imported.get("environments") or []) + legacy_environments

        try:
            adversaries = [Adversary.model_validate(a) for a in raw_adversaries]
            environments = [Environment.model_validate(e) for e in raw_environments]
        except ValidationError as e:
            raise DataManagerError(f"Import contains invalid cards: {e}") from e

        self._data.adversaries.extend(adversaries)
        self._data.environments.extend(environments)
        self._save()
        logger.info(f"📥 Imported {len(adversaries)} adversaries and {len(environments)} environments")
        return len(adversaries), len(environments)

    def clear_all_data(self) -> None:
        self._data = StoredData()
        self._save()
        logger.info("🧹 Cleared all custom cards")

    def delete_data_file(self) -> None:
        """Reset the in-memory store and remove the file from disk."""
        self._data = StoredData()
        self.data_file.unlink(missing_ok=True)
        logger.info(f"🗑️ Deleted card store {self.data_file}")

    def get_statistics(self) -> dict[str, Any]:
        return {
            "total_adversaries": len(self._data.adversaries),
            "adversaries_by_source": self._group_by_source(self._data.adversaries),
            "total_environments": len(self._data.environments),
            "environments_by_source": self._group_by_source(self._data.environments),
            "last_updated": datetime.fromtimestamp(self._data.last_updated / 1000).isoformat(timespec="seconds"),
            "version": self._data.version,
        }

    @staticmethod
    def _group_by_source(cards: list[Adversary] | list[Environment]) -> dict[str, int]:
        return dict(Counter(card.source or "unknown" for card in cards))
