"""
Content packs for DaggerForge.

A content pack is a JSON or YAML file holding adversary and environment
cards that share a source label. The built-in core content ships as a
pack inside the package; additional packs can be dropped into a
directory and are discovered at startup.

Expected file structure:
```json
{
  "name": "The Void",
  "source": "void",
  "adversaries": [...],
  "environments": [...]
}
```
"""

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import Adversary, Environment, normalise_adversary, normalise_environment

logger = logging.getLogger("daggerforge.packs")

SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}
BUILTIN_PACK_FILE = "core.json"


class ContentPackError(Exception):
    """Error loading or parsing a content pack."""
    pass


@dataclass
class ContentPack:
    """Cards loaded from one pack file.

    Attributes:
        name: Human-readable pack name
        source: Source label applied to cards that do not set one
        adversaries: Normalised adversary cards
        environments: Normalised environment cards
        path: File the pack was loaded from, None for built-in data
    """
    name: str
    source: str
    adversaries: list[Adversary] = field(default_factory=list)
    environments: list[Environment] = field(default_factory=list)
    path: Path | None = None


def parse_pack(data: Any, origin: str = "<memory>") -> ContentPack:
    """Build a ContentPack from already-decoded pack data.

    Raises:
        ContentPackError: If the structure or any card is invalid.
    """
    if not isinstance(data, dict):
        raise ContentPackError(f"{origin}: pack must be a mapping, got {type(data).__name__}")

    source = data.get("source")
    if not source:
        raise ContentPackError(f"{origin}: pack is missing a 'source' label")
    name = data.get("name") or source

    try:
        adversaries = [
            normalise_adversary({**raw, "source": raw.get("source") or source})
            for raw in data.get("adversaries") or []
        ]
        environments = [
            normalise_environment({**raw, "source": raw.get("source") or source})
            for raw in data.get("environments") or []
        ]
    except (ValidationError, TypeError, AttributeError) as e:
        raise ContentPackError(f"{origin}: invalid card data: {e}") from e

    return ContentPack(name=name, source=source, adversaries=adversaries, environments=environments)


def load_pack(path: Path | str) -> ContentPack:
    """Load a content pack from a JSON or YAML file.

    Raises:
        ContentPackError: If the file is missing, unsupported or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise ContentPackError(f"Content pack not found: {path}")
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ContentPackError(
            f"Unsupported content pack format: {path.suffix}. "
            f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ContentPackError(f"{path.name}: could not parse file: {e}") from e

    pack = parse_pack(data, origin=path.name)
    pack.path = path
    logger.debug(
        f"📦 Loaded pack '{pack.name}' ({len(pack.adversaries)} adversaries, "
        f"{len(pack.environments)} environments)"
    )
    return pack


def load_builtin_pack() -> ContentPack:
    """Load the core content shipped with the package."""
    text = resources.files("daggerforge.data").joinpath(BUILTIN_PACK_FILE).read_text(encoding="utf-8")
    return parse_pack(json.loads(text), origin=BUILTIN_PACK_FILE)


def discover_packs(directory: Path | str) -> list[ContentPack]:
    """Load every pack file in a directory, in filename order.

    Files that fail to load are logged and skipped so one broken pack
    does not hide the others.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug(f"📦 No pack directory at {directory}")
        return []

    packs: list[ContentPack] = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            continue
        try:
            packs.append(load_pack(path))
        except ContentPackError as e:
            logger.warning(f"⚠️ Skipping content pack {path.name}: {e}")
    return packs
