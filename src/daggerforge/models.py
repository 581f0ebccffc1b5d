"""
Card data models for DaggerForge adversaries and environments.

Field names are snake_case in Python and serialise with the camelCase
keys used by the stored JSON (``thresholdMajor``, ``displayType`` ...).
Unknown keys are kept so content packs can carry extra data.
"""

import time
from typing import Any

import shortuuid
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ADVERSARY_ID_PREFIX = "CUA"
ENVIRONMENT_ID_PREFIX = "CUE"


def _new_card_id(prefix: str) -> str:
    timestamp = int(time.time() * 1000)
    suffix = shortuuid.random(length=8).lower()
    return f"{prefix}_{timestamp}_{suffix}"


def new_adversary_id() -> str:
    """Generate a unique custom adversary ID (``CUA_<ms>_<random>``)."""
    return _new_card_id(ADVERSARY_ID_PREFIX)


def new_environment_id() -> str:
    """Generate a unique custom environment ID (``CUE_<ms>_<random>``)."""
    return _new_card_id(ENVIRONMENT_ID_PREFIX)


def extract_base_type(full_type: str) -> str:
    """Strip a parenthetical qualifier: "Leader (Umbra-Touched)" -> "Leader"."""
    paren_index = full_type.find("(")
    if paren_index == -1:
        return full_type.strip()
    return full_type[:paren_index].strip()


class CardModel(BaseModel):
    """Base for stored card records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        """Dump with the stored camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AdversaryFeature(CardModel):
    """A feature (action, reaction or passive) on an adversary card."""
    name: str = ""
    type: str = ""
    cost: str = ""
    desc: str = ""


class Adversary(CardModel):
    """An adversary stat block."""
    id: str = Field(default_factory=new_adversary_id)
    name: str = Field(description="Adversary name")
    tier: str = Field(default="1", description="Tier 1-4")
    type: str = Field(default="", description="Base role, e.g. Bruiser or Solo")
    display_type: str | None = Field(default=None, description="Full type label including any qualifier")
    desc: str = ""
    motives: str = ""
    difficulty: str = ""
    threshold_major: str = ""
    threshold_severe: str = ""
    hp: str = ""
    stress: str = ""
    atk: str = ""
    weapon_name: str = ""
    weapon_range: str = ""
    weapon_damage: str = ""
    xp: str = ""
    count: str | None = None
    source: str = "core"
    features: list[AdversaryFeature] = Field(default_factory=list)

    @field_validator("tier", mode="before")
    @classmethod
    def _tier_as_string(cls, value: Any) -> str:
        return str(value)


class EnvironmentFeature(CardModel):
    """A feature on an environment card."""
    name: str = ""
    type: str = ""
    text: str = ""
    cost: str | None = None
    bullets: list[str] | None = None
    text_after: str | None = None
    questions: list[str] = Field(default_factory=list)


class Environment(CardModel):
    """An environment stat block."""
    id: str = Field(default_factory=new_environment_id)
    name: str = Field(description="Environment name")
    tier: int = Field(default=1, ge=1, description="Tier 1-4")
    type: str = Field(default="", description="Environment role, e.g. Exploration or Social")
    display_type: str | None = None
    desc: str = ""
    impulse: str = ""
    difficulty: str = ""
    potential_adversaries: str = ""
    source: str = "core"
    features: list[EnvironmentFeature] = Field(default_factory=list)


def _parse_tier(raw_tier: Any) -> int:
    try:
        return int(raw_tier)
    except (TypeError, ValueError):
        return 1


def _split_type(raw: dict[str, Any]) -> tuple[str, str | None]:
    full_type = raw.get("type") or ""
    base_type = extract_base_type(full_type)
    display_type = raw.get("displayType") or raw.get("display_type")
    if display_type is None and full_type != base_type:
        display_type = full_type
    return base_type, display_type


def normalise_adversary(raw: dict[str, Any]) -> Adversary:
    """Build an Adversary from a loosely-shaped record.

    Missing fields are filled, the tier is coerced to a whole number, a
    qualified type is split into base type plus ``display_type``, and an
    ID is generated when absent.
    """
    base_type, display_type = _split_type(raw)
    raw_features = raw.get("features")
    if not isinstance(raw_features, list):
        raw_features = []
    data = dict(raw)
    data.pop("display_type", None)
    data.update(
        id=raw.get("id") or new_adversary_id(),
        name=raw.get("name") or "",
        type=base_type,
        displayType=display_type,
        tier=str(_parse_tier(raw.get("tier"))),
        source=raw.get("source") or "core",
        features=[
            {
                "name": f.get("name") or "",
                "type": f.get("type") or "",
                "cost": f.get("cost") or "",
                "desc": f.get("desc") or "",
            }
            for f in raw_features
            if isinstance(f, dict)
        ],
    )
    return Adversary.model_validate(data)


def normalise_environment(raw: dict[str, Any]) -> Environment:
    """Build an Environment from a loosely-shaped record."""
    base_type, display_type = _split_type(raw)
    data = dict(raw)
    data.pop("display_type", None)
    data.update(
        id=raw.get("id") or new_environment_id(),
        name=raw.get("name") or "",
        type=base_type,
        displayType=display_type,
        tier=max(1, _parse_tier(raw.get("tier"))),
        source=raw.get("source") or "core",
        features=raw.get("features") or [],
    )
    return Environment.model_validate(data)
