"""
Dice rolling for DaggerForge.

Rolls expressions such as ``2d6 + 1d8 + 3`` and keeps a session log,
mirroring the floating dice roller: dice are queued, rolled together,
and each roll is appended to the log.
"""

import logging
import random
import re

from pydantic import BaseModel, Field

logger = logging.getLogger("daggerforge.dice")

STANDARD_DICE = [4, 6, 8, 10, 12, 20, 100]

# Upper bound on dice rolled by a single term
MAX_DICE_PER_TERM = 1000

_TERM_PATTERN = re.compile(r"^(\d*)d(\d+)$")


class DiceNotationError(ValueError):
    """Raised when a dice expression cannot be parsed."""
    pass


class DiceGroup(BaseModel):
    """One term of a dice expression and its outcome."""
    notation: str = Field(description="Term as written, e.g. '2d6' or '-3'")
    sign: int = Field(description="+1 or -1")
    rolls: list[int] = Field(default_factory=list, description="Individual die results; empty for constants")
    value: int = Field(description="Signed contribution to the total")


class DiceRollResult(BaseModel):
    """Outcome of rolling a full dice expression."""
    expression: str
    groups: list[DiceGroup]
    details: str = Field(description="Human-readable breakdown, e.g. '[3, 5] + [7] + 2'")
    total: int


def _split_terms(expression: str) -> list[tuple[int, str]]:
    compact = expression.lower().replace(" ", "")
    if not compact:
        raise DiceNotationError("Empty dice expression")

    terms: list[tuple[int, str]] = []
    for match in re.finditer(r"([+-]?)([^+-]+)", compact):
        sign = -1 if match.group(1) == "-" else 1
        terms.append((sign, match.group(2)))

    # Reject stray operators like "2d6++" or a trailing "-"
    rebuilt = "".join(("-" if s < 0 else "+") + t for s, t in terms)
    if rebuilt.lstrip("+") != compact.lstrip("+"):
        raise DiceNotationError(f"Invalid dice expression: {expression!r}")
    return terms


def roll_dice(expression: str, rng: random.Random | None = None) -> DiceRollResult:
    """Roll a dice expression.

    Args:
        expression: Terms like ``NdS`` or whole numbers joined by ``+``/``-``.
            A missing count (``d20``) means one die.
        rng: Optional random generator, mainly for deterministic tests.

    Returns:
        DiceRollResult with per-term rolls, a breakdown string and the total.

    Raises:
        DiceNotationError: If any term is malformed or a die has fewer than 1 side.
    """
    rng = rng or random.Random()
    groups: list[DiceGroup] = []

    for sign, term in _split_terms(expression):
        if term.isdigit():
            groups.append(DiceGroup(notation=term, sign=sign, value=sign * int(term)))
            continue

        match = _TERM_PATTERN.match(term)
        if not match:
            raise DiceNotationError(f"Invalid dice term: {term!r}")

        count = int(match.group(1) or 1)
        sides = int(match.group(2))
        if count < 1 or sides < 1:
            raise DiceNotationError(f"Dice term must roll at least one die with one side: {term!r}")
        if count > MAX_DICE_PER_TERM:
            raise DiceNotationError(f"Dice term rolls more than {MAX_DICE_PER_TERM} dice: {term!r}")

        rolls = [rng.randint(1, sides) for _ in range(count)]
        groups.append(DiceGroup(notation=term, sign=sign, rolls=rolls, value=sign * sum(rolls)))

    parts: list[str] = []
    for i, group in enumerate(groups):
        shown = str(group.rolls) if group.rolls else group.notation
        if i == 0:
            parts.append(f"-{shown}" if group.sign < 0 else shown)
        else:
            parts.append(f"{'-' if group.sign < 0 else '+'} {shown}")

    total = sum(group.value for group in groups)
    return DiceRollResult(
        expression=expression.strip(),
        groups=groups,
        details=" ".join(parts),
        total=total,
    )


class DiceRoller:
    """Queue of dice to roll together plus a running log of results."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self.queue: list[str] = []
        self.log: list[str] = []

    def add(self, sides: int, count: int = 1) -> str:
        """Queue ``count`` dice with ``sides`` sides; returns the queued expression."""
        if count < 1:
            count = 1
        notation = f"{count}d{sides}"
        self.queue.append(notation)
        return notation

    def remove(self, index: int) -> None:
        if 0 <= index < len(self.queue):
            self.queue.pop(index)

    def roll_all(self) -> DiceRollResult | None:
        """Roll every queued die, log the outcome and empty the queue."""
        if not self.queue:
            return None

        expression = " + ".join(self.queue)
        result = roll_dice(expression, rng=self._rng)
        self.log.append(f"{expression} -> {result.details} = {result.total}")
        logger.debug(f"🎲 {self.log[-1]}")
        self.queue.clear()
        return result

    def clear_log(self) -> None:
        self.log.clear()
