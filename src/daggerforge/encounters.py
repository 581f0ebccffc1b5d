"""
Battle point budgeting for DaggerForge encounters.

A party of N player characters starts with ``3 * N + 2`` battle points.
The GM adjusts the budget for the kind of fight they want and then
spends points on adversaries by role.
"""

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger("daggerforge.encounters")


# =============================================================================
# Constants
# =============================================================================

BP_PER_PC = 3
BP_BASE_BONUS = 2

DEFAULT_PC_COUNT = 3


class BudgetOption(BaseModel):
    """A labelled adjustment or purchase from the battle guide."""
    value: int
    label: str


# Adjustments to the base budget
ADJUSTMENTS: list[BudgetOption] = [
    BudgetOption(value=-1, label="Less difficult/shorter"),
    BudgetOption(value=-2, label="2+ Solo adversaries"),
    BudgetOption(value=-2, label="+1d4 or +2 damage"),
    BudgetOption(value=1, label="Lower tier adversary"),
    BudgetOption(value=1, label="No Bruisers/Hordes/Leaders/Solos"),
    BudgetOption(value=2, label="More dangerous/longer"),
]

# Battle point cost of each adversary role
SPEND_OPTIONS: list[BudgetOption] = [
    BudgetOption(value=1, label="Minions (Party size)"),
    BudgetOption(value=1, label="Social / Support"),
    BudgetOption(value=2, label="Horde / Ranged / Skulk / Standard"),
    BudgetOption(value=3, label="Leader"),
    BudgetOption(value=4, label="Bruiser"),
    BudgetOption(value=5, label="Solo"),
]

ROLE_COSTS: dict[str, int] = {
    "minion": 1,
    "social": 1,
    "support": 1,
    "horde": 2,
    "ranged": 2,
    "skulk": 2,
    "standard": 2,
    "leader": 3,
    "bruiser": 4,
    "solo": 5,
}


class InsufficientBattlePointsError(Exception):
    """Raised when a purchase costs more than the remaining budget."""

    def __init__(self, cost: int, remaining: int):
        self.cost = cost
        self.remaining = remaining
        super().__init__(f"Not enough Battle Points: need {cost}, {remaining} remaining")


def base_battle_points(pc_count: int) -> int:
    """Starting budget for a party.

    Raises:
        ValueError: If pc_count < 1.
    """
    if pc_count < 1:
        raise ValueError(f"pc_count must be >= 1, got {pc_count}")
    return BP_PER_PC * pc_count + BP_BASE_BONUS


def role_cost(role: str) -> int:
    """Battle point cost for an adversary role, ignoring any qualifier.

    Raises:
        ValueError: If the role is unknown.
    """
    base_role = role.split("(", 1)[0].strip().lower()
    if base_role not in ROLE_COSTS:
        raise ValueError(f"Unknown adversary role: '{role}'. Must be one of: {', '.join(ROLE_COSTS)}")
    return ROLE_COSTS[base_role]


class BudgetEntry(BaseModel):
    value: int
    label: str


class BudgetTotals(BaseModel):
    """Snapshot of a budget's arithmetic."""
    base: int = Field(ge=0)
    total_adjustments: int
    total_spent: int = Field(ge=0)
    remaining: int


class EncounterBudget(BaseModel):
    """Running battle point budget for one encounter."""
    pc_count: int = Field(default=DEFAULT_PC_COUNT, ge=1)
    base_bp: int = Field(default=0, ge=0)
    adjustments: list[BudgetEntry] = Field(default_factory=list)
    spent: list[BudgetEntry] = Field(default_factory=list)

    def calculate_base(self, pc_count: int | None = None) -> int:
        """Set the base budget for the party and drop previous adjustments and purchases."""
        if pc_count is None:
            pc_count = self.pc_count
        base = base_battle_points(pc_count)
        self.pc_count = pc_count
        self.base_bp = base
        self.adjustments = []
        self.spent = []
        logger.debug(f"⚔️ Base budget for {self.pc_count} PCs: {self.base_bp} BP")
        return self.base_bp

    def adjust(self, value: int, reason: str = "") -> None:
        self.adjustments.append(BudgetEntry(value=value, label=reason))

    def spend(self, cost: int, label: str = "") -> int:
        """Spend battle points.

        Returns:
            Remaining battle points after the purchase.

        Raises:
            InsufficientBattlePointsError: If ``cost`` exceeds the remaining budget.
        """
        remaining = self.totals().remaining
        if remaining < cost:
            raise InsufficientBattlePointsError(cost, remaining)
        self.spent.append(BudgetEntry(value=cost, label=label))
        return remaining - cost

    def spend_role(self, role: str, count: int = 1) -> int:
        """Spend the cost of ``count`` adversaries of a role, all or nothing."""
        cost = role_cost(role)
        remaining = self.totals().remaining
        if remaining < cost * count:
            raise InsufficientBattlePointsError(cost * count, remaining)
        for _ in range(count):
            remaining = self.spend(cost, label=role)
        return remaining

    def totals(self) -> BudgetTotals:
        total_adjustments = sum(a.value for a in self.adjustments)
        total_spent = sum(s.value for s in self.spent)
        return BudgetTotals(
            base=self.base_bp,
            total_adjustments=total_adjustments,
            total_spent=total_spent,
            remaining=self.base_bp + total_adjustments - total_spent,
        )

    def reset(self) -> None:
        """Clear the budget but keep the party size."""
        self.base_bp = 0
        self.adjustments = []
        self.spent = []
