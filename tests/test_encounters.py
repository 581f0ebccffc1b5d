"""Tests for battle point budgeting."""

import pytest

from daggerforge.encounters import (
    ADJUSTMENTS,
    SPEND_OPTIONS,
    EncounterBudget,
    InsufficientBattlePointsError,
    base_battle_points,
    role_cost,
)


class TestBaseBattlePoints:

    @pytest.mark.parametrize("pcs, expected", [(1, 5), (3, 11), (4, 14), (6, 20)])
    def test_formula(self, pcs, expected):
        assert base_battle_points(pcs) == expected

    def test_rejects_empty_party(self):
        with pytest.raises(ValueError):
            base_battle_points(0)


class TestRoleCost:

    @pytest.mark.parametrize("role, cost", [
        ("Minion", 1), ("Social", 1), ("Support", 1), ("Horde", 2),
        ("Ranged", 2), ("Skulk", 2), ("Standard", 2), ("Leader", 3),
        ("Bruiser", 4), ("Solo", 5),
    ])
    def test_costs(self, role, cost):
        assert role_cost(role) == cost

    def test_qualified_role(self):
        assert role_cost("Horde (10/HP)") == 2
        assert role_cost("Leader (Umbra-Touched)") == 3

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            role_cost("Dragon")

    def test_tables_match_costs(self):
        assert [o.value for o in SPEND_OPTIONS] == [1, 1, 2, 3, 4, 5]
        assert sum(a.value for a in ADJUSTMENTS) == -1


class TestEncounterBudget:
    """Tests for EncounterBudget state."""

    def test_calculate_base_resets_entries(self):
        budget = EncounterBudget()
        budget.calculate_base(4)
        budget.adjust(2, "More dangerous/longer")
        budget.spend(5, "Solo")
        budget.calculate_base()
        assert budget.base_bp == 14
        assert budget.adjustments == []
        assert budget.spent == []

    def test_invalid_party_size_leaves_budget_unchanged(self):
        """A rejected party size keeps the previous party and budget."""
        budget = EncounterBudget()
        budget.calculate_base(4)
        budget.spend(5, "Solo")
        with pytest.raises(ValueError):
            budget.calculate_base(0)
        assert budget.pc_count == 4
        assert budget.base_bp == 14
        assert [s.value for s in budget.spent] == [5]
        assert budget.totals().remaining == 9

    def test_totals(self):
        budget = EncounterBudget(pc_count=4)
        budget.calculate_base()
        budget.adjust(-1, "Less difficult/shorter")
        budget.adjust(2, "More dangerous/longer")
        budget.spend(4, "Bruiser")
        totals = budget.totals()
        assert totals.base == 14
        assert totals.total_adjustments == 1
        assert totals.total_spent == 4
        assert totals.remaining == 11

    def test_spend_returns_remaining(self):
        budget = EncounterBudget()
        budget.calculate_base(3)
        assert budget.spend(5, "Solo") == 6

    def test_overspend_raises_and_records_nothing(self):
        budget = EncounterBudget()
        budget.calculate_base(1)
        budget.spend(4, "Bruiser")
        with pytest.raises(InsufficientBattlePointsError) as exc_info:
            budget.spend(2, "Horde")
        assert exc_info.value.remaining == 1
        assert exc_info.value.cost == 2
        assert len(budget.spent) == 1

    def test_exact_spend_allowed(self):
        budget = EncounterBudget()
        budget.calculate_base(1)
        assert budget.spend(5, "Solo") == 0

    def test_spend_role_is_all_or_nothing(self):
        budget = EncounterBudget()
        budget.calculate_base(3)
        with pytest.raises(InsufficientBattlePointsError):
            budget.spend_role("Bruiser", count=3)
        assert budget.spent == []
        assert budget.spend_role("Minion", count=3) == 8

    def test_reset_keeps_party_size(self):
        budget = EncounterBudget()
        budget.calculate_base(5)
        budget.spend(1)
        budget.reset()
        assert budget.pc_count == 5
        assert budget.totals().remaining == 0
