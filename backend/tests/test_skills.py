"""
Tests for the skill registry and deterministic step-by-step explanations.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from column_tutor.services.problem_factory import create_problem
from column_tutor.skills.base import place_name
from column_tutor.skills.registry import SKILL_REGISTRY, get_contract


def _explain(num1, num2, operation):
    return get_contract(operation).explain(create_problem("0", num1, num2, operation))


class TestRegistry:
    def test_every_operation_registered(self):
        assert set(SKILL_REGISTRY) == {"add", "subtract", "multiply", "divide"}

    def test_contract_operation_matches_key(self):
        for op, contract in SKILL_REGISTRY.items():
            assert contract.operation == op

    def test_unknown_operation(self):
        with pytest.raises(ValueError):
            get_contract("power")

    def test_place_names(self):
        assert place_name(0) == "Ones"
        assert place_name(3) == "Thousands"
        assert place_name(7) == "10^7"


class TestExplain:
    def test_addition_with_carry(self):
        out = _explain(27, 15, "add")
        assert out["final_answer"] == "42"
        assert out["steps"] == [
            "Ones: 7 + 5 = 12 → write 2, carry 1",
            "Tens: 2 + 1 + 1 (carried) = 4 → write 4",
        ]

    def test_subtraction_with_borrow(self):
        out = _explain(52, 27, "subtract")
        assert out["final_answer"] == "25"
        assert "borrow 1 from tens" in out["steps"][0]
        assert out["steps"][1] == "Tens: 5 − 1 (lent) = 4; 4 − 2 = 2"

    def test_multiplication_overflow(self):
        out = _explain(47, 6, "multiply")
        assert out["final_answer"] == "282"
        assert out["steps"][1] == "Tens: 4 × 6 = 24, + 4 (carried) = 28 → write 8, carry 2"
        assert out["steps"][2] == "Hundreds: bring down carry 2"

    def test_division_with_remainder(self):
        out = _explain(36, 5, "divide")
        assert out["steps"] == ["3 ÷ 5 = 0 remainder 3", "36 ÷ 5 = 7 remainder 1"]
        assert out["final_answer"] == "7 remainder 1"

    def test_exact_division(self):
        assert _explain(84, 4, "divide")["final_answer"] == "21"

    @pytest.mark.parametrize("op", ["add", "subtract", "multiply", "divide"])
    def test_one_step_per_column(self, op):
        problem = create_problem("0", 4827, 6, op)
        out = get_contract(op).explain(problem)
        assert len(out["steps"]) == len(problem.columns)
