"""Base skill contract for column-arithmetic problems.

Every operation-specific skill (ColumnAddition, ShortDivision, ...)
subclasses SkillContract and overrides the relevant methods.
"""

import random

from column_tutor.models.problem import MathColumn, MathProblem

PLACE_NAMES = ["Ones", "Tens", "Hundreds", "Thousands", "Ten thousands"]


def place_name(column_index: int) -> str:
    if column_index < len(PLACE_NAMES):
        return PLACE_NAMES[column_index]
    return f"10^{column_index}"


class SkillContract:
    skill_tag: str = ""
    operation: str = ""

    def build_operands(
        self,
        rng: random.Random,
        operand_range: tuple[int, int],
        include_borrowing: bool | None = None,
    ) -> tuple[int, int]:
        raise NotImplementedError

    def decompose(self, num1: int, num2: int) -> tuple[MathColumn, ...]:
        raise NotImplementedError

    def explain(self, problem: MathProblem) -> dict:
        """
        Deterministic explanation builder.
        Returns structured explanation:
        {
            "steps": [str, ...],
            "final_answer": str | None
        }
        """
        return {
            "steps": [],
            "final_answer": None,
        }
