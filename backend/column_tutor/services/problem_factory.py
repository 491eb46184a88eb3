"""Problem construction — operands plus their column model, frozen together."""
from __future__ import annotations

import logging
import random
from typing import Optional

from column_tutor.models.problem import MathProblem
from column_tutor.services.column_decomposer import decompose
from column_tutor.services.operand_generator import generate_operands

logger = logging.getLogger("columntutor.problem_factory")


def tier_for_year(year: int) -> str:
    """School years 1-2 → easy, 3-4 → medium, 5 and up → pro."""
    if year >= 5:
        return "pro"
    if year >= 3:
        return "medium"
    return "easy"


def create_problem(problem_id: str, num1: int, num2: int, operation: str) -> MathProblem:
    return MathProblem(
        id=problem_id,
        num1=num1,
        num2=num2,
        operation=operation,
        columns=decompose(num1, num2, operation),
    )


def generate_problem(
    tier: str,
    index: int,
    operation: str,
    include_borrowing: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> MathProblem:
    num1, num2 = generate_operands(operation, tier, include_borrowing, rng)
    logger.debug("Generated %s problem #%d: %d, %d (tier=%s)", operation, index, num1, num2, tier)
    return create_problem(str(index), num1, num2, operation)


def generate_problem_for_year(
    year: int,
    index: int,
    operation: str,
    rng: Optional[random.Random] = None,
) -> MathProblem:
    return generate_problem(tier_for_year(year), index, operation, rng=rng)


def generate_problem_set(
    tier: str,
    count: int,
    operation: str,
    include_borrowing: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> list[MathProblem]:
    rng = rng or random.Random()
    return [
        generate_problem(tier, i, operation, include_borrowing, rng)
        for i in range(count)
    ]
