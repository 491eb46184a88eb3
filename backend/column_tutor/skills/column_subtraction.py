"""Column subtraction with and without borrow — SkillContract implementation."""

import logging
import random

from .base import SkillContract, place_name
from column_tutor.models.problem import MathColumn, MathProblem
from column_tutor.utils.digits import (
    digit_count,
    digits_high_to_low,
    digits_low_to_high,
    requires_borrowing,
)

logger = logging.getLogger("columntutor.skills.subtraction")

MAX_NO_BORROW_ATTEMPTS = 100


def make_no_borrow_pair(
    rng: random.Random,
    low: int,
    high: int,
    max_attempts: int = MAX_NO_BORROW_ATTEMPTS,
) -> tuple[int, int]:
    """
    Build num1 > num2 where every aligned column has digit1 >= digit2.

    num2 is built digit by digit under num1, forcing at least one strictly
    smaller digit. num1 candidates like 10, 200, 3000 are skipped: their
    only borrow-free partners are multiples of the leading place, which
    leaves nothing below num1 once the leading digit is already 1.
    """
    for _ in range(max_attempts):
        num1 = rng.randint(low, high)
        top = digits_high_to_low(num1)
        multi_digit = len(top) > 1

        if multi_digit and not any(top[1:]):
            continue

        bottom = []
        made_smaller = False
        for i, d1 in enumerate(top):
            # num2 keeps num1's width, so its leading digit can't be 0
            min_digit = 1 if (i == 0 and multi_digit) else 0
            if d1 < min_digit:
                bottom.append(min_digit)
                continue

            if not made_smaller and d1 > min_digit:
                d2 = rng.randint(min_digit, d1 - 1)
                made_smaller = True
            else:
                d2 = rng.randint(min_digit, d1)
                if d2 < d1:
                    made_smaller = True
            bottom.append(d2)

        num2 = int("".join(str(d) for d in bottom)) or 1

        if 1 <= num2 < num1 and not requires_borrowing(num1, num2):
            return num1, num2

    width = digit_count(low)
    safe_digit = rng.randint(5, 8)
    num1 = int(str(safe_digit) * width)
    num2 = int("1" * width)
    logger.info(
        "No-borrow synthesis exhausted after %d attempts; falling back to %d - %d",
        max_attempts, max(num1, low), num2,
    )
    return max(num1, low), num2


class ColumnSubtractionContract(SkillContract):
    skill_tag = "column_subtract"
    operation = "subtract"

    def build_operands(self, rng, operand_range, include_borrowing=None):
        low, high = operand_range
        if include_borrowing is False:
            return make_no_borrow_pair(rng, low, high)

        num1 = rng.randint(low, high)
        num2 = rng.randint(1, num1 - 1)
        return num1, num2

    def decompose(self, num1: int, num2: int) -> tuple[MathColumn, ...]:
        # Answer row comes straight from the difference; borrowing is a
        # navigation concern and is read off digit1 < digit2 per column.
        top = digits_low_to_high(num1)
        bottom = digits_low_to_high(num2)
        result = digits_low_to_high(num1 - num2)
        width = max(len(top), len(bottom), len(result))

        columns = []
        for i in range(width):
            columns.append(MathColumn(
                digit1=top[i] if i < len(top) else None,
                digit2=bottom[i] if i < len(bottom) else None,
                correct_sum_digit=result[i] if i < len(result) else 0,
            ))
        return tuple(columns)

    def explain(self, problem: MathProblem) -> dict:
        steps = []
        lent = 0
        columns = problem.columns
        for i, col in enumerate(columns):
            d1 = (col.digit1 or 0) - lent
            d2 = col.digit2 or 0
            prefix = f"{place_name(i)}: "
            if lent:
                prefix += f"{col.digit1 or 0} − 1 (lent) = {d1}; "

            if d1 < d2 and i + 1 < len(columns):
                steps.append(
                    prefix
                    + f"{d1} < {d2}, borrow 1 from {place_name(i + 1).lower()}"
                    + f" → {d1 + 10} − {d2} = {d1 + 10 - d2}"
                )
                lent = 1
            else:
                steps.append(prefix + f"{d1} − {d2} = {d1 - d2}")
                lent = 0

        return {
            "steps": steps,
            "final_answer": str(problem.num1 - problem.num2),
        }
