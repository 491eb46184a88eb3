"""Short division by a single-digit divisor — SkillContract implementation."""

from .base import SkillContract
from column_tutor.models.problem import MathColumn, MathProblem
from column_tutor.utils.digits import digits_high_to_low


class ShortDivisionContract(SkillContract):
    skill_tag = "short_divide"
    operation = "divide"

    def build_operands(self, rng, operand_range, include_borrowing=None):
        low, high = operand_range
        divisor = rng.randint(2, 9)
        dividend = rng.randint(low, high)
        return dividend, divisor

    def decompose(self, num1: int, num2: int) -> tuple[MathColumn, ...]:
        # Computed left to right, stored units-first like every other operation
        steps = []
        remainder = 0
        for d in digits_high_to_low(num1):
            value = remainder * 10 + d
            next_remainder = value % num2
            steps.append(MathColumn(
                digit1=d,
                correct_sum_digit=value // num2,
                correct_carry_in=remainder,
                correct_carry_out=next_remainder,
            ))
            remainder = next_remainder
        return tuple(reversed(steps))

    def explain(self, problem: MathProblem) -> dict:
        steps = []
        for col in reversed(problem.columns):
            value = col.correct_carry_in * 10 + (col.digit1 or 0)
            steps.append(
                f"{value} ÷ {problem.num2} = {col.correct_sum_digit}"
                f" remainder {col.correct_carry_out}"
            )

        quotient, remainder = divmod(problem.num1, problem.num2)
        final_answer = str(quotient)
        if remainder:
            final_answer += f" remainder {remainder}"
        return {
            "steps": steps,
            "final_answer": final_answer,
        }
