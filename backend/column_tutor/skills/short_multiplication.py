"""Multiplication by a single-digit multiplier — SkillContract implementation."""

from .base import SkillContract, place_name
from column_tutor.models.problem import MathColumn, MathProblem
from column_tutor.utils.digits import digits_low_to_high


class ShortMultiplicationContract(SkillContract):
    skill_tag = "short_multiply"
    operation = "multiply"

    def build_operands(self, rng, operand_range, include_borrowing=None):
        low, high = operand_range
        return rng.randint(low, high), rng.randint(2, 9)

    def decompose(self, num1: int, num2: int) -> tuple[MathColumn, ...]:
        columns = []
        carry = 0
        for d1 in digits_low_to_high(num1):
            product = d1 * num2 + carry
            columns.append(MathColumn(
                digit1=d1,
                correct_sum_digit=product % 10,
                correct_carry_in=carry,
                correct_carry_out=product // 10,
            ))
            carry = product // 10

        # Overflow column: no top digit, the final carry drops straight down
        if carry:
            columns.append(MathColumn(
                digit1=None,
                correct_sum_digit=carry,
                correct_carry_in=carry,
                correct_carry_out=0,
            ))
        return tuple(columns)

    def explain(self, problem: MathProblem) -> dict:
        steps = []
        for i, col in enumerate(problem.columns):
            if col.digit1 is None:
                steps.append(f"{place_name(i)}: bring down carry {col.correct_carry_in}")
                continue

            product = col.digit1 * problem.num2
            step = f"{place_name(i)}: {col.digit1} × {problem.num2} = {product}"
            if col.correct_carry_in:
                step += f", + {col.correct_carry_in} (carried) = {product + col.correct_carry_in}"
            step += f" → write {col.correct_sum_digit}"
            if col.correct_carry_out:
                step += f", carry {col.correct_carry_out}"
            steps.append(step)

        return {
            "steps": steps,
            "final_answer": str(problem.num1 * problem.num2),
        }
