"""Column addition with carry — SkillContract implementation."""

from .base import SkillContract, place_name
from column_tutor.models.problem import MathColumn, MathProblem
from column_tutor.utils.digits import digit_count, digits_low_to_high


class ColumnAdditionContract(SkillContract):
    skill_tag = "column_add"
    operation = "add"

    def build_operands(self, rng, operand_range, include_borrowing=None):
        low, high = operand_range
        return rng.randint(low, high), rng.randint(low, high)

    def decompose(self, num1: int, num2: int) -> tuple[MathColumn, ...]:
        top = digits_low_to_high(num1)
        bottom = digits_low_to_high(num2)
        width = max(len(top), len(bottom), digit_count(num1 + num2))

        columns = []
        carry = 0
        for i in range(width):
            d1 = top[i] if i < len(top) else None
            d2 = bottom[i] if i < len(bottom) else None
            total = (d1 or 0) + (d2 or 0) + carry
            columns.append(MathColumn(
                digit1=d1,
                digit2=d2,
                correct_sum_digit=total % 10,
                correct_carry_in=carry,
                correct_carry_out=total // 10,
            ))
            carry = total // 10
        return tuple(columns)

    def explain(self, problem: MathProblem) -> dict:
        steps = []
        for i, col in enumerate(problem.columns):
            parts = [str(col.digit1 or 0), str(col.digit2 or 0)]
            if col.correct_carry_in:
                parts.append(f"{col.correct_carry_in} (carried)")
            total = (col.digit1 or 0) + (col.digit2 or 0) + col.correct_carry_in
            step = f"{place_name(i)}: {' + '.join(parts)} = {total} → write {col.correct_sum_digit}"
            if col.correct_carry_out:
                step += f", carry {col.correct_carry_out}"
            steps.append(step)

        return {
            "steps": steps,
            "final_answer": str(problem.num1 + problem.num2),
        }
