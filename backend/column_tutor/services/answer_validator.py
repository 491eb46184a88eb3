"""
Whole-problem grading of the per-column derivation.

Pure and recomputed on every call. A column passes only when its answer digit
is right and, depending on the operation, the carry (add/multiply) or the
remainder (divide) written for it is not explicitly wrong. Borrow digits and
slashes are never graded; they only gate navigation.

Score is binary: 1 when every column passes, else 0.
"""
from __future__ import annotations

from typing import Optional

from column_tutor.models.problem import (
    ColumnResult,
    MathColumn,
    MathProblem,
    UserAnswerState,
    ValidationResult,
)

_BLANK_OR_ZERO = ("", "0")


def _is_division_leading_zero(problem: MathProblem, idx: int) -> bool:
    # Quotient digit 0 in the highest place is conventionally not written
    return (
        problem.operation == "divide"
        and idx == len(problem.columns) - 1
        and problem.columns[idx].correct_sum_digit == 0
    )


def _check_answer(problem: MathProblem, idx: int, col: MathColumn, value: str) -> bool:
    if _is_division_leading_zero(problem, idx) and value in _BLANK_OR_ZERO:
        return True
    return value == str(col.correct_sum_digit)


def _check_carry(problem: MathProblem, col: MathColumn, value: str) -> Optional[bool]:
    if col.correct_carry_in > 0:
        if value == "":
            # Overflow column of a product: a blank carry there is indeterminate
            if problem.operation == "multiply" and col.digit1 is None:
                return None
            return False
        return value == str(col.correct_carry_in)
    return value in _BLANK_OR_ZERO


def _check_remainder(problem: MathProblem, idx: int, col: MathColumn, value: str) -> bool:
    if _is_division_leading_zero(problem, idx):
        return True
    if col.correct_carry_out > 0:
        return value == str(col.correct_carry_out)
    return value in _BLANK_OR_ZERO


def validate(problem: MathProblem, answers: UserAnswerState) -> ValidationResult:
    all_correct = True
    column_results = []

    for idx, col in enumerate(problem.columns):
        answer_ok = _check_answer(problem, idx, col, answers.value("answer", idx))
        carry_ok: Optional[bool] = None
        remainder_ok: Optional[bool] = None

        if problem.operation in ("add", "multiply"):
            carry_ok = _check_carry(problem, col, answers.value("carry", idx))
        elif problem.operation == "divide":
            remainder_ok = _check_remainder(problem, idx, col, answers.value("remainder", idx))

        if not answer_ok or carry_ok is False or remainder_ok is False:
            all_correct = False

        column_results.append(ColumnResult(
            answer_correct=answer_ok,
            carry_correct=carry_ok,
            remainder_correct=remainder_ok,
        ))

    return ValidationResult(
        is_correct=all_correct,
        score=1 if all_correct else 0,
        column_results=column_results,
    )
