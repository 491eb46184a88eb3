"""
Tests for whole-problem grading — answer digits, carries and remainders.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from column_tutor.models.problem import UserAnswerState
from column_tutor.services.answer_validator import validate
from column_tutor.services.problem_factory import create_problem


def _answers(**rows) -> UserAnswerState:
    return UserAnswerState(**rows)


# ---------------------------------------------------------------------------
# Addition
# ---------------------------------------------------------------------------

class TestAddition:
    def test_no_carry_problem_correct(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: "6"}))
        assert result.is_correct is True
        assert result.score == 1
        assert all(c.answer_correct and c.carry_correct for c in result.column_results)

    def test_missing_carry_fails(self):
        p = create_problem("0", 27, 15, "add")
        result = validate(p, _answers(answer_digits={0: "2", 1: "4"}))
        assert result.is_correct is False
        assert result.score == 0
        assert result.column_results[1].answer_correct is True
        assert result.column_results[1].carry_correct is False

    def test_carry_written_passes(self):
        p = create_problem("0", 27, 15, "add")
        result = validate(p, _answers(answer_digits={0: "2", 1: "4"}, carry_digits={1: "1"}))
        assert result.is_correct is True

    def test_zero_carry_where_none_due_is_accepted(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: "6"}, carry_digits={1: "0"}))
        assert result.is_correct is True

    def test_spurious_carry_fails(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: "6"}, carry_digits={1: "1"}))
        assert result.is_correct is False
        assert result.column_results[1].carry_correct is False

    def test_wrong_answer_digit_fails(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: "7"}))
        assert result.is_correct is False
        assert result.column_results[0].answer_correct is True
        assert result.column_results[1].answer_correct is False

    def test_empty_string_counts_as_blank(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: ""}))
        assert result.is_correct is False

    def test_remainder_not_graded(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, _answers(answer_digits={0: "8", 1: "6"}, remainder_digits={0: "9"}))
        assert result.is_correct is True
        assert all(c.remainder_correct is None for c in result.column_results)


# ---------------------------------------------------------------------------
# Subtraction
# ---------------------------------------------------------------------------

class TestSubtraction:
    def test_only_answer_row_graded(self):
        p = create_problem("0", 52, 27, "subtract")
        result = validate(p, _answers(
            answer_digits={0: "5", 1: "2"},
            carry_digits={1: "9"},
            borrow_digits={0: "7"},
        ))
        assert result.is_correct is True
        assert all(c.carry_correct is None for c in result.column_results)

    def test_wrong_difference_fails(self):
        p = create_problem("0", 52, 27, "subtract")
        result = validate(p, _answers(answer_digits={0: "5", 1: "3"}))
        assert result.is_correct is False


# ---------------------------------------------------------------------------
# Multiplication
# ---------------------------------------------------------------------------

class TestMultiplication:
    def test_blank_overflow_carry_is_indeterminate(self):
        p = create_problem("0", 47, 6, "multiply")
        result = validate(p, _answers(answer_digits={0: "2", 1: "8", 2: "2"}, carry_digits={1: "4"}))
        assert result.is_correct is True
        assert result.column_results[2].carry_correct is None

    def test_wrong_overflow_carry_fails(self):
        p = create_problem("0", 47, 6, "multiply")
        result = validate(p, _answers(
            answer_digits={0: "2", 1: "8", 2: "2"},
            carry_digits={1: "4", 2: "3"},
        ))
        assert result.is_correct is False
        assert result.column_results[2].carry_correct is False

    def test_correct_overflow_carry_passes(self):
        p = create_problem("0", 47, 6, "multiply")
        result = validate(p, _answers(
            answer_digits={0: "2", 1: "8", 2: "2"},
            carry_digits={1: "4", 2: "2"},
        ))
        assert result.is_correct is True
        assert result.column_results[2].carry_correct is True

    def test_missing_inner_carry_fails(self):
        p = create_problem("0", 47, 6, "multiply")
        result = validate(p, _answers(answer_digits={0: "2", 1: "8", 2: "2"}))
        assert result.is_correct is False
        assert result.column_results[1].carry_correct is False


# ---------------------------------------------------------------------------
# Division
# ---------------------------------------------------------------------------

class TestDivision:
    def test_leading_zero_may_be_blank(self):
        p = create_problem("0", 36, 5, "divide")
        result = validate(p, _answers(answer_digits={0: "7"}, remainder_digits={0: "1"}))
        assert result.is_correct is True

    def test_leading_zero_may_be_written(self):
        p = create_problem("0", 36, 5, "divide")
        result = validate(p, _answers(answer_digits={0: "7", 1: "0"}, remainder_digits={0: "1"}))
        assert result.is_correct is True

    def test_leading_zero_column_remainder_always_accepted(self):
        p = create_problem("0", 36, 5, "divide")
        result = validate(p, _answers(answer_digits={0: "7"}, remainder_digits={0: "1", 1: "9"}))
        assert result.is_correct is True
        assert result.column_results[1].remainder_correct is True

    def test_missing_final_remainder_fails(self):
        p = create_problem("0", 36, 5, "divide")
        result = validate(p, _answers(answer_digits={0: "7"}))
        assert result.is_correct is False
        assert result.column_results[0].remainder_correct is False

    def test_intermediate_remainder_required(self):
        p = create_problem("0", 97, 4, "divide")
        ok = validate(p, _answers(answer_digits={0: "4", 1: "2"}, remainder_digits={0: "1", 1: "1"}))
        missing = validate(p, _answers(answer_digits={0: "4", 1: "2"}, remainder_digits={0: "1"}))
        assert ok.is_correct is True
        assert missing.is_correct is False
        assert missing.column_results[1].remainder_correct is False

    def test_zero_remainder_blank_or_zero(self):
        p = create_problem("0", 84, 4, "divide")
        assert validate(p, _answers(answer_digits={0: "1", 1: "2"})).is_correct is True
        assert validate(p, _answers(answer_digits={0: "1", 1: "2"}, remainder_digits={0: "0"})).is_correct is True
        assert validate(p, _answers(answer_digits={0: "1", 1: "2"}, remainder_digits={0: "3"})).is_correct is False

    def test_carry_not_graded(self):
        p = create_problem("0", 84, 4, "divide")
        result = validate(p, _answers(answer_digits={0: "1", 1: "2"}))
        assert all(c.carry_correct is None for c in result.column_results)


class TestPurity:
    def test_validate_is_idempotent(self):
        p = create_problem("0", 27, 15, "add")
        answers = _answers(answer_digits={0: "2", 1: "4"}, carry_digits={1: "1"})
        first = validate(p, answers)
        second = validate(p, answers)
        assert first == second
        assert answers.answer_digits == {0: "2", 1: "4"}

    def test_blank_problem_scores_zero(self):
        p = create_problem("0", 23, 45, "add")
        result = validate(p, UserAnswerState())
        assert result.score == 0
        assert len(result.column_results) == len(p.columns)
