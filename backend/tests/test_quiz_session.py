"""
Tests for QuizSession — grading, locking, correction mode and score recording.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from column_tutor.services.problem_factory import create_problem
from column_tutor.services.quiz_session import QuizSession
from column_tutor.services.score_store import InMemoryScoreStore, Student


STUDENT = Student(id="s-1", name="Ayu", class_name="4B")


def _session(*specs, student=None, store=None) -> QuizSession:
    problems = [create_problem(str(i), a, b, op) for i, (a, b, op) in enumerate(specs)]
    return QuizSession(problems, "easy", specs[0][2], student=student, score_store=store)


def _solve_addition(session: QuizSession, pid: str, digits: dict, carries: dict = None):
    answers = session.answers(pid)
    answers.answer_digits.update(digits)
    answers.carry_digits.update(carries or {})


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------

class TestStart:
    def test_seeded_sessions_are_reproducible(self):
        a = QuizSession.start("medium", "subtract", count=4, seed=11)
        b = QuizSession.start("medium", "subtract", count=4, seed=11)
        assert a.problems == b.problems
        assert a.id != b.id

    def test_focus_on_first_problem(self):
        s = QuizSession.start("easy", "add", count=3, seed=1)
        assert s.active_cell.problem_id == "0"
        assert s.active_cell.column_index == 0
        assert s.active_cell.field_kind == "answer"

    def test_division_focus_at_start_column(self):
        s = _session((36, 5, "divide"))
        assert s.active_cell.column_index == 0
        s = _session((97, 4, "divide"))
        assert s.active_cell.column_index == 1

    def test_default_count_from_settings(self):
        s = QuizSession.start("easy", "multiply", seed=2)
        assert len(s.problems) == 10


# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------

class TestCheckOne:
    def test_check_locks_and_clears_focus(self):
        s = _session((23, 45, "add"), (27, 15, "add"))
        _solve_addition(s, "0", {0: "8", 1: "6"})
        result = s.check_one("0")
        assert result.is_correct is True
        assert "0" in s.locked
        assert s.active_cell is None
        assert s.total_correct == 1
        assert s.all_checked is False

    def test_locked_problem_ignores_input(self):
        s = _session((23, 45, "add"))
        s.check_one("0")
        assert s.click("0", 0, "answer").accepted is False

    def test_unknown_problem(self):
        s = _session((23, 45, "add"))
        assert s.check_one("nope") is None

    def test_move_to_next(self):
        s = _session((23, 45, "add"), (36, 5, "divide"))
        cell = s.move_to_next("0")
        assert cell.problem_id == "1"
        assert s.move_to_next("1") is None


class TestCheckAll:
    def test_grades_incomplete_problems(self):
        s = _session((23, 45, "add"), (27, 15, "add"))
        _solve_addition(s, "0", {0: "8", 1: "6"})
        summary = s.check_all()
        assert summary["total"] == 2
        assert summary["checked"] == 2
        assert summary["correct"] == 1
        assert summary["all_checked"] is True
        assert summary["all_complete"] is False
        assert [r["is_correct"] for r in summary["results"]] == [True, False]

    def test_records_score_once(self):
        store = InMemoryScoreStore()
        s = _session((23, 45, "add"), (27, 15, "add"), student=STUDENT, store=store)
        _solve_addition(s, "0", {0: "8", 1: "6"})
        _solve_addition(s, "1", {0: "2", 1: "4"}, {1: "1"})
        s.check_all()
        s.check_all()
        records = store.list_student("s-1")
        assert len(records) == 1
        assert records[0].correct_answers == 2
        assert records[0].percentage == 100
        assert records[0].year == 4
        assert records[0].operation == "add"

    def test_no_record_without_student(self):
        store = InMemoryScoreStore()
        s = _session((23, 45, "add"), store=store)
        s.check_all()
        assert s.score_recorded is False

    def test_checking_last_problem_records_score(self):
        store = InMemoryScoreStore()
        s = _session((23, 45, "add"), (27, 15, "add"), student=STUDENT, store=store)
        s.check_one("0")
        assert store.list_student("s-1") == []
        s.check_one("1")
        assert len(store.list_student("s-1")) == 1
        assert s.score_recorded is True


# ---------------------------------------------------------------------------
# Correction mode
# ---------------------------------------------------------------------------

class TestCorrection:
    def test_only_checked_problems(self):
        s = _session((23, 45, "add"))
        assert s.start_correction("0") is None
        assert s.correction_problem_id is None

    def test_correction_starts_blank(self):
        s = _session((27, 15, "add"))
        _solve_addition(s, "0", {0: "2", 1: "4"})
        s.check_one("0")
        cell = s.start_correction("0")
        assert cell.column_index == 0
        assert s.answers("0").answer_digits == {}
        assert s.click("0", 0, "answer").accepted

    def test_correction_result_kept_apart(self):
        s = _session((27, 15, "add"))
        _solve_addition(s, "0", {0: "2", 1: "4"})
        original = s.check_one("0")
        assert original.is_correct is False

        s.start_correction("0")
        _solve_addition(s, "0", {0: "2", 1: "4"}, {1: "1"})
        corrected = s.check_correction()
        assert corrected.is_correct is True
        assert s.validation_results["0"].is_correct is False
        assert s.total_correct == 0

    def test_check_one_during_correction_keeps_recorded_grade(self):
        s = _session((27, 15, "add"))
        _solve_addition(s, "0", {0: "2", 1: "4"}, {1: "1"})
        assert s.check_one("0").is_correct is True

        s.start_correction("0")
        again = s.check_one("0")
        assert again.is_correct is True
        assert s.validation_results["0"].is_correct is True
        assert s.answers("0").answer_digits == {}

    def test_check_all_during_correction_keeps_recorded_grade(self):
        s = _session((27, 15, "add"), (23, 45, "add"))
        _solve_addition(s, "0", {0: "2", 1: "4"}, {1: "1"})
        s.check_one("0")

        s.start_correction("0")
        summary = s.check_all()
        assert s.validation_results["0"].is_correct is True
        assert s.validation_results["1"].is_correct is False
        assert summary["correct"] == 1
        assert summary["checked"] == 2

    def test_checked_correction_is_read_only(self):
        s = _session((23, 45, "add"))
        s.check_one("0")
        s.start_correction("0")
        s.check_correction()
        assert s.click("0", 0, "answer").accepted is False
        assert s.active_cell is None

    def test_exit_correction(self):
        s = _session((23, 45, "add"))
        s.check_one("0")
        s.start_correction("0")
        s.exit_correction()
        assert s.correction_problem_id is None
        assert s.correction_result is None
        assert s.check_correction() is None
        assert "0" in s.locked
