"""
Quiz session — one learner working through a generated problem set.

Wraps the CursorStateMachine with grading, locking and correction mode:

  * check_one / check_all grade with the answer validator and lock the
    graded problems (read-only, focus cleared).
  * Correction mode reopens one locked problem from a blank state. Checking
    the correction never touches the recorded grade.
  * Once every problem has been graded, a score record goes to the score
    store exactly once (only for sessions with a student).
"""
from __future__ import annotations

import logging
import random
import uuid
from typing import Optional

from column_tutor.core.config import get_settings
from column_tutor.models.problem import (
    ActiveCell,
    CursorOutcome,
    FocusMove,
    MathProblem,
    UserAnswerState,
    ValidationResult,
)
from column_tutor.services.answer_validator import validate
from column_tutor.services.cursor import (
    CursorStateMachine,
    blocked_columns,
    is_problem_complete,
)
from column_tutor.services.problem_factory import generate_problem_set
from column_tutor.services.score_store import (
    ScoreStore,
    Student,
    build_score_record,
    record_score,
)

logger = logging.getLogger("columntutor.quiz_session")


class QuizSession:
    def __init__(
        self,
        problems: list[MathProblem],
        tier: str,
        operation: str,
        student: Optional[Student] = None,
        score_store: Optional[ScoreStore] = None,
        include_borrowing: Optional[bool] = None,
    ):
        settings = get_settings()
        self.id = uuid.uuid4().hex
        self.tier = tier
        self.operation = operation
        self.include_borrowing = include_borrowing
        self.student = student
        self.problems = list(problems)
        self.cursor = CursorStateMachine(
            self.problems,
            auto_advance_delay_ms=settings.auto_advance_delay_ms,
            quick_focus_delay_ms=settings.quick_focus_delay_ms,
            warning_duration_ms=settings.warning_duration_ms,
        )
        self.validation_results: dict[str, ValidationResult] = {}
        self.correction_result: Optional[ValidationResult] = None
        self.score_recorded = False
        self._score_store = score_store

        if self.problems:
            self.cursor.focus_first(self.problems[0].id)

    @classmethod
    def start(
        cls,
        tier: str,
        operation: str,
        count: Optional[int] = None,
        include_borrowing: Optional[bool] = None,
        seed: Optional[int] = None,
        student: Optional[Student] = None,
        score_store: Optional[ScoreStore] = None,
    ) -> "QuizSession":
        count = count or get_settings().default_question_count
        rng = random.Random(seed)
        problems = generate_problem_set(tier, count, operation, include_borrowing, rng)
        session = cls(problems, tier, operation, student, score_store, include_borrowing)
        logger.info(
            "Started session %s: %d %s problems (tier=%s, seed=%s)",
            session.id, count, operation, tier, seed,
        )
        return session

    # ── state access ──────────────────────────────────────────────────────

    @property
    def active_cell(self) -> Optional[ActiveCell]:
        return self.cursor.active_cell

    @property
    def locked(self) -> set[str]:
        return self.cursor.locked

    @property
    def correction_problem_id(self) -> Optional[str]:
        return self.cursor.correction_problem_id

    def get_problem(self, problem_id: str) -> Optional[MathProblem]:
        return self.cursor.problems.get(problem_id)

    def answers(self, problem_id: str) -> Optional[UserAnswerState]:
        return self.cursor.answers.get(problem_id)

    def is_complete(self, problem_id: str) -> bool:
        problem = self.get_problem(problem_id)
        if problem is None:
            return False
        return is_problem_complete(problem, self.cursor.answers[problem_id])

    def blocked_columns(self, problem_id: str) -> set[int]:
        problem = self.get_problem(problem_id)
        if problem is None:
            return set()
        return blocked_columns(problem, self.cursor.answers[problem_id])

    @property
    def all_complete(self) -> bool:
        return bool(self.problems) and all(self.is_complete(p.id) for p in self.problems)

    @property
    def all_checked(self) -> bool:
        return bool(self.problems) and len(self.locked) == len(self.problems)

    @property
    def total_correct(self) -> int:
        return sum(1 for v in self.validation_results.values() if v.is_correct)

    # ── input events ──────────────────────────────────────────────────────

    def click(self, problem_id: str, column_index: int, field_kind: str) -> CursorOutcome:
        return self.cursor.click(problem_id, column_index, field_kind)

    def toggle_slash(self, problem_id: str, column_index: int) -> CursorOutcome:
        return self.cursor.toggle_slash(problem_id, column_index)

    def key_press(self, key: str) -> CursorOutcome:
        return self.cursor.key_press(key)

    def delete(self) -> CursorOutcome:
        return self.cursor.delete()

    def apply_focus(self, move: FocusMove) -> CursorOutcome:
        return self.cursor.apply_focus(move)

    # ── grading ───────────────────────────────────────────────────────────

    def check_one(self, problem_id: str) -> Optional[ValidationResult]:
        problem = self.get_problem(problem_id)
        if problem is None:
            return None
        if problem_id in self.locked:
            # Graded once; correction work never replaces the recorded grade
            return self.validation_results.get(problem_id)

        result = validate(problem, self.cursor.answers[problem_id])
        self.cursor.locked.add(problem_id)
        self.validation_results[problem_id] = result
        self.cursor.active_cell = None

        if self.all_checked:
            self._record_score()
        return result

    def check_all(self) -> dict:
        """Grade every ungraded problem, complete or not, and lock the whole set."""
        for problem in self.problems:
            if problem.id in self.validation_results:
                continue
            self.validation_results[problem.id] = validate(problem, self.cursor.answers[problem.id])
            self.cursor.locked.add(problem.id)
        self.cursor.active_cell = None
        self._record_score()
        return self.summary()

    def move_to_next(self, problem_id: str) -> Optional[ActiveCell]:
        ids = [p.id for p in self.problems]
        if problem_id not in ids:
            return None
        idx = ids.index(problem_id)
        if idx >= len(ids) - 1:
            return None
        return self.cursor.focus_first(ids[idx + 1])

    # ── correction mode ───────────────────────────────────────────────────

    def start_correction(self, problem_id: str) -> Optional[ActiveCell]:
        if problem_id not in self.locked:
            logger.debug("Correction requested for unchecked problem %s", problem_id)
            return None
        self.cursor.reset_answers(problem_id)
        self.cursor.correction_problem_id = problem_id
        self.cursor.correction_frozen = False
        self.correction_result = None
        return self.cursor.focus_first(problem_id)

    def check_correction(self) -> Optional[ValidationResult]:
        problem_id = self.cursor.correction_problem_id
        if problem_id is None:
            return None
        self.correction_result = validate(self.get_problem(problem_id), self.cursor.answers[problem_id])
        self.cursor.correction_frozen = True
        self.cursor.active_cell = None
        return self.correction_result

    def exit_correction(self) -> None:
        # Corrected answers stay so the overview shows the reworked problem
        self.cursor.correction_problem_id = None
        self.cursor.correction_frozen = False
        self.correction_result = None
        self.cursor.active_cell = None

    # ── results ───────────────────────────────────────────────────────────

    def results(self) -> list[tuple[MathProblem, UserAnswerState, ValidationResult]]:
        return [
            (p, self.cursor.answers[p.id], self.validation_results[p.id])
            for p in self.problems
            if p.id in self.validation_results
        ]

    def summary(self) -> dict:
        return {
            "session_id": self.id,
            "operation": self.operation,
            "tier": self.tier,
            "total": len(self.problems),
            "checked": len(self.locked),
            "correct": self.total_correct,
            "all_complete": self.all_complete,
            "all_checked": self.all_checked,
            "score_recorded": self.score_recorded,
            "results": [
                {"problem_id": p.id, "is_correct": v.is_correct, "score": v.score}
                for p, _, v in self.results()
            ],
        }

    def _record_score(self) -> None:
        if self.score_recorded or self.student is None:
            return
        record = build_score_record(
            self.student,
            self.tier,
            self.operation,
            [(p, v) for p, _, v in self.results()],
        )
        record_score(record, self._score_store)
        self.score_recorded = True
