"""
Cursor/focus state machine for guided column arithmetic.

Owns the single active cell of a quiz session and decides, for every input
event, whether the requested cell may take focus:

  * Prerequisite gate: an answer cell whose prerequisite cell (carry,
    borrow or remainder) is due is redirected there with a warning.
  * Fill order: division quotient digits go from the start column down to
    the units; every other operation fills answers from the units up.
  * Subtraction readiness: a borrowing column's answer needs the higher
    neighbour slashed and its reduced digit written, then the borrowed 1.

Auto-advance never runs timers here. key_press and toggle_slash return a
FocusMove with a delay; the caller applies it through apply_focus when it
sees fit.

The query helpers (division_start_column, blocked_columns,
is_problem_complete) are pure and recomputed on demand.
"""
from __future__ import annotations

import logging
from typing import Optional

from column_tutor.models.problem import (
    ActiveCell,
    CellWarning,
    CursorOutcome,
    FocusMove,
    MathProblem,
    UserAnswerState,
)

logger = logging.getLogger("columntutor.cursor")

DIGIT_KEYS = frozenset("0123456789")


# ---------------------------------------------------------------------------
# Pure queries
# ---------------------------------------------------------------------------

def division_start_column(problem: MathProblem) -> int:
    """Highest column the quotient starts in; -1 for non-division problems."""
    if problem.operation != "divide":
        return -1
    max_idx = len(problem.columns) - 1
    leading = problem.columns[max_idx].digit1 or 0
    if leading < problem.num2:
        return max(max_idx - 1, 0)
    return max_idx


def first_cell(problem: MathProblem) -> ActiveCell:
    if problem.operation == "divide":
        return ActiveCell(problem_id=problem.id, column_index=division_start_column(problem), field_kind="answer")
    return ActiveCell(problem_id=problem.id, column_index=0, field_kind="answer")


def _needs_borrow(problem: MathProblem, idx: int) -> bool:
    col = problem.columns[idx]
    return (col.digit1 or 0) < (col.digit2 or 0)


def _carry_due(problem: MathProblem, idx: int, answers: UserAnswerState) -> bool:
    """add/multiply: column idx-1 carries into idx, is answered, and carry[idx] is blank."""
    prev = idx - 1
    if prev < 0:
        return False
    return (
        problem.columns[prev].correct_carry_out > 0
        and answers.is_filled("answer", prev)
        and not answers.is_filled("carry", idx)
    )


def blocked_columns(problem: MathProblem, answers: UserAnswerState) -> set[int]:
    """Answer cells that can't take input until a carry/borrow/remainder is written."""
    blocked: set[int] = set()
    op = problem.operation
    n = len(problem.columns)

    if op in ("add", "multiply"):
        for i in range(n):
            if _carry_due(problem, i, answers):
                blocked.add(i)

    elif op == "subtract":
        for i in range(n):
            if answers.is_slashed(i) and not answers.is_filled("carry", i):
                blocked.add(i)
            if (
                answers.is_slashed(i + 1)
                and answers.is_filled("carry", i + 1)
                and not answers.is_filled("borrow", i)
            ):
                blocked.add(i)

    elif op == "divide":
        # Remainder of column i feeds column i-1, the next quotient digit
        for i in range(n):
            if (
                answers.is_slashed(i)
                and problem.columns[i].correct_carry_out > 0
                and not answers.is_filled("remainder", i)
                and i > 0
            ):
                blocked.add(i - 1)

    return blocked


def is_problem_complete(problem: MathProblem, answers: UserAnswerState) -> bool:
    """All required cells filled (not necessarily correct)."""
    columns = problem.columns

    if problem.operation == "divide":
        for i in range(division_start_column(problem), -1, -1):
            if not answers.is_filled("answer", i):
                return False
            if not answers.is_slashed(i):
                return False
            if columns[i].correct_carry_out > 0 and not answers.is_filled("remainder", i):
                return False
        return True

    if not all(answers.is_filled("answer", i) for i in range(len(columns))):
        return False

    if problem.operation in ("add", "multiply"):
        for i, col in enumerate(columns):
            if col.correct_carry_out > 0 and i + 1 < len(columns):
                if not answers.is_filled("carry", i + 1):
                    return False

    elif problem.operation == "subtract":
        for i in range(len(columns)):
            if not _needs_borrow(problem, i) or i + 1 >= len(columns):
                continue
            if not answers.is_slashed(i + 1):
                return False
            if not answers.is_filled("carry", i + 1):
                return False
            if not answers.is_filled("borrow", i):
                return False

    return True


def _prerequisite_redirect(problem: MathProblem, idx: int, answers: UserAnswerState) -> Optional[ActiveCell]:
    """The cell that must be filled before the answer at idx, if any."""
    op = problem.operation

    def cell(column_index: int, field_kind: str) -> ActiveCell:
        return ActiveCell(problem_id=problem.id, column_index=column_index, field_kind=field_kind)

    if op in ("add", "multiply"):
        if _carry_due(problem, idx, answers):
            return cell(idx, "carry")

    elif op == "subtract":
        if answers.is_slashed(idx) and not answers.is_filled("carry", idx):
            return cell(idx, "carry")
        if (
            answers.is_slashed(idx + 1)
            and answers.is_filled("carry", idx + 1)
            and not answers.is_filled("borrow", idx)
        ):
            return cell(idx, "borrow")

    elif op == "divide":
        if (
            answers.is_slashed(idx)
            and problem.columns[idx].correct_carry_out > 0
            and not answers.is_filled("remainder", idx)
        ):
            return cell(idx, "remainder")

    return None


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class CursorStateMachine:
    def __init__(
        self,
        problems: list[MathProblem],
        auto_advance_delay_ms: int = 150,
        quick_focus_delay_ms: int = 50,
        warning_duration_ms: int = 1000,
    ):
        self.problems: dict[str, MathProblem] = {p.id: p for p in problems}
        self.answers: dict[str, UserAnswerState] = {p.id: UserAnswerState() for p in problems}
        self.active_cell: Optional[ActiveCell] = None
        self.locked: set[str] = set()
        self.correction_problem_id: Optional[str] = None
        # Set once a correction has been checked; the problem is read-only until exit
        self.correction_frozen = False

        self.auto_advance_delay_ms = auto_advance_delay_ms
        self.quick_focus_delay_ms = quick_focus_delay_ms
        self.warning_duration_ms = warning_duration_ms

    # ── helpers ────────────────────────────────────────────────────────────

    def is_editable(self, problem_id: str) -> bool:
        if problem_id == self.correction_problem_id:
            return not self.correction_frozen
        return problem_id not in self.locked

    def _outcome(
        self,
        accepted: bool,
        warning: Optional[CellWarning] = None,
        next_focus: Optional[FocusMove] = None,
    ) -> CursorOutcome:
        return CursorOutcome(
            accepted=accepted,
            active_cell=self.active_cell,
            warning=warning,
            next_focus=next_focus,
        )

    def _warn(self, problem_id: str, column_index: int, kind: Optional[str] = None) -> CellWarning:
        return CellWarning(
            problem_id=problem_id,
            column_index=column_index,
            kind=kind,
            duration_ms=self.warning_duration_ms,
        )

    def _move(self, problem_id: str, column_index: int, field_kind: str, delay_ms: Optional[int] = None) -> FocusMove:
        return FocusMove(
            cell=ActiveCell(problem_id=problem_id, column_index=column_index, field_kind=field_kind),
            delay_ms=self.auto_advance_delay_ms if delay_ms is None else delay_ms,
        )

    def focus_first(self, problem_id: str) -> Optional[ActiveCell]:
        problem = self.problems.get(problem_id)
        if problem is None:
            return None
        self.active_cell = first_cell(problem)
        return self.active_cell

    def reset_answers(self, problem_id: str) -> None:
        if problem_id in self.answers:
            self.answers[problem_id] = UserAnswerState()

    # ── input events ───────────────────────────────────────────────────────

    def click(self, problem_id: str, column_index: int, field_kind: str) -> CursorOutcome:
        problem = self.problems.get(problem_id)
        answers = self.answers.get(problem_id)
        if problem is None or answers is None:
            logger.debug("click on unknown problem %s ignored", problem_id)
            return self._outcome(False)
        if not self.is_editable(problem_id):
            logger.debug("click on locked problem %s ignored", problem_id)
            return self._outcome(False)
        if not 0 <= column_index < len(problem.columns):
            logger.debug("click outside problem %s columns (%d) ignored", problem_id, column_index)
            return self._outcome(False)

        if field_kind == "answer":
            redirect = _prerequisite_redirect(problem, column_index, answers)
            if redirect is not None:
                self.active_cell = redirect
                return self._outcome(False, warning=self._warn(problem_id, redirect.column_index))

            rejection = self._check_answer_order(problem, column_index, answers)
            if rejection is not None:
                return self._outcome(False, warning=rejection)

            if problem.operation == "subtract":
                outcome = self._check_subtraction_ready(problem, column_index, answers)
                if outcome is not None:
                    return outcome

        self.active_cell = ActiveCell(problem_id=problem_id, column_index=column_index, field_kind=field_kind)
        return self._outcome(True)

    def _check_answer_order(
        self, problem: MathProblem, column_index: int, answers: UserAnswerState
    ) -> Optional[CellWarning]:
        if problem.operation == "divide":
            start = division_start_column(problem)
            if column_index > start:
                return self._warn(problem.id, start)
            target = next(
                (i for i in range(start, -1, -1) if not answers.is_filled("answer", i)),
                None,
            )
            if target is not None and column_index < target:
                return self._warn(problem.id, target)
            return None

        target = next(
            (i for i in range(len(problem.columns)) if not answers.is_filled("answer", i)),
            None,
        )
        if target is not None and column_index > target:
            return self._warn(problem.id, target)
        return None

    def _check_subtraction_ready(
        self, problem: MathProblem, column_index: int, answers: UserAnswerState
    ) -> Optional[CursorOutcome]:
        neighbour = column_index + 1
        if not _needs_borrow(problem, column_index) or neighbour >= len(problem.columns):
            return None

        if not answers.is_slashed(neighbour):
            return self._outcome(False, warning=self._warn(problem.id, neighbour, "slash"))
        # Redirects below move active_cell even though the click is not accepted
        if not answers.is_filled("carry", neighbour):
            self.active_cell = ActiveCell(problem_id=problem.id, column_index=neighbour, field_kind="carry")
            return self._outcome(False)
        if not answers.is_filled("borrow", column_index):
            self.active_cell = ActiveCell(problem_id=problem.id, column_index=column_index, field_kind="borrow")
            return self._outcome(False)
        return None

    def toggle_slash(self, problem_id: str, column_index: int) -> CursorOutcome:
        problem = self.problems.get(problem_id)
        if problem is None or not self.is_editable(problem_id):
            logger.debug("slash on problem %s ignored", problem_id)
            return self._outcome(False)
        if not 0 <= column_index < len(problem.columns):
            return self._outcome(False)

        answers = self.answers[problem_id]
        slashed = not answers.is_slashed(column_index)
        answers.slashed_cols[column_index] = slashed

        next_focus = None
        if slashed and problem.operation == "divide":
            next_focus = self._move(problem_id, column_index, "remainder", self.quick_focus_delay_ms)
        elif slashed and problem.operation == "subtract":
            next_focus = self._move(problem_id, column_index, "carry", self.quick_focus_delay_ms)
        return self._outcome(True, next_focus=next_focus)

    def key_press(self, key: str) -> CursorOutcome:
        cell = self.active_cell
        if cell is None:
            return self._outcome(False)
        if key != "" and key not in DIGIT_KEYS:
            logger.debug("Ignoring non-digit key %r", key)
            return self._outcome(False)
        if not self.is_editable(cell.problem_id):
            return self._outcome(False)

        problem = self.problems[cell.problem_id]
        answers = self.answers[cell.problem_id]
        answer_was_blank = not answers.is_filled("answer", cell.column_index)

        answers.digits_for(cell.field_kind)[cell.column_index] = key
        if problem.operation == "divide" and cell.field_kind == "answer" and key != "":
            answers.slashed_cols[cell.column_index] = True

        next_focus = None
        if key != "":
            next_focus = self._next_focus(problem, cell, answer_was_blank)
        return self._outcome(True, next_focus=next_focus)

    def _next_focus(self, problem: MathProblem, cell: ActiveCell, answer_was_blank: bool) -> Optional[FocusMove]:
        op = problem.operation
        idx = cell.column_index
        kind = cell.field_kind
        pid = problem.id
        has_next = idx + 1 < len(problem.columns)

        if op == "divide":
            if kind == "answer" and problem.columns[idx].correct_carry_out > 0:
                return self._move(pid, idx, "remainder", self.quick_focus_delay_ms)
            if kind in ("answer", "remainder") and idx - 1 >= 0:
                return self._move(pid, idx - 1, "answer")
            return None

        if op == "subtract":
            # The reduced digit sits on the lending column; the borrowed 1 on the one below
            if kind == "carry" and idx - 1 >= 0:
                return self._move(pid, idx - 1, "borrow")
            if kind == "borrow":
                return self._move(pid, idx, "answer")
            if kind == "answer" and has_next:
                return self._move(pid, idx + 1, "answer")
            return None

        if kind == "answer" and has_next:
            if problem.columns[idx].correct_carry_out > 0:
                return self._move(pid, idx + 1, "carry")
            return self._move(pid, idx + 1, "answer")
        if kind == "carry":
            if answer_was_blank:
                return self._move(pid, idx, "answer")
            if has_next:
                return self._move(pid, idx + 1, "answer")
        return None

    def delete(self) -> CursorOutcome:
        cell = self.active_cell
        if cell is None or not self.is_editable(cell.problem_id):
            return self._outcome(False)
        self.answers[cell.problem_id].digits_for(cell.field_kind).pop(cell.column_index, None)
        return self._outcome(True)

    def apply_focus(self, move: FocusMove) -> CursorOutcome:
        problem = self.problems.get(move.cell.problem_id)
        if problem is None or not self.is_editable(problem.id):
            return self._outcome(False)
        if not 0 <= move.cell.column_index < len(problem.columns):
            logger.debug("focus outside problem %s columns (%d) ignored", problem.id, move.cell.column_index)
            return self._outcome(False)
        self.active_cell = move.cell
        return self._outcome(True)
