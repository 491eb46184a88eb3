from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional


Operation = Literal["add", "subtract", "multiply", "divide"]
DifficultyTier = Literal["easy", "medium", "pro"]
FieldKind = Literal["answer", "carry", "borrow", "remainder"]


# Operand range per tier (inclusive)
TIER_RANGES: dict[str, tuple[int, int]] = {
    "easy": (10, 99),
    "medium": (100, 999),
    "pro": (1000, 9999),
}


class MathColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    digit1: Optional[int] = None
    digit2: Optional[int] = None
    correct_sum_digit: int
    correct_carry_in: int = 0
    correct_carry_out: int = 0


class MathProblem(BaseModel):
    """One quiz question. Column 0 is the units column for every operation."""

    model_config = ConfigDict(frozen=True)

    id: str
    num1: int
    num2: int
    operation: Operation
    columns: tuple[MathColumn, ...]


class UserAnswerState(BaseModel):
    """
    Learner input for one problem.

    A missing key means the cell was never visited; an empty string means it
    was visited and left blank. Gating and grading treat both as blank.
    """

    answer_digits: dict[int, str] = {}
    carry_digits: dict[int, str] = {}
    borrow_digits: dict[int, str] = {}
    remainder_digits: dict[int, str] = {}
    slashed_cols: dict[int, bool] = {}

    def digits_for(self, field_kind: str) -> dict[int, str]:
        return getattr(self, f"{field_kind}_digits")

    def value(self, field_kind: str, column_index: int) -> str:
        return self.digits_for(field_kind).get(column_index) or ""

    def is_filled(self, field_kind: str, column_index: int) -> bool:
        return self.value(field_kind, column_index) != ""

    def is_slashed(self, column_index: int) -> bool:
        return self.slashed_cols.get(column_index, False)


class ActiveCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    problem_id: str
    column_index: int
    field_kind: FieldKind


class ColumnResult(BaseModel):
    answer_correct: bool
    carry_correct: Optional[bool] = None
    remainder_correct: Optional[bool] = None


class ValidationResult(BaseModel):
    is_correct: bool
    score: int
    column_results: list[ColumnResult] = []


class CellWarning(BaseModel):
    """Transient highlight on a column. kind="slash" asks for the digit to be crossed out."""

    problem_id: str
    column_index: int
    kind: Optional[Literal["slash"]] = None
    duration_ms: int = 1000


class FocusMove(BaseModel):
    cell: ActiveCell
    delay_ms: int = 150


class CursorOutcome(BaseModel):
    accepted: bool
    active_cell: Optional[ActiveCell] = None
    warning: Optional[CellWarning] = None
    next_focus: Optional[FocusMove] = None
