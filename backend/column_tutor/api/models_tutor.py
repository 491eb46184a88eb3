from pydantic import BaseModel, Field, field_validator
from typing import Optional

from column_tutor.models.problem import (
    ActiveCell,
    CursorOutcome,
    DifficultyTier,
    FieldKind,
    MathProblem,
    Operation,
    UserAnswerState,
    ValidationResult,
)
from column_tutor.services.score_store import Student


# ──────────────────────────────────────────────
# Problem-level requests
# ──────────────────────────────────────────────

class GenerateProblemRequest(BaseModel):
    operation: Operation
    tier: Optional[DifficultyTier] = None
    year: Optional[int] = Field(default=None, ge=1, le=6)
    index: int = 0
    include_borrowing: Optional[bool] = None
    seed: Optional[int] = None

    @field_validator("tier", mode="before")
    @classmethod
    def _lowercase_tier(cls, v):
        return v.lower() if isinstance(v, str) else v


class ValidateRequest(BaseModel):
    problem: MathProblem
    answers: UserAnswerState = UserAnswerState()


class ExplainRequest(BaseModel):
    problem: MathProblem


class ExplainResponse(BaseModel):
    steps: list[str] = []
    final_answer: Optional[str] = None


# ──────────────────────────────────────────────
# Session requests
# ──────────────────────────────────────────────

class StartSessionRequest(BaseModel):
    operation: Operation
    tier: DifficultyTier = "easy"
    count: Optional[int] = Field(default=None, ge=1)
    include_borrowing: Optional[bool] = None
    seed: Optional[int] = None
    student: Optional[Student] = None

    @field_validator("tier", mode="before")
    @classmethod
    def _lowercase_tier(cls, v):
        return v.lower() if isinstance(v, str) else v


class ClickRequest(BaseModel):
    problem_id: str
    column_index: int
    field_kind: FieldKind


class SlashRequest(BaseModel):
    problem_id: str
    column_index: int


class KeyRequest(BaseModel):
    key: str = Field(max_length=1)


class FocusRequest(BaseModel):
    problem_id: str
    column_index: int
    field_kind: FieldKind


# ──────────────────────────────────────────────
# Responses
# ──────────────────────────────────────────────

class ProblemView(BaseModel):
    problem: MathProblem
    answers: UserAnswerState
    locked: bool
    complete: bool
    blocked_columns: list[int] = []
    validation: Optional[ValidationResult] = None


class SessionView(BaseModel):
    session_id: str
    operation: Operation
    tier: DifficultyTier
    active_cell: Optional[ActiveCell] = None
    problems: list[ProblemView]
    all_complete: bool
    all_checked: bool
    total_correct: int
    correction_problem_id: Optional[str] = None
    correction_result: Optional[ValidationResult] = None


class EventResponse(BaseModel):
    outcome: CursorOutcome
    # Focus after any auto-advance has been applied server-side
    active_cell: Optional[ActiveCell] = None
    view: Optional[ProblemView] = None


class FocusResponse(BaseModel):
    active_cell: Optional[ActiveCell] = None


class SessionSummaryResponse(BaseModel):
    session_id: str
    operation: Operation
    tier: DifficultyTier
    total: int
    checked: int
    correct: int
    all_complete: bool
    all_checked: bool
    score_recorded: bool
    results: list[dict] = []


class DeleteSessionResponse(BaseModel):
    ok: bool = True
