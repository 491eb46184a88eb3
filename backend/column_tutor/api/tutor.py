import logging
import random
from typing import Optional

from fastapi import APIRouter, HTTPException

from column_tutor.api.models_tutor import (
    ClickRequest,
    DeleteSessionResponse,
    EventResponse,
    ExplainRequest,
    ExplainResponse,
    FocusRequest,
    FocusResponse,
    GenerateProblemRequest,
    KeyRequest,
    ProblemView,
    SessionSummaryResponse,
    SessionView,
    SlashRequest,
    StartSessionRequest,
    ValidateRequest,
)
from column_tutor.core.config import get_settings
from column_tutor.models.problem import (
    CursorOutcome,
    MathProblem,
    ValidationResult,
)
from column_tutor.services.answer_validator import validate
from column_tutor.services.problem_factory import generate_problem, tier_for_year
from column_tutor.services.quiz_session import QuizSession
from column_tutor.services.session_store import get_session_store
from column_tutor.services.telemetry import emit_event, instrument
from column_tutor.skills.registry import get_contract

logger = logging.getLogger("columntutor.api")
router = APIRouter(prefix="/api/v1", tags=["tutor"])


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _get_session(session_id: str) -> QuizSession:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


def _get_problem(session: QuizSession, problem_id: str) -> MathProblem:
    problem = session.get_problem(problem_id)
    if problem is None:
        raise HTTPException(status_code=404, detail=f"Problem {problem_id} not found")
    return problem


def _problem_view(session: QuizSession, problem_id: str) -> ProblemView:
    return ProblemView(
        problem=session.get_problem(problem_id),
        answers=session.answers(problem_id),
        locked=problem_id in session.locked,
        complete=session.is_complete(problem_id),
        blocked_columns=sorted(session.blocked_columns(problem_id)),
        validation=session.validation_results.get(problem_id),
    )


def _session_view(session: QuizSession) -> SessionView:
    return SessionView(
        session_id=session.id,
        operation=session.operation,
        tier=session.tier,
        active_cell=session.active_cell,
        problems=[_problem_view(session, p.id) for p in session.problems],
        all_complete=session.all_complete,
        all_checked=session.all_checked,
        total_correct=session.total_correct,
        correction_problem_id=session.correction_problem_id,
        correction_result=session.correction_result,
    )


def _event_response(session: QuizSession, outcome: CursorOutcome, problem_id: Optional[str]) -> EventResponse:
    # No timers server-side: the move lands now, the client paces it with delay_ms
    if outcome.next_focus is not None:
        session.apply_focus(outcome.next_focus)
    view = _problem_view(session, problem_id) if problem_id is not None else None
    return EventResponse(outcome=outcome, active_cell=session.active_cell, view=view)


# ──────────────────────────────────────────────
# Stateless problem endpoints
# ──────────────────────────────────────────────

@router.post("/problems/generate", response_model=MathProblem)
@instrument(route="/api/v1/problems/generate", version="v1")
def generate_problem_v1(req: GenerateProblemRequest):
    if req.tier is None and req.year is None:
        raise HTTPException(status_code=422, detail="Either tier or year is required")
    tier = req.tier or tier_for_year(req.year)
    rng = random.Random(req.seed)
    return generate_problem(tier, req.index, req.operation, req.include_borrowing, rng)


@router.post("/problems/validate", response_model=ValidationResult)
@instrument(route="/api/v1/problems/validate", version="v1")
def validate_problem_v1(req: ValidateRequest):
    return validate(req.problem, req.answers)


@router.post("/problems/explain", response_model=ExplainResponse)
@instrument(route="/api/v1/problems/explain", version="v1")
def explain_problem_v1(req: ExplainRequest):
    return get_contract(req.problem.operation).explain(req.problem)


# ──────────────────────────────────────────────
# Sessions
# ──────────────────────────────────────────────

@router.post("/sessions", response_model=SessionView)
@instrument(route="/api/v1/sessions", version="v1")
def start_session_v1(req: StartSessionRequest):
    settings = get_settings()
    count = req.count or settings.default_question_count
    if count > settings.max_question_count:
        raise HTTPException(
            status_code=422,
            detail=f"count must be at most {settings.max_question_count}",
        )

    session = QuizSession.start(
        req.tier,
        req.operation,
        count=count,
        include_borrowing=req.include_borrowing,
        seed=req.seed,
        student=req.student,
    )
    get_session_store().put(session)
    emit_event(
        "session_started",
        route="/api/v1/sessions",
        version="v1",
        session_id=session.id,
        student_id=req.student.id if req.student else None,
        operation=req.operation,
    )
    return _session_view(session)


@router.get("/sessions/{session_id}", response_model=SessionView)
@instrument(route="/api/v1/sessions/get", version="v1")
def get_session_v1(session_id: str):
    return _session_view(_get_session(session_id))


@router.delete("/sessions/{session_id}", response_model=DeleteSessionResponse)
@instrument(route="/api/v1/sessions/delete", version="v1")
def delete_session_v1(session_id: str):
    if not get_session_store().delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return DeleteSessionResponse()


@router.post("/sessions/{session_id}/click", response_model=EventResponse)
@instrument(route="/api/v1/sessions/click", version="v1")
def click_v1(session_id: str, req: ClickRequest):
    session = _get_session(session_id)
    _get_problem(session, req.problem_id)
    outcome = session.click(req.problem_id, req.column_index, req.field_kind)
    return _event_response(session, outcome, req.problem_id)


@router.post("/sessions/{session_id}/slash", response_model=EventResponse)
@instrument(route="/api/v1/sessions/slash", version="v1")
def slash_v1(session_id: str, req: SlashRequest):
    session = _get_session(session_id)
    _get_problem(session, req.problem_id)
    outcome = session.toggle_slash(req.problem_id, req.column_index)
    return _event_response(session, outcome, req.problem_id)


@router.post("/sessions/{session_id}/key", response_model=EventResponse)
@instrument(route="/api/v1/sessions/key", version="v1")
def key_v1(session_id: str, req: KeyRequest):
    session = _get_session(session_id)
    cell = session.active_cell
    outcome = session.key_press(req.key)
    return _event_response(session, outcome, cell.problem_id if cell else None)


@router.post("/sessions/{session_id}/delete", response_model=EventResponse)
@instrument(route="/api/v1/sessions/delete-digit", version="v1")
def delete_digit_v1(session_id: str):
    session = _get_session(session_id)
    cell = session.active_cell
    outcome = session.delete()
    return _event_response(session, outcome, cell.problem_id if cell else None)


@router.post("/sessions/{session_id}/focus", response_model=EventResponse)
@instrument(route="/api/v1/sessions/focus", version="v1")
def focus_v1(session_id: str, req: FocusRequest):
    # Same gating as a click: order, prerequisites and column range all apply
    session = _get_session(session_id)
    _get_problem(session, req.problem_id)
    outcome = session.click(req.problem_id, req.column_index, req.field_kind)
    return _event_response(session, outcome, req.problem_id)


@router.get("/sessions/{session_id}/problems/{problem_id}/blocked", response_model=list[int])
@instrument(route="/api/v1/sessions/blocked", version="v1")
def blocked_columns_v1(session_id: str, problem_id: str):
    session = _get_session(session_id)
    _get_problem(session, problem_id)
    return sorted(session.blocked_columns(problem_id))


@router.post("/sessions/{session_id}/problems/{problem_id}/check", response_model=ValidationResult)
@instrument(route="/api/v1/sessions/check", version="v1")
def check_one_v1(session_id: str, problem_id: str):
    session = _get_session(session_id)
    _get_problem(session, problem_id)
    result = session.check_one(problem_id)
    emit_event(
        "problem_checked",
        route="/api/v1/sessions/check",
        version="v1",
        session_id=session.id,
        operation=session.operation,
        problem_id=problem_id,
        ok=result.is_correct,
    )
    return result


@router.post("/sessions/{session_id}/problems/{problem_id}/next", response_model=FocusResponse)
@instrument(route="/api/v1/sessions/next", version="v1")
def move_to_next_v1(session_id: str, problem_id: str):
    session = _get_session(session_id)
    _get_problem(session, problem_id)
    session.move_to_next(problem_id)
    return FocusResponse(active_cell=session.active_cell)


@router.post("/sessions/{session_id}/problems/{problem_id}/correction", response_model=SessionView)
@instrument(route="/api/v1/sessions/correction/start", version="v1")
def start_correction_v1(session_id: str, problem_id: str):
    session = _get_session(session_id)
    _get_problem(session, problem_id)
    if session.start_correction(problem_id) is None:
        raise HTTPException(status_code=409, detail="Only checked problems can be corrected")
    return _session_view(session)


@router.post("/sessions/{session_id}/correction/check", response_model=ValidationResult)
@instrument(route="/api/v1/sessions/correction/check", version="v1")
def check_correction_v1(session_id: str):
    session = _get_session(session_id)
    result = session.check_correction()
    if result is None:
        raise HTTPException(status_code=409, detail="No correction in progress")
    return result


@router.post("/sessions/{session_id}/correction/exit", response_model=SessionView)
@instrument(route="/api/v1/sessions/correction/exit", version="v1")
def exit_correction_v1(session_id: str):
    session = _get_session(session_id)
    session.exit_correction()
    return _session_view(session)


@router.post("/sessions/{session_id}/check-all", response_model=SessionSummaryResponse)
@instrument(route="/api/v1/sessions/check-all", version="v1")
def check_all_v1(session_id: str):
    session = _get_session(session_id)
    summary = session.check_all()
    emit_event(
        "session_checked",
        route="/api/v1/sessions/check-all",
        version="v1",
        session_id=session.id,
        student_id=session.student.id if session.student else None,
        operation=session.operation,
        ok=summary["correct"] == summary["total"],
    )
    return summary
