import logging
import re
import time
from dataclasses import dataclass, asdict, field
from typing import Optional

from pydantic import BaseModel

from column_tutor.models.problem import MathProblem, ValidationResult

logger = logging.getLogger("columntutor.score_store")


class Student(BaseModel):
    id: str
    name: str
    class_name: str


def year_from_class_name(class_name: str) -> int:
    """ "4B" → 4, "Year 2" → 2; class names without digits count as year 1."""
    digits = re.sub(r"[^0-9]", "", class_name or "")
    return int(digits) if digits else 1


@dataclass
class ScoreRecord:
    student_id: str
    student_name: str
    class_name: str
    year: int
    tier: str
    operation: str
    total_questions: int
    correct_answers: int
    wrong_answers: int
    percentage: int
    timestamp: float = 0.0
    details: list[dict] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def build_score_record(
    student: Student,
    tier: str,
    operation: str,
    results: list[tuple[MathProblem, ValidationResult]],
) -> ScoreRecord:
    total = len(results)
    correct = sum(1 for _, v in results if v.is_correct)
    return ScoreRecord(
        student_id=student.id,
        student_name=student.name,
        class_name=student.class_name,
        year=year_from_class_name(student.class_name),
        tier=tier,
        operation=operation,
        total_questions=total,
        correct_answers=correct,
        wrong_answers=total - correct,
        percentage=round(correct / total * 100) if total else 0,
        timestamp=time.time(),
        details=[{"problem_id": p.id, "is_correct": v.is_correct} for p, v in results],
    )


class ScoreStore:
    def save(self, record: ScoreRecord) -> ScoreRecord:
        raise NotImplementedError

    def list_student(self, student_id: str) -> list[ScoreRecord]:
        raise NotImplementedError


class InMemoryScoreStore(ScoreStore):
    def __init__(self):
        self._records: list[ScoreRecord] = []

    def save(self, record: ScoreRecord) -> ScoreRecord:
        self._records.append(record)
        return record

    def list_student(self, student_id: str) -> list[ScoreRecord]:
        out = [r for r in self._records if r.student_id == student_id]
        return sorted(out, key=lambda r: r.timestamp, reverse=True)


class SupabaseScoreStore(ScoreStore):
    def __init__(self, supabase_client):
        self.sb = supabase_client

    def save(self, record: ScoreRecord) -> ScoreRecord:
        self.sb.table("scores").insert(record.to_dict()).execute()
        return record

    def list_student(self, student_id: str) -> list[ScoreRecord]:
        r = (
            self.sb.table("scores")
            .select("*")
            .eq("student_id", student_id)
            .order("timestamp", desc=True)
            .execute()
        )
        rows = getattr(r, "data", None) or []
        out = []
        for d in rows:
            out.append(ScoreRecord(
                student_id=d["student_id"],
                student_name=d.get("student_name", ""),
                class_name=d.get("class_name", ""),
                year=int(d.get("year", 1)),
                tier=d.get("tier", ""),
                operation=d.get("operation", ""),
                total_questions=int(d["total_questions"]),
                correct_answers=int(d["correct_answers"]),
                wrong_answers=int(d["wrong_answers"]),
                percentage=int(d["percentage"]),
                timestamp=float(d.get("timestamp", 0.0)),
                details=d.get("details") or [],
            ))
        return out


SCORE_STORE = InMemoryScoreStore()


def get_score_store() -> ScoreStore:
    from column_tutor.core.config import get_settings

    if get_settings().score_store.lower() != "supabase":
        return SCORE_STORE

    # lazy import to avoid dependency/testing issues
    try:
        from column_tutor.core.deps import get_supabase_client
        return SupabaseScoreStore(get_supabase_client())
    except Exception as e:
        logger.warning("Supabase score store unavailable, using memory: %s", e)
        return SCORE_STORE


def record_score(record: ScoreRecord, store: Optional[ScoreStore] = None) -> bool:
    """Best-effort write; a failing store never reaches the learner."""
    store = store or get_score_store()
    try:
        store.save(record)
        logger.info(
            "Recorded score for student=%s op=%s %d/%d",
            record.student_id, record.operation, record.correct_answers, record.total_questions,
        )
        return True
    except Exception as e:
        logger.error(f"[score_store.record_score] {e}", exc_info=True)
        return False
