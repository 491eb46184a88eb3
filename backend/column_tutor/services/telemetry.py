import time
import json
import logging
import asyncio
from typing import Optional
from functools import wraps

logger = logging.getLogger("columntutor.telemetry")

TELEMETRY_TABLE = "telemetry_events"


def _persist(payload: dict) -> None:
    from column_tutor.core.config import get_settings
    if not get_settings().enable_telemetry_db:
        return

    try:
        from column_tutor.core.deps import get_supabase_client
        row = {k: v for k, v in payload.items() if k != "ts"}
        get_supabase_client().table(TELEMETRY_TABLE).insert(row).execute()
    except Exception as e:
        logger.error(f"[telemetry.persist] {e}", exc_info=True)


def emit_event(event: str, *, route: str, version: str, session_id: Optional[str] = None,
               student_id: Optional[str] = None, operation: Optional[str] = None,
               problem_id: Optional[str] = None, error_type: Optional[str] = None,
               latency_ms: Optional[int] = None, ok: Optional[bool] = None):
    payload = {
        "event": event,
        "route": route,
        "version": version,
        "session_id": session_id,
        "student_id": student_id,
        "operation": operation,
        "problem_id": problem_id,
        "error_type": error_type,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    # single-line JSON so log shippers can pick it up as-is
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":")))
    _persist(payload)


def _api_call(route: str, version: str, kwargs: dict, started: float, error: Optional[Exception]):
    emit_event(
        "api_call",
        route=route,
        version=version,
        session_id=kwargs.get("session_id"),
        problem_id=kwargs.get("problem_id"),
        latency_ms=int((time.time() - started) * 1000),
        ok=error is None,
        error_type=type(error).__name__ if error is not None else None,
    )


def instrument(route: str, version: str):
    """Emit one api_call event per request, with latency and the failing exception type."""
    def deco(fn):
        if asyncio.iscoroutinefunction(fn):
            @wraps(fn)
            async def wrapped_async(*args, **kwargs):
                started = time.time()
                try:
                    out = await fn(*args, **kwargs)
                except Exception as e:
                    _api_call(route, version, kwargs, started, e)
                    raise
                _api_call(route, version, kwargs, started, None)
                return out
            return wrapped_async

        @wraps(fn)
        def wrapped(*args, **kwargs):
            started = time.time()
            try:
                out = fn(*args, **kwargs)
            except Exception as e:
                _api_call(route, version, kwargs, started, e)
                raise
            _api_call(route, version, kwargs, started, None)
            return out
        return wrapped
    return deco
