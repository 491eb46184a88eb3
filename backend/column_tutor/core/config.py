from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "Column Tutor"
    debug: bool = False

    # Supabase (only needed when a store is switched to "supabase")
    supabase_url: str = ""
    supabase_service_key: str = ""

    # Where finished quiz scores go: "memory" | "supabase"
    score_store: str = "memory"
    enable_telemetry_db: bool = False

    # Focus pacing handed back to the client with every auto-advance
    auto_advance_delay_ms: int = 150
    quick_focus_delay_ms: int = 50
    warning_duration_ms: int = 1000

    # Quiz sizing
    default_question_count: int = 10
    max_question_count: int = 50

    # CORS
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
