from typing import Optional

from column_tutor.services.quiz_session import QuizSession


class InMemorySessionStore:
    def __init__(self):
        self._data: dict[str, QuizSession] = {}

    def get(self, session_id: str) -> Optional[QuizSession]:
        return self._data.get(session_id)

    def put(self, session: QuizSession) -> QuizSession:
        self._data[session.id] = session
        return session

    def delete(self, session_id: str) -> bool:
        return self._data.pop(session_id, None) is not None


SESSION_STORE = InMemorySessionStore()


def get_session_store() -> InMemorySessionStore:
    return SESSION_STORE
