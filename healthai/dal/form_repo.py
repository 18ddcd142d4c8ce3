import logging
from typing import Dict

from healthai.services.form_state import FormState, reduce

logger = logging.getLogger(__name__)


class FormStateRepository:
    def __init__(self):
        # In-memory only; nothing a user submits is written to disk.
        # key: session_id, value: FormState
        self._storage: Dict[str, FormState] = {}

    def get(self, session_id: str) -> FormState:
        return self._storage.get(session_id) or FormState()

    def dispatch(self, session_id: str, event) -> FormState:
        """Applies an event to the session's state and stores the result."""
        new_state = reduce(self.get(session_id), event)
        self._storage[session_id] = new_state
        return new_state

    def clear_session(self, session_id: str):
        if session_id in self._storage:
            del self._storage[session_id]
            logger.info(f"Form state cleared for session {session_id}")


form_repo = FormStateRepository()
