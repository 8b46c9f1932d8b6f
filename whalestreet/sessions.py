"""
Per-user studio state.

Everything the browser page used to keep in component state (chat history,
current fragments, description, the in-flight flag) lives in a GameSession
that the API passes through each request.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Dict, Iterator, List, Literal, Optional

from pydantic import BaseModel, Field

from .errors import SessionBusyError, SessionNotFoundError
from .parsers.combined_code import FragmentSet

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to WhaleStreetAI! Describe a game you'd like to create, and I'll help you build it."


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    sender: Literal["user", "ai"]
    text: str
    status: str = ""
    created: datetime = Field(default_factory=datetime.now)


class GameSession(BaseModel):
    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    messages: List[ChatMessage] = Field(default_factory=list)
    fragments: FragmentSet = Field(default_factory=FragmentSet)
    game_description: str = ""
    busy: bool = False
    current_step: str = ""

    @property
    def has_game(self) -> bool:
        return not self.fragments.is_empty

    def add_message(self, sender: str, text: str, status: str = "") -> ChatMessage:
        message = ChatMessage(sender=sender, text=text, status=status)
        self.messages.append(message)
        return message

    def update_code(
        self,
        markup: Optional[str] = None,
        styles: Optional[str] = None,
        script: Optional[str] = None,
    ) -> FragmentSet:
        """Apply manual edits from the code tabs. None leaves a fragment as is."""
        changes = {
            name: value
            for name, value in (("markup", markup), ("styles", styles), ("script", script))
            if value is not None
        }
        if changes:
            self.fragments = self.fragments.replace(**changes)
        return self.fragments


class SessionStore:
    """In-memory, thread-safe session registry."""

    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = Lock()

    def create(self) -> GameSession:
        session = GameSession()
        session.add_message("ai", WELCOME_MESSAGE)
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("🎮 New session: %s", session.session_id)
        return session

    def get(self, session_id: str) -> GameSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("🗑️ Session deleted: %s", session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def update_code(
        self,
        session_id: str,
        markup: Optional[str] = None,
        styles: Optional[str] = None,
        script: Optional[str] = None,
    ) -> GameSession:
        """Apply manual edits unless a generate/improve request holds the session."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.busy:
                raise SessionBusyError(session_id, session.current_step)
            session.update_code(markup, styles, script)
        return session

    @contextmanager
    def claim(self, session_id: str, step: str) -> Iterator[GameSession]:
        """
        Hold the session for one generate/improve request.

        At most one such request runs per session; a second one fails fast
        with SessionBusyError instead of racing on the shared fragments.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.busy:
                raise SessionBusyError(session_id, session.current_step)
            session.busy = True
            session.current_step = step
        try:
            yield session
        finally:
            with self._lock:
                session.busy = False
                session.current_step = ""
