"""Concrete implementations for session stores."""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .models import Session


class Store(ABC):
    """Interface for the sessions a host keeps, keyed by opaque ids."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[Session]:
        """Returns the session, or None if it was never created."""
        pass

    @abstractmethod
    def get_or_create(self, session_id: str, dual_mode: bool = False) -> Session:
        """Returns the session, creating an empty one on first use."""
        pass

    @abstractmethod
    def clear(self, session_id: str) -> None:
        """Empties the session's histories. The id stays known."""
        pass

    @abstractmethod
    def lock(self, session_id: str) -> threading.Lock:
        """Returns the lock hosts hold while a turn runs on the session."""
        pass


class InMemory(Store):
    """Keeps sessions in a dictionary for the lifetime of the process."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str, dual_mode: bool = False) -> Session:
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id, dual_mode=dual_mode)
                self._sessions[session_id] = session
            return session

    def clear(self, session_id: str) -> None:
        session = self.get_or_create(session_id)
        session.reset()

    def lock(self, session_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(session_id, threading.Lock())
