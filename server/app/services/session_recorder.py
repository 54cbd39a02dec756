"""Session lifecycle writes: creation, finalization and the memory summary."""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from ..errors import PersistenceError
from ..models.coordination import (
    Agent,
    CoordinationPattern,
    CoordinationSession,
    MemoryEntry,
    SessionPhase,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    async def create_session(self, row: dict[str, Any]) -> str:
        ...

    async def update_session(self, session_id: str, changes: dict[str, Any]) -> None:
        ...

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        ...


class MemoryStore(Protocol):
    async def store_user_memory(self, entry: MemoryEntry) -> None:
        ...


class SessionRecorder:
    """Single writer of coordination session records."""

    def __init__(self, sessions: SessionStore, memories: MemoryStore) -> None:
        self._sessions = sessions
        self._memories = memories

    async def start(
        self,
        *,
        user_id: str,
        task: str,
        agents: Sequence[Agent],
        pattern: CoordinationPattern,
        context: Optional[dict[str, Any]] = None,
    ) -> CoordinationSession:
        session = CoordinationSession(
            user_id=user_id,
            objective=task,
            pattern=pattern,
            agent_ids=[agent.id for agent in agents],
            context={"original_request": task, **(context or {})},
            phase=SessionPhase.RUNNING,
        )
        session_id = await self._sessions.create_session(session.to_row())
        if not session_id:
            raise PersistenceError("Session store did not return a session id")
        session.id = session_id
        logger.info("Created coordination session %s (pattern=%s)", session_id, pattern.value)
        return session

    async def complete(self, session: CoordinationSession, results: dict[str, Any], score: float) -> None:
        """Write results, score and the terminal phase in one update."""

        completed_at = utc_now_iso()
        await self._sessions.update_session(
            session.id,
            {
                "results": results,
                "current_phase": SessionPhase.COMPLETED.value,
                "completed_at": completed_at,
                "performance_score": score,
            },
        )
        session.results = results
        session.performance_score = score
        session.phase = SessionPhase.COMPLETED
        session.completed_at = completed_at
        logger.info("Completed coordination session %s (score=%.2f)", session.id, score)

    async def fail(self, session: CoordinationSession, error: BaseException) -> None:
        """Mark a session failed; never raises so the original error reaches the caller."""

        context = {**session.context, "error": str(error)}
        try:
            await self._sessions.update_session(
                session.id,
                {"current_phase": SessionPhase.FAILED.value, "session_context": context},
            )
        except Exception:
            logger.exception("Could not mark coordination session %s as failed", session.id)
            return
        session.phase = SessionPhase.FAILED
        session.context = context
        logger.info("Marked coordination session %s as failed", session.id)

    async def remember(
        self,
        *,
        user_id: str,
        task: str,
        agents: Sequence[Agent],
        pattern: CoordinationPattern,
        score: float,
    ) -> None:
        """Append the memory summary; failures are logged and dropped."""

        entry = MemoryEntry(
            user_id=user_id,
            task=task,
            agent_names=[agent.name for agent in agents],
            pattern=pattern,
            performance_score=score,
        )
        try:
            await self._memories.store_user_memory(entry)
        except Exception:
            logger.exception("Storing user memory %s failed", entry.key)

    async def load(self, session_id: str) -> Optional[CoordinationSession]:
        row = await self._sessions.get_session(session_id)
        if row is None:
            return None
        return CoordinationSession.from_row(row)
