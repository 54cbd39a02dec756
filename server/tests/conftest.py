from __future__ import annotations

import copy
from typing import Any, Callable, Optional, Sequence

import pytest

from app.errors import PersistenceError, UpstreamCompletionError
from app.models.coordination import Agent, MemoryEntry
from app.services.orchestration import CoordinationService
from app.services.session_recorder import SessionRecorder


class RecordingCompletion:
    """Completion client double that records every (behavior, input) pair."""

    def __init__(
        self,
        responder: Optional[Callable[[str, str], str]] = None,
        fail_when: Optional[Callable[[str, str], bool]] = None,
    ) -> None:
        self.calls: list[tuple[str, str]] = []
        self._responder = responder
        self._fail_when = fail_when

    async def __call__(self, behavior: str, input_text: str) -> str:
        self.calls.append((behavior, input_text))
        if self._fail_when and self._fail_when(behavior, input_text):
            raise UpstreamCompletionError("Completion service call failed: quota exceeded")
        if self._responder:
            return self._responder(behavior, input_text)
        return f"output #{len(self.calls)} for <{behavior}>"


class InMemoryStore:
    """Agent registry, session store and memory store kept in dictionaries."""

    def __init__(self, agents: Sequence[Agent] = ()) -> None:
        self.agents = list(agents)
        self.sessions: dict[str, dict[str, Any]] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.memories: list[MemoryEntry] = []
        self.registry_queries: list[list[str]] = []
        self.fail_create = False
        self.fail_update = False
        self.fail_memory = False

    async def fetch_active_agents(self, specializations: Sequence[str]) -> list[Agent]:
        self.registry_queries.append(list(specializations))
        return [agent for agent in self.agents if agent.active and agent.specialization in specializations]

    async def create_session(self, row: dict[str, Any]) -> str:
        if self.fail_create:
            raise PersistenceError("Supabase session insert failed: connection reset")
        session_id = f"session-{len(self.sessions) + 1}"
        self.sessions[session_id] = {
            **copy.deepcopy(row),
            "id": session_id,
            "created_at": "2026-01-01T00:00:00+00:00",
            "results": None,
            "performance_score": None,
            "completed_at": None,
        }
        return session_id

    async def update_session(self, session_id: str, changes: dict[str, Any]) -> None:
        self.updates.append((session_id, copy.deepcopy(changes)))
        if self.fail_update:
            raise PersistenceError("Supabase session update failed: connection reset")
        self.sessions[session_id].update(copy.deepcopy(changes))

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        row = self.sessions.get(session_id)
        return copy.deepcopy(row) if row is not None else None

    async def store_user_memory(self, entry: MemoryEntry) -> None:
        if self.fail_memory:
            raise RuntimeError("memory rpc unavailable")
        self.memories.append(entry)


@pytest.fixture
def make_agent() -> Callable[..., Agent]:
    counter = iter(range(1, 1000))

    def _make(name: str, specialization: str, *, active: bool = True) -> Agent:
        return Agent(
            id=f"agent-{next(counter)}",
            name=name,
            specialization=specialization,
            behavior=f"You are the {specialization} specialist {name}.",
            active=active,
        )

    return _make


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def completion() -> RecordingCompletion:
    return RecordingCompletion()


@pytest.fixture
def make_service() -> Callable[..., CoordinationService]:
    def _make(store: InMemoryStore, complete: RecordingCompletion, **kwargs: Any) -> CoordinationService:
        return CoordinationService(
            registry=store,
            recorder=SessionRecorder(store, store),
            complete=complete,
            **kwargs,
        )

    return _make
