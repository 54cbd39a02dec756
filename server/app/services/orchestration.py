"""Coordination facade: validate, select agents, run a strategy, score and record the session."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from typing_extensions import assert_never

from ..config import Settings
from ..errors import InvalidRequestError
from ..models.coordination import (
    Agent,
    CoordinationPattern,
    CoordinationResults,
    CoordinationSession,
)
from .agent_selector import AgentRegistry, select_agents
from .completion import CompletionClient, build_completion_client
from .scoring import calculate_performance_score
from .session_recorder import SessionRecorder
from .strategies import (
    coordinate_hierarchically,
    coordinate_in_parallel,
    coordinate_sequentially,
    split_coordinator,
)
from .supabase_persistence import SupabasePersistence

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CoordinationRequest:
    """Validated input for a single coordination run."""

    task: str
    user_id: str
    required_specializations: list[str] = field(default_factory=list)
    pattern: CoordinationPattern | str = CoordinationPattern.SEQUENTIAL
    session_id: Optional[str] = None


@dataclass(slots=True)
class CoordinationOutcome:
    """Everything returned to the caller after a successful run."""

    session_id: str
    results: dict[str, Any]
    agents_used: list[dict[str, str]]
    pattern: CoordinationPattern
    performance_score: float


class CoordinationService:
    """Single entry point driving agents through a coordination pattern."""

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        recorder: SessionRecorder,
        complete: CompletionClient,
        synthesize: Optional[CompletionClient] = None,
        mark_failed_sessions: bool = True,
    ) -> None:
        self._registry = registry
        self._recorder = recorder
        self._complete = complete
        self._synthesize = synthesize or complete
        self._mark_failed_sessions = mark_failed_sessions

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoordinationService":
        """Wire Supabase persistence and the configured completion backend."""

        persistence = SupabasePersistence(settings)
        return cls(
            registry=persistence,
            recorder=SessionRecorder(persistence, persistence),
            complete=build_completion_client(settings, temperature=settings.agent_temperature),
            synthesize=build_completion_client(settings, temperature=settings.synthesis_temperature),
            mark_failed_sessions=settings.mark_failed_sessions,
        )

    @staticmethod
    def _validate(request: CoordinationRequest) -> CoordinationPattern:
        if not (request.task or "").strip():
            raise InvalidRequestError("A task is required")
        if not (request.user_id or "").strip():
            raise InvalidRequestError("A user id is required")
        if not request.required_specializations:
            raise InvalidRequestError("At least one required specialization must be provided")
        try:
            return CoordinationPattern(request.pattern)
        except ValueError as exc:
            raise InvalidRequestError(f"Unknown coordination pattern: {request.pattern!r}") from exc

    async def coordinate(self, request: CoordinationRequest) -> CoordinationOutcome:
        pattern = self._validate(request)
        logger.info(
            "Multi-agent coordination request: user=%s pattern=%s specializations=%s",
            request.user_id,
            pattern.value,
            request.required_specializations,
        )

        agents = await select_agents(self._registry, request.required_specializations)
        if pattern is CoordinationPattern.HIERARCHICAL:
            split_coordinator(agents)

        context: dict[str, Any] = {}
        if request.session_id:
            context["client_session_id"] = request.session_id
        session = await self._recorder.start(
            user_id=request.user_id,
            task=request.task,
            agents=agents,
            pattern=pattern,
            context=context,
        )

        try:
            results = await self._run_strategy(pattern, agents, request.task)
            score = calculate_performance_score(results)
            payload = results.as_payload()
            await self._recorder.complete(session, payload, score)
        except Exception as exc:
            logger.warning("Coordination session %s failed: %s", session.id, exc)
            if self._mark_failed_sessions:
                await self._recorder.fail(session, exc)
            raise

        await self._recorder.remember(
            user_id=request.user_id,
            task=request.task,
            agents=agents,
            pattern=pattern,
            score=score,
        )

        return CoordinationOutcome(
            session_id=session.id,
            results=payload,
            agents_used=[{"name": agent.name, "specialization": agent.specialization} for agent in agents],
            pattern=pattern,
            performance_score=score,
        )

    async def _run_strategy(
        self, pattern: CoordinationPattern, agents: list[Agent], task: str
    ) -> CoordinationResults:
        if pattern is CoordinationPattern.SEQUENTIAL:
            return await coordinate_sequentially(agents, task, self._complete)
        if pattern is CoordinationPattern.PARALLEL:
            return await coordinate_in_parallel(agents, task, self._complete, self._synthesize)
        if pattern is CoordinationPattern.HIERARCHICAL:
            return await coordinate_hierarchically(agents, task, self._complete)
        assert_never(pattern)

    async def get_session(self, session_id: str) -> Optional[CoordinationSession]:
        return await self._recorder.load(session_id)

    async def aclose(self) -> None:
        clients = [self._complete]
        if self._synthesize is not self._complete:
            clients.append(self._synthesize)
        for client in clients:
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()
