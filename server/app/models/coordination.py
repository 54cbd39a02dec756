"""Domain records shared by the coordination services."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

COORDINATOR_SPECIALIZATION = "coordination"
MEMORY_KEY_PREFIX = "multi_agent_task_"
MEMORY_IMPORTANCE = 0.8
SESSION_NAME_TASK_CHARS = 50


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CoordinationPattern(str, Enum):
    """Protocols available for driving the selected agents."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"


class SessionPhase(str, Enum):
    """Lifecycle markers stored in ``current_phase``."""

    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Agent:
    """Registry entry snapshot taken when a session starts."""

    id: str
    name: str
    specialization: str
    behavior: str
    active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Agent":
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            specialization=str(row.get("specialization") or ""),
            behavior=str(row.get("system_prompt") or ""),
            active=bool(row.get("active", True)),
        )

    @property
    def is_coordinator(self) -> bool:
        return self.specialization == COORDINATOR_SPECIALIZATION


@dataclass(slots=True)
class StrategyStepResult:
    """One recorded agent invocation inside a session's results."""

    agent: str
    specialization: str
    input: str
    output: str
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent,
            "specialization": self.specialization,
            "input": self.input,
            "output": self.output,
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class CoordinationResults:
    """Output of a strategy run, independent of how it gets serialized."""

    pattern: CoordinationPattern
    steps: list[StrategyStepResult] = field(default_factory=list)
    synthesis: Optional[str] = None
    plan: Optional[str] = None
    final_synthesis: Optional[str] = None

    def as_payload(self) -> dict[str, Any]:
        """Render the pattern-specific ``results`` payload stored on the session."""

        steps = [step.to_dict() for step in self.steps]
        if self.pattern is CoordinationPattern.HIERARCHICAL:
            return {
                "coordination_type": self.pattern.value,
                "plan": self.plan,
                "specialist_outputs": steps,
                "final_synthesis": self.final_synthesis,
            }

        payload: dict[str, Any] = {"coordination_type": self.pattern.value, "responses": steps}
        if self.pattern is CoordinationPattern.PARALLEL:
            payload["synthesis"] = self.synthesis
        return payload


@dataclass(slots=True)
class CoordinationSession:
    """Persisted record of one coordination request."""

    user_id: str
    objective: str
    pattern: CoordinationPattern
    agent_ids: list[str]
    context: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    phase: SessionPhase = SessionPhase.CREATED
    results: Optional[dict[str, Any]] = None
    performance_score: Optional[float] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def name(self) -> str:
        return f"Task: {self.objective[:SESSION_NAME_TASK_CHARS]}..."

    def to_row(self) -> dict[str, Any]:
        """Columns written when the session is created."""

        return {
            "user_id": self.user_id,
            "session_name": self.name,
            "agents_involved": list(self.agent_ids),
            "primary_objective": self.objective,
            "coordination_pattern": self.pattern.value,
            "session_context": dict(self.context),
            "current_phase": self.phase.value,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CoordinationSession":
        score = row.get("performance_score")
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            objective=str(row.get("primary_objective") or ""),
            pattern=CoordinationPattern(row.get("coordination_pattern") or CoordinationPattern.SEQUENTIAL),
            agent_ids=[str(agent_id) for agent_id in row.get("agents_involved") or []],
            context=dict(row.get("session_context") or {}),
            phase=SessionPhase(row.get("current_phase") or SessionPhase.CREATED),
            results=row.get("results"),
            performance_score=float(score) if score is not None else None,
            created_at=row.get("created_at"),
            completed_at=row.get("completed_at"),
        )


@dataclass(slots=True)
class MemoryEntry:
    """Summary of a completed session appended to the user's memory."""

    user_id: str
    task: str
    agent_names: list[str]
    pattern: CoordinationPattern
    performance_score: float
    timestamp: str = field(default_factory=utc_now_iso)
    key: str = field(default_factory=lambda: f"{MEMORY_KEY_PREFIX}{int(time.time() * 1000)}")
    memory_type: str = "interaction"
    importance: float = MEMORY_IMPORTANCE

    def value(self) -> dict[str, Any]:
        return {
            "task": self.task,
            "agents_used": list(self.agent_names),
            "coordination_pattern": self.pattern.value,
            "performance_score": self.performance_score,
            "timestamp": self.timestamp,
        }
