"""Pydantic models describing request and response payloads."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .coordination import CoordinationPattern


class CoordinationRequestBody(BaseModel):
    """Incoming payload for a multi-agent coordination run."""

    model_config = ConfigDict(populate_by_name=True)

    task: str = Field(..., description="High-level task handed to the selected agents")
    user_id: str = Field(..., alias="userId", description="Owner of the session and memory entry")
    session_id: Optional[str] = Field(default=None, alias="sessionId", description="Caller-side session reference")
    required_specializations: List[str] = Field(
        default_factory=list,
        alias="requiredSpecializations",
        description="Agent specializations to select from the registry",
    )
    coordination_pattern: CoordinationPattern = Field(
        default=CoordinationPattern.SEQUENTIAL,
        alias="coordinationPattern",
        description="Protocol used to drive the agents",
    )


class AgentUsed(BaseModel):
    name: str
    specialization: str


class CoordinationResponse(BaseModel):
    """Response returned after a successful coordination run."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_id: str = Field(..., alias="sessionId")
    results: Dict[str, Any]
    agents_used: List[AgentUsed] = Field(..., alias="agentsUsed")
    coordination_pattern: CoordinationPattern = Field(..., alias="coordinationPattern")
    performance_score: float = Field(..., alias="performanceScore", ge=0.0, le=1.0)


class ErrorResponse(BaseModel):
    error: str


class SessionStatusResponse(BaseModel):
    """Represents the stored state of a coordination session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    phase: str
    coordination_pattern: CoordinationPattern = Field(..., alias="coordinationPattern")
    performance_score: Optional[float] = Field(default=None, alias="performanceScore")
    results: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    completed_at: Optional[str] = Field(default=None, alias="completedAt")
