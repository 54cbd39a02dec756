"""Session lookup endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..errors import CoordinationError
from ..models import schemas
from ..services.orchestration import CoordinationService
from .coordination import error_response, get_coordination_service

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get(
    "/{session_id}",
    response_model=schemas.SessionStatusResponse,
    responses={404: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
async def get_session_status(
    session_id: str,
    service: CoordinationService = Depends(get_coordination_service),
):
    """Return the stored state of a coordination session."""

    try:
        session = await service.get_session(session_id)
    except CoordinationError as exc:
        return error_response(exc.status_code, exc.message)
    if session is None:
        return error_response(404, f"Session {session_id} not found")

    return schemas.SessionStatusResponse(
        session_id=session.id,
        phase=session.phase.value,
        coordination_pattern=session.pattern,
        performance_score=session.performance_score,
        results=session.results,
        created_at=session.created_at,
        completed_at=session.completed_at,
    )
