"""Multi-agent coordination endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..errors import CoordinationError
from ..models import schemas
from ..services.orchestration import CoordinationRequest, CoordinationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["coordination"])


def get_coordination_service(request: Request) -> CoordinationService:
    return request.app.state.coordination_service


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/coordinate",
    response_model=schemas.CoordinationResponse,
    responses={
        400: {"model": schemas.ErrorResponse},
        404: {"model": schemas.ErrorResponse},
        422: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
        502: {"model": schemas.ErrorResponse},
    },
)
async def coordinate(
    payload: schemas.CoordinationRequestBody,
    service: CoordinationService = Depends(get_coordination_service),
):
    """Run the requested coordination pattern and return the combined result.

    Failures come back as a single ``{"error": ...}`` body; there is no partial
    success shape.
    """

    try:
        outcome = await service.coordinate(
            CoordinationRequest(
                task=payload.task,
                user_id=payload.user_id,
                session_id=payload.session_id,
                required_specializations=payload.required_specializations,
                pattern=payload.coordination_pattern,
            )
        )
    except CoordinationError as exc:
        return error_response(exc.status_code, exc.message)
    except Exception as exc:
        logger.exception("Multi-agent coordination error")
        return error_response(500, str(exc))

    return schemas.CoordinationResponse(
        session_id=outcome.session_id,
        results=outcome.results,
        agents_used=[schemas.AgentUsed(**agent) for agent in outcome.agents_used],
        coordination_pattern=outcome.pattern,
        performance_score=outcome.performance_score,
    )
