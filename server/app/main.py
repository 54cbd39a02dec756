"""FastAPI application entrypoint for the multi-agent coordination service."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, settings as default_settings
from .routers import coordination, sessions
from .services.orchestration import CoordinationService

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ("authorization", "x-client-info", "apikey", "content-type")


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[CoordinationService] = None,
) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = settings or default_settings
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    coordination_service = service or CoordinationService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await coordination_service.aclose()

    application = FastAPI(
        title="Multi-Agent Coordination Engine",
        description="Selects specialized agents and drives them through a coordination pattern.",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.coordination_service = coordination_service

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=list(CORS_ALLOW_HEADERS),
    )

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
        return JSONResponse(status_code=422, content={"error": "; ".join(messages)})

    @application.get("/")
    async def root() -> dict[str, str]:
        """Lightweight health endpoint for service discovery."""
        return {"service": "multi-agent-coordinator", "status": "ok"}

    application.include_router(coordination.router)
    application.include_router(sessions.router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
