"""
FastAPI application exposing the platform's agents and workflows.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic_core import to_jsonable_python

from kubeops import __version__
from kubeops.exceptions import (
    InvalidResumeDataError,
    InvalidRunStateError,
    InvalidWorkflowInputError,
    KubeOpsError,
    RunNotFoundError,
    WorkflowNotFoundError,
)
from kubeops.platform import KubeOpsPlatform, build_platform
from kubeops.server.rest import api_router
from kubeops_agents.exceptions import AgentNotFoundError, ProviderError

_STATUS_CODES = (
    ((AgentNotFoundError, WorkflowNotFoundError, RunNotFoundError), 404),
    ((InvalidRunStateError,), 409),
    ((InvalidWorkflowInputError, InvalidResumeDataError), 422),
    ((ProviderError,), 502),
)


def _status_code_for(exc: KubeOpsError) -> int:
    for types, status_code in _STATUS_CODES:
        if isinstance(exc, types):
            return status_code
    return 500


async def _kubeops_error_handler(request: Request, exc: KubeOpsError) -> JSONResponse:
    status_code = _status_code_for(exc)
    if status_code >= 500:
        logger.opt(exception=exc).error(
            "Request failed", path=request.url.path, error_type=type(exc).__name__
        )

    details = getattr(exc, "errors", None)
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "type": type(exc).__name__,
                "message": str(exc),
                "details": to_jsonable_python(details, fallback=str),
            },
        },
    )


def create_app(platform: Optional[KubeOpsPlatform] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        platform: Platform to serve (None = build one from configuration)

    Returns:
        Configured FastAPI application instance.
    """
    platform = platform or build_platform()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await platform.startup()
        platform.log_startup()
        try:
            yield
        finally:
            await platform.shutdown()

    app = FastAPI(
        title="KubeOps Platform API",
        description="Kubernetes operations agents and deployment workflows",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.platform = platform

    app.add_middleware(
        CORSMiddleware,
        allow_origins=platform.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(KubeOpsError, _kubeops_error_handler)
    app.include_router(api_router)

    return app
