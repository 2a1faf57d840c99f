"""REST API routers."""

from fastapi import APIRouter

from kubeops.server.rest.agents import router as agents_router
from kubeops.server.rest.health import router as health_router
from kubeops.server.rest.workflows import router as workflows_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(agents_router)
api_router.include_router(workflows_router)

__all__ = ["api_router"]
