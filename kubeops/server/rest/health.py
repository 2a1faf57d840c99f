"""Health check endpoint."""

from fastapi import APIRouter, Depends

from kubeops import __version__
from kubeops.platform import KubeOpsPlatform
from kubeops.server.dependencies import get_platform
from kubeops.server.schemas import HealthResponse, SuccessResponse
from kubeops.storage.config import memory_type_label

router = APIRouter(tags=["health"])


@router.get("/health", response_model=SuccessResponse[HealthResponse])
async def health(platform: KubeOpsPlatform = Depends(get_platform)) -> SuccessResponse[HealthResponse]:
    """Report whether the platform and its storage are up."""
    healthy = await platform.storage.health_check()
    return SuccessResponse(
        data=HealthResponse(
            status="ok" if healthy else "degraded",
            version=__version__,
            storage=memory_type_label(platform.storage),
            storage_healthy=healthy,
            agents=len(platform.agents),
            workflows=len(platform.workflows),
        )
    )
