"""Health routes - liveness checks."""

from fastapi import APIRouter

from fetchnft import __version__
from fetchnft.core.config import settings
from fetchnft.schemas.api import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health():
    """Liveness probe for load balancers and Docker health checks."""
    return HealthResponse(status="healthy", env=settings.ENV, version=__version__)
