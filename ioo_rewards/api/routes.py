from fastapi import APIRouter

from ioo_rewards import __version__
from ioo_rewards.api.schemas import HealthResponse
from ioo_rewards.services.badge_catalog import BADGES, CATALOG_VERSION

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health and catalog status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        catalog_version=CATALOG_VERSION,
        badge_count=len(BADGES),
    )
