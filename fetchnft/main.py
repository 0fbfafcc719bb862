from contextlib import asynccontextmanager

from fastapi import FastAPI

from fetchnft import __version__
from fetchnft.api.routes import collectibles_router, health_router
from fetchnft.core.config import settings
from fetchnft.core.logging import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"fetchnft {__version__} starting in {settings.ENV.upper()} mode (docs={settings.docs_enabled})")
    log.info(f"Providers with API keys: {settings.configured_providers or 'none'}")
    if not settings.OPENSEA_API_KEY:
        log.warning("OPENSEA_API_KEY is not set; OpenSea requests may be throttled or rejected")
    log.info(
        f"IPFS gateway={settings.IPFS_GATEWAY} "
        f"image converter={'on' if settings.IMAGE_CONVERTER_URL else 'off'} "
        f"probe concurrency={settings.PROBE_CONCURRENCY}"
    )

    yield

    log.info("fetchnft stopped")


app = FastAPI(
    title="fetchnft",
    description="NFT collectibles reconciled per wallet from OpenSea and NftPort",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.debug_enabled,
)

app.include_router(collectibles_router)
app.include_router(health_router)
