from fetchnft.api.routes.collectibles import router as collectibles_router
from fetchnft.api.routes.health import router as health_router

__all__ = ["collectibles_router", "health_router"]
