"""API dependencies"""

from functools import lru_cache

from fetchnft.client import FetchNFTClient


@lru_cache
def get_client() -> FetchNFTClient:
    """Shared provider facade (one limiter and classifier per process)."""
    return FetchNFTClient()
