from typing import Dict, List, Optional

from pydantic import BaseModel

from fetchnft.schemas.collectible import Collectible, CollectionInfo


class CollectiblesResponse(BaseModel):
    request_id: str
    api_latency_ms: int
    wallets: List[str]
    data: Dict[str, List[Collectible]]


class CollectionsResponse(BaseModel):
    request_id: str
    wallet: str
    provider: str
    data: List[CollectionInfo]


class OwnerResponse(BaseModel):
    contract_address: str
    token_id: str
    owner: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
