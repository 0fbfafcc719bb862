"""Canonical collectible schema shared by every provider."""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MediaType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    GIF = "GIF"
    THREE_D = "THREE_D"
    AUDIO = "AUDIO"
    HTML = "HTML"


class AssetStatus(str, Enum):
    NEW = "new"


class Collectible(BaseModel):
    """Normalized collectible, keyed by ``token_id:::contract_address``.

    Serialized with camelCase field names (``tokenId``, ``mediaType``, ...).
    Only the timestamp fields change after construction.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    token_id: str
    asset_contract_address: Optional[str] = None
    opensea_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    media_type: MediaType
    frame_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    three_d_url: Optional[str] = None
    gif_url: Optional[str] = None
    is_owned: bool = True
    date_created: Optional[str] = None
    date_last_transferred: Optional[str] = None
    external_link: Optional[str] = None
    perma_link: Optional[str] = None
    chain: Literal["eth"] = "eth"
    wallet: str
    owner: Optional[Any] = None
    collection: Optional[Any] = None
    status: AssetStatus = AssetStatus.NEW


CollectibleState = Dict[str, List[Collectible]]


class CollectionInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    slug: str = ""
    image_url: str = ""
    contract_address: str = ""
    safelist_request_status: Optional[str] = None
    num_nfts_owned: int = 0


class NftPortPage(BaseModel):
    """One page of NftPort collectibles plus the cursor for the next page."""

    data: List[Collectible] = []
    continuation: Optional[str] = None
    count: int = 0
