"""Raw provider payload schemas.

Two incompatible asset shapes arrive from the providers: the full-featured
OpenSea asset and the minimal NftPort nft. Both are converted into
``AssetRecord`` right after fetch so the classifier only ever sees one shape.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

ProviderName = Literal["opensea", "nftport"]


def _to_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class AssetContract(BaseModel):
    address: Optional[str] = None
    name: Optional[str] = None


class Account(BaseModel):
    address: Optional[str] = None


class AssetRecord(BaseModel):
    """Provider-independent superset of both asset shapes."""

    provider: ProviderName
    wallet: str
    token_id: str
    contract_address: Optional[str] = None
    contract_name: Optional[str] = None
    provider_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    external_link: Optional[str] = None
    permalink: Optional[str] = None
    image_url: Optional[str] = None
    image_original_url: Optional[str] = None
    image_preview_url: Optional[str] = None
    image_thumbnail_url: Optional[str] = None
    animation_url: Optional[str] = None
    animation_original_url: Optional[str] = None
    owner: Optional[Any] = None
    collection: Optional[Any] = None

    @property
    def image_urls(self) -> list[Optional[str]]:
        """Image-slot URLs in precedence order."""
        return [
            self.image_url,
            self.image_original_url,
            self.image_preview_url,
            self.image_thumbnail_url,
        ]

    @property
    def animation_urls(self) -> list[Optional[str]]:
        return [self.animation_url, self.animation_original_url]


class OpenSeaAsset(BaseModel):
    """Asset as returned by the OpenSea v1 API (fields we use only)."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    token_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    external_link: Optional[str] = None
    permalink: Optional[str] = None
    image_url: Optional[str] = None
    image_preview_url: Optional[str] = None
    image_thumbnail_url: Optional[str] = None
    image_original_url: Optional[str] = None
    animation_url: Optional[str] = None
    animation_original_url: Optional[str] = None
    owner: Optional[Any] = None
    asset_contract: Optional[AssetContract] = None
    collection: Optional[Any] = None

    @field_validator("id", "token_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Optional[str]:
        return _to_optional_str(value)

    def to_record(self, wallet: str) -> AssetRecord:
        contract = self.asset_contract
        return AssetRecord(
            provider="opensea",
            wallet=wallet,
            token_id=self.token_id,
            contract_address=contract.address if contract else None,
            contract_name=contract.name if contract else None,
            provider_id=self.id,
            name=self.name,
            description=self.description,
            external_link=self.external_link,
            permalink=self.permalink,
            image_url=self.image_url,
            image_original_url=self.image_original_url,
            image_preview_url=self.image_preview_url,
            image_thumbnail_url=self.image_thumbnail_url,
            animation_url=self.animation_url,
            animation_original_url=self.animation_original_url,
            owner=self.owner,
            collection=self.collection,
        )


class NftPortNft(BaseModel):
    """Nft as returned by the NftPort v0 API (fields we use only)."""

    model_config = ConfigDict(extra="ignore")

    token_id: str
    contract_address: Optional[str] = None
    name: Optional[str] = None
    file_url: Optional[str] = None
    cached_file_url: Optional[str] = None
    animation_url: Optional[str] = None
    cached_animation_url: Optional[str] = None
    metadata: Optional[dict] = None
    collection: Optional[Any] = None

    @field_validator("token_id", mode="before")
    @classmethod
    def coerce_token_id(cls, value: Any) -> Optional[str]:
        return _to_optional_str(value)

    def to_record(self, wallet: str) -> AssetRecord:
        # Cached URLs are the provider's mirror of the originals
        owner_address = wallet.lower()
        return AssetRecord(
            provider="nftport",
            wallet=owner_address,
            token_id=self.token_id,
            contract_address=self.contract_address,
            name=self.name,
            description=(self.metadata or {}).get("description") or None,
            image_url=self.file_url or self.cached_file_url or None,
            animation_url=self.animation_url or self.cached_animation_url or None,
            owner={"user": None, "address": owner_address},
            collection=self.collection,
        )


class OpenSeaEvent(BaseModel):
    """Asset event (``created`` or ``transfer``) from the OpenSea events endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    created_date: str
    from_account: Optional[Account] = None
    to_account: Optional[Account] = None
    asset: Optional[OpenSeaAsset] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Optional[str]:
        return _to_optional_str(value)

    def to_ownership_event(self, wallet: str) -> "OwnershipEvent":
        return OwnershipEvent(
            event_id=self.id,
            created_date=self.created_date,
            from_address=self.from_account.address if self.from_account else None,
            to_address=self.to_account.address if self.to_account else None,
            asset=self.asset.to_record(wallet) if self.asset else None,
            wallet=wallet,
        )


class OwnershipEvent(BaseModel):
    """Creation or transfer event tied to the wallet whose query produced it."""

    event_id: Optional[str] = None
    created_date: str
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    asset: Optional[AssetRecord] = None
    wallet: str

    @property
    def is_from_null_address(self) -> bool:
        return self.from_address == NULL_ADDRESS
