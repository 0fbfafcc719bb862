"""Map provider assets and events to canonical collectibles."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from fetchnft.core.logging import get_logger
from fetchnft.media.classifier import MediaClassification, MediaClassifier
from fetchnft.media.urls import normalize_url
from fetchnft.schemas.collectible import Collectible, MediaType
from fetchnft.schemas.provider import AssetRecord, OwnershipEvent

log = get_logger("services.mapper")

KEY_SEPARATOR = ":::"


def collectible_key(token_id: str, contract_address: Optional[str]) -> str:
    return f"{token_id}{KEY_SEPARATOR}{contract_address or ''}"


def asset_key(asset: AssetRecord) -> str:
    return collectible_key(asset.token_id, asset.contract_address)


class CollectibleMapper:
    """Builds ``Collectible`` records from ``AssetRecord``s.

    Classification problems never escape: anything unexpected degrades the
    asset to an IMAGE collectible and is logged.
    """

    def __init__(self, classifier: MediaClassifier):
        self.classifier = classifier

    async def asset_to_collectible(self, asset: AssetRecord) -> Collectible:
        try:
            media = await self.classifier.classify(asset)
        except Exception:  # noqa: BLE001
            log.exception(f"Error processing collectible {asset_key(asset)}")
            media = self._image_fallback(asset)

        return Collectible(
            id=asset_key(asset),
            token_id=asset.token_id,
            asset_contract_address=asset.contract_address,
            opensea_id=asset.provider_id if asset.provider == "opensea" else None,
            name=asset.name or asset.contract_name or "",
            description=asset.description,
            media_type=media.media_type,
            frame_url=media.frame_url,
            image_url=media.image_url,
            video_url=media.video_url,
            three_d_url=media.three_d_url,
            gif_url=media.gif_url,
            is_owned=True,
            external_link=asset.external_link,
            perma_link=asset.permalink,
            wallet=asset.wallet,
            owner=asset.owner,
            collection=asset.collection,
        )

    async def creation_event_to_collectible(self, event: OwnershipEvent) -> Collectible:
        collectible = await self.asset_to_collectible(event.asset)
        return collectible.model_copy(update={"date_created": event.created_date, "is_owned": False})

    async def transfer_event_to_collectible(
        self, event: OwnershipEvent, is_owned: bool = True, wallet: Optional[str] = None
    ) -> Collectible:
        """Collectible for the event's asset; ``wallet`` overrides the stream's wallet."""
        collectible = await self.asset_to_collectible(event.asset)
        update = {"date_last_transferred": event.created_date, "is_owned": is_owned}
        if wallet is not None:
            update["wallet"] = wallet
        return collectible.model_copy(update=update)

    async def map_assets(self, assets: Sequence[AssetRecord]) -> List[Collectible]:
        """Map a batch of assets concurrently, preserving input order."""
        return list(await asyncio.gather(*(self.asset_to_collectible(asset) for asset in assets)))

    def _image_fallback(self, asset: AssetRecord) -> MediaClassification:
        gateway = self.classifier.gateway
        urls = [normalize_url(url, gateway) for url in [*asset.image_urls, *asset.animation_urls]]
        url = next((u for u in urls if u), None)
        return MediaClassification(media_type=MediaType.IMAGE, frame_url=url, image_url=url)
