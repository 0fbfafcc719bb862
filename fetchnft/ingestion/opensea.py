"""OpenSea (full-featured provider) client."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from fetchnft.core.config import settings
from fetchnft.core.errors import CollectibleFetchError, ProviderError
from fetchnft.core.logging import get_logger
from fetchnft.media.classifier import MediaClassifier
from fetchnft.schemas.collectible import Collectible, CollectibleState, CollectionInfo
from fetchnft.schemas.provider import AssetRecord, OpenSeaAsset, OpenSeaEvent, OwnershipEvent
from fetchnft.services.mapper import CollectibleMapper
from fetchnft.services.reconciler import EventReconciler
from .base import BaseProviderClient, as_dict, dict_items, gather_settled, parse_items

log = get_logger("ingestion.opensea")

EventType = Literal["created", "transfer"]


def _join_contract_addresses(contracts: Any) -> str:
    addresses = [contract.get("address") for contract in dict_items(contracts)]
    return ",".join(address for address in addresses if address)


class OpenSeaClient(BaseProviderClient):
    """Fetches holdings and asset events from OpenSea and reconciles them."""

    name = "opensea"

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        asset_limit: Optional[int] = None,
        event_limit: Optional[int] = None,
        classifier: Optional[MediaClassifier] = None,
        **kwargs: Any,
    ):
        super().__init__(
            api_url or settings.OPENSEA_API_URL,
            api_key if api_key is not None else settings.OPENSEA_API_KEY,
            **kwargs,
        )
        self.asset_limit = asset_limit or settings.OPENSEA_ASSET_LIMIT
        self.event_limit = event_limit or settings.OPENSEA_EVENT_LIMIT
        self.mapper = CollectibleMapper(classifier or MediaClassifier.default())

    def _headers(self) -> Dict[str, str]:
        return {**super()._headers(), "X-API-KEY": self.api_key}

    # -------------------------------------------------------------------------
    # Per-wallet fetchers
    # -------------------------------------------------------------------------
    async def _get_collectibles_for_wallet(self, wallet: str) -> List[OpenSeaAsset]:
        """Page through the wallet's assets until an empty page.

        A failing first page fails the wallet; a later failure keeps what was
        collected so far.
        """
        offset = 0
        assets: List[OpenSeaAsset] = []
        while True:
            try:
                page = await self._send_get_request(
                    "/assets", params={"owner": wallet, "offset": offset, "limit": self.asset_limit}
                )
            except ProviderError as exc:
                if offset == 0:
                    raise
                log.warning(f"Stopped paging assets for {wallet} at offset={offset}: {exc}")
                break
            items = page.get("assets")
            if not isinstance(items, list) or not items:
                break
            assets.extend(parse_items(OpenSeaAsset, items, self.name))
            offset += self.asset_limit
        log.debug(f"Fetched {len(assets)} assets for {wallet}")
        return assets

    async def _get_events_for_wallet(self, wallet: str, event_type: EventType) -> List[OpenSeaEvent]:
        page = await self._send_get_request(
            "/events",
            params={
                "account_address": wallet,
                "limit": self.event_limit,
                "event_type": event_type,
                "only_opensea": "false",
            },
        )
        return parse_items(OpenSeaEvent, page.get("asset_events"), self.name)

    async def _get_created_events_for_wallet(self, wallet: str) -> List[OpenSeaEvent]:
        return await self._get_events_for_wallet(wallet, "created")

    async def _get_transfer_events_for_wallet(self, wallet: str) -> List[OpenSeaEvent]:
        return await self._get_events_for_wallet(wallet, "transfer")

    # -------------------------------------------------------------------------
    # Aggregate
    # -------------------------------------------------------------------------
    async def get_all_collectibles(self, wallets: Sequence[str]) -> CollectibleState:
        """Fetch the three streams for every wallet and reconcile them.

        Individual wallet failures only empty that wallet's stream. Raises
        ``CollectibleFetchError`` when every wallet failed in every stream.
        """
        wallets = list(wallets)
        assets_settled, created_settled, transfers_settled = await asyncio.gather(
            gather_settled(wallets, self._get_collectibles_for_wallet),
            gather_settled(wallets, self._get_created_events_for_wallet),
            gather_settled(wallets, self._get_transfer_events_for_wallet),
        )

        streams = (assets_settled, created_settled, transfers_settled)
        if wallets and all(result is None for stream in streams for _, result in stream):
            log.error(f"All OpenSea streams failed for wallets={wallets}")
            raise CollectibleFetchError(wallets)

        assets, creations, transfers = self._flatten(assets_settled, created_settled, transfers_settled)
        log.info(
            f"OpenSea fetched assets={len(assets)} creations={len(creations)} "
            f"transfers={len(transfers)} wallets={len(wallets)}"
        )
        reconciler = EventReconciler(self.mapper)
        return await reconciler.reconcile(assets, creations, transfers, wallets)

    @staticmethod
    def _flatten(
        assets_settled: List[Tuple[str, Optional[List[OpenSeaAsset]]]],
        created_settled: List[Tuple[str, Optional[List[OpenSeaEvent]]]],
        transfers_settled: List[Tuple[str, Optional[List[OpenSeaEvent]]]],
    ) -> Tuple[List[AssetRecord], List[OwnershipEvent], List[OwnershipEvent]]:
        assets = [asset.to_record(wallet) for wallet, page in assets_settled for asset in page or []]
        creations = [event.to_ownership_event(wallet) for wallet, page in created_settled for event in page or []]
        transfers = [
            event.to_ownership_event(wallet) for wallet, page in transfers_settled for event in page or []
        ]
        return assets, creations, transfers

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    async def get_collectibles_for_wallet_by_contract_addresses_and_token_ids(
        self,
        wallet: str,
        contract_addresses: Sequence[str],
        token_ids: Sequence[str],
    ) -> List[Collectible]:
        """Fetch specific tokens of a wallet; addresses and ids pair up by position."""
        if not contract_addresses or not token_ids or len(contract_addresses) != len(token_ids):
            return []

        params: List[Tuple[str, str]] = [("owner", wallet)]
        params += [("asset_contract_addresses", address) for address in contract_addresses]
        params += [("token_ids", token_id) for token_id in token_ids]
        try:
            page = await self._send_get_request("/assets", params=params)
        except ProviderError as exc:
            log.warning(f"Token lookup failed for {wallet}: {exc}")
            return []

        assets = parse_items(OpenSeaAsset, page.get("assets"), self.name)
        return await self.mapper.map_assets([asset.to_record(wallet) for asset in assets])

    async def get_collection(self, contract_address: str, token_id: str) -> Optional[CollectionInfo]:
        try:
            result = await self._send_get_request(f"/asset/{contract_address}/{token_id}")
        except ProviderError as exc:
            log.warning(f"Collection lookup failed for {contract_address}/{token_id}: {exc}")
            return None
        collection = result.get("collection")
        if not isinstance(collection, dict):
            log.warning(f"No collection in asset {contract_address}/{token_id}")
            return None
        return CollectionInfo(
            name=collection.get("name") or "",
            slug=collection.get("slug") or "",
            image_url=collection.get("image_url") or "",
            contract_address=_join_contract_addresses(collection.get("primary_asset_contracts")),
            safelist_request_status=collection.get("safelist_request_status"),
        )

    async def get_all_collections(self, wallet: str) -> List[CollectionInfo]:
        offset = 0
        collections: List[CollectionInfo] = []
        while True:
            try:
                page = await self._send_get_request(
                    "/collections",
                    params={"asset_owner": wallet, "offset": offset, "limit": self.asset_limit},
                    expect=list,
                )
            except ProviderError as exc:
                log.warning(f"Stopped paging collections for {wallet} at offset={offset}: {exc}")
                break
            if not page:
                break
            collections.extend(
                CollectionInfo(
                    name=item.get("name") or "",
                    slug=item.get("slug") or "",
                    image_url=item.get("image_url") or "",
                    contract_address=_join_contract_addresses(item.get("primary_asset_contracts")),
                    safelist_request_status=item.get("safelist_request_status") or "",
                    num_nfts_owned=item.get("owned_asset_count") or 0,
                )
                for item in dict_items(page)
            )
            offset += self.asset_limit
        return collections

    async def _get_asset(self, contract_address: str, token_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._send_get_request(f"/asset/{contract_address}/{token_id}")
        except ProviderError as exc:
            log.warning(f"Asset lookup failed for {contract_address}/{token_id}: {exc}")
            return None

    async def get_asset_detail(self, contract_address: str, token_id: str) -> Optional[Collectible]:
        result = await self._get_asset(contract_address, token_id)
        assets = parse_items(OpenSeaAsset, [result] if result else [], self.name)
        if not assets:
            return None
        owner = as_dict(result.get("owner"))
        return await self.mapper.asset_to_collectible(assets[0].to_record(owner.get("address") or ""))

    async def get_asset_owner(self, contract_address: str, token_id: str) -> Optional[str]:
        result = await self._get_asset(contract_address, token_id)
        return as_dict(as_dict(result).get("owner")).get("address")
