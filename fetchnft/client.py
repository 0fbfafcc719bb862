"""Facade over the provider clients."""

from __future__ import annotations

from typing import List, Optional, Sequence

from fetchnft.core.logging import get_logger
from fetchnft.ingestion.nftport import NftPortClient
from fetchnft.ingestion.opensea import OpenSeaClient
from fetchnft.schemas.collectible import Collectible, CollectibleState, CollectionInfo, NftPortPage

log = get_logger("client")


class FetchNFTClient:
    """Single entry point for collectibles, collections and ownership lookups.

    Usage:
        client = FetchNFTClient()
        state = await client.get_collectibles(eth_wallets=["0xabc..."])
    """

    def __init__(
        self,
        opensea_client: Optional[OpenSeaClient] = None,
        nftport_client: Optional[NftPortClient] = None,
    ):
        self.opensea_client = opensea_client or OpenSeaClient()
        self.nftport_client = nftport_client or NftPortClient()

    async def get_collectibles_from_opensea(self, wallets: Sequence[str]) -> CollectibleState:
        if not wallets:
            return {}
        return await self.opensea_client.get_all_collectibles(wallets)

    async def get_collectibles(self, eth_wallets: Optional[Sequence[str]] = None) -> CollectibleState:
        """Aggregate collectibles for the given Ethereum wallets.

        Raises ``CollectibleFetchError`` only when nothing could be fetched at all.
        """
        try:
            return await self.get_collectibles_from_opensea(eth_wallets or [])
        except Exception as exc:
            log.error(f"Collectible fetch failed: {exc}")
            raise

    async def get_collectibles_from_opensea_by_contract_addresses_and_token_ids(
        self,
        wallet: str,
        contract_addresses: Sequence[str],
        token_ids: Sequence[str],
    ) -> List[Collectible]:
        if not wallet:
            return []
        return await self.opensea_client.get_collectibles_for_wallet_by_contract_addresses_and_token_ids(
            wallet, contract_addresses, token_ids
        )

    async def get_ethereum_collection(
        self, contract_address: str, token_id: str, is_dev: bool = False
    ) -> Optional[CollectionInfo]:
        """Resolve collection info, OpenSea first with NftPort as fallback.

        In dev only NftPort is consulted.
        """
        if is_dev:
            return await self._nftport_collection(contract_address, token_id)
        collection = await self.opensea_client.get_collection(contract_address, token_id)
        return collection or await self._nftport_collection(contract_address, token_id)

    async def _nftport_collection(self, contract_address: str, token_id: str) -> Optional[CollectionInfo]:
        collectible = await self.nftport_client.get_asset_detail(contract_address, token_id)
        if collectible is None:
            return None
        collection = collectible.collection if isinstance(collectible.collection, dict) else {}
        return CollectionInfo(
            name=collection.get("name") or "",
            slug=collection.get("slug") or "",
            image_url=collection.get("image_url") or "",
            contract_address=(collectible.asset_contract_address or "").lower(),
        )

    async def get_all_collections_from_opensea(self, wallet: str) -> List[CollectionInfo]:
        return await self.opensea_client.get_all_collections(wallet)

    async def get_all_collections_from_nftport(self, wallet: str) -> List[CollectionInfo]:
        return await self.nftport_client.get_all_collections(wallet)

    async def get_asset_detail_from_opensea(self, contract_address: str, token_id: str) -> Optional[Collectible]:
        return await self.opensea_client.get_asset_detail(contract_address, token_id)

    async def get_asset_detail_from_nftport(self, contract_address: str, token_id: str) -> Optional[Collectible]:
        return await self.nftport_client.get_asset_detail(contract_address, token_id)

    async def get_nfts_from_nftport(
        self,
        wallet: str,
        contract_address: Optional[str] = None,
        limit: Optional[int] = None,
        continuation: Optional[str] = None,
        exclude_1155: bool = True,
    ) -> NftPortPage:
        return await self.nftport_client.get_nfts(wallet, contract_address, limit, continuation, exclude_1155)

    async def get_asset_owner(self, contract_address: str, token_id: str) -> Optional[str]:
        return await self.nftport_client.get_asset_owner(contract_address, token_id)
