"""NftPort (minimal provider) client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from aiolimiter import AsyncLimiter

from fetchnft.core.config import settings
from fetchnft.core.errors import ProviderError
from fetchnft.core.logging import get_logger
from fetchnft.media.classifier import MediaClassifier
from fetchnft.schemas.collectible import Collectible, CollectionInfo, NftPortPage
from fetchnft.schemas.provider import NftPortNft
from fetchnft.services.mapper import CollectibleMapper
from .base import BaseProviderClient, as_dict, dict_items, parse_items

log = get_logger("ingestion.nftport")

MAX_ASSET_LIMIT = 50


class NftPortClient(BaseProviderClient):
    """Fetches nfts, collections and owners from NftPort.

    Requests share one limiter so the client stays under the provider quota
    (10 requests per second by default).
    """

    name = "nftport"

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        asset_limit: Optional[int] = None,
        chain: Optional[str] = None,
        requests_per_second: Optional[int] = None,
        classifier: Optional[MediaClassifier] = None,
        **kwargs: Any,
    ):
        super().__init__(
            api_url or settings.NFTPORT_API_URL,
            api_key if api_key is not None else settings.NFTPORT_API_KEY,
            **kwargs,
        )
        self.asset_limit = min(asset_limit or settings.NFTPORT_ASSET_LIMIT, MAX_ASSET_LIMIT)
        self.chain = chain or settings.NFTPORT_CHAIN
        self._limiter = AsyncLimiter(requests_per_second or settings.NFTPORT_REQUESTS_PER_SECOND, 1)
        self.mapper = CollectibleMapper(classifier or MediaClassifier.default())

    def _headers(self) -> Dict[str, str]:
        return {**super()._headers(), "Authorization": self.api_key}

    async def _throttle(self) -> None:
        await self._limiter.acquire()

    async def get_nfts(
        self,
        wallet: str,
        contract_address: Optional[str] = None,
        limit: Optional[int] = None,
        continuation: Optional[str] = None,
        exclude_1155: bool = True,
    ) -> NftPortPage:
        """Fetch one page of the wallet's nfts as collectibles.

        Provider failures yield an empty page.
        """
        params: Dict[str, Any] = {
            "chain": self.chain,
            "include": "metadata",
            "page_size": min(limit or self.asset_limit, MAX_ASSET_LIMIT),
        }
        if exclude_1155:
            params["exclude"] = "erc1155"
        if continuation:
            params["continuation"] = continuation
        if contract_address:
            params["contract_address"] = contract_address

        try:
            page = await self._send_get_request(f"/v0/accounts/{wallet}", params=params)
        except ProviderError as exc:
            log.warning(f"NftPort nfts fetch failed for {wallet}: {exc}")
            return NftPortPage()

        nfts = parse_items(NftPortNft, page.get("nfts"), self.name)
        if not nfts:
            return NftPortPage()

        data = await self.mapper.map_assets([nft.to_record(wallet) for nft in nfts])
        continuation = page.get("continuation")
        total = page.get("total")
        return NftPortPage(
            data=data,
            continuation=continuation if isinstance(continuation, str) and continuation else None,
            count=total if isinstance(total, int) else len(data),
        )

    async def get_all_collections(self, wallet: str) -> List[CollectionInfo]:
        collections: List[CollectionInfo] = []
        continuation: Optional[str] = None
        while True:
            params: Dict[str, Any] = {
                "chain": self.chain,
                "type": "owns_contract_nfts",
                "page_size": self.asset_limit,
            }
            if continuation:
                params["continuation"] = continuation
            try:
                page = await self._send_get_request(f"/v0/accounts/contracts/{wallet}", params=params)
            except ProviderError as exc:
                log.warning(f"Stopped paging NftPort collections for {wallet}: {exc}")
                break

            contracts = dict_items(page.get("contracts"))
            if not contracts:
                break
            collections.extend(
                CollectionInfo(
                    name=item.get("name") or "",
                    slug=item.get("slug") or "",
                    image_url=as_dict(item.get("metadata")).get("thumbnail_url") or "",
                    contract_address=str(item.get("address") or "").lower(),
                    safelist_request_status=item.get("safelist_request_status") or "",
                    num_nfts_owned=item.get("num_nfts_owned") or 0,
                )
                for item in contracts
            )
            next_continuation = page.get("continuation")
            if not isinstance(next_continuation, str) or next_continuation in ("", continuation):
                break
            continuation = next_continuation
        return collections

    async def _get_nft(self, contract_address: str, token_id: str) -> Dict[str, Any]:
        return await self._send_get_request(
            f"/v0/nfts/{contract_address}/{token_id}", params={"chain": self.chain}
        )

    async def get_asset_detail(self, contract_address: str, token_id: str) -> Optional[Collectible]:
        try:
            result = await self._get_nft(contract_address, token_id)
        except ProviderError as exc:
            log.warning(f"NftPort asset lookup failed for {contract_address}/{token_id}: {exc}")
            return None
        owner = result.get("owner")
        if result.get("response") != "OK" or not result.get("nft") or not isinstance(owner, str) or not owner:
            return None

        nfts = parse_items(NftPortNft, [result["nft"]], self.name)
        if not nfts:
            return None
        return await self.mapper.asset_to_collectible(nfts[0].to_record(owner))

    async def get_asset_owner(self, contract_address: str, token_id: str) -> Optional[str]:
        owner = (await self._get_nft(contract_address, token_id)).get("owner")
        return owner if isinstance(owner, str) and owner else None
