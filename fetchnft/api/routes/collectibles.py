"""Collectible routes - reconciled ownership state and single-asset lookups."""

import time
import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fetchnft.api.deps import get_client
from fetchnft.client import FetchNFTClient
from fetchnft.core.errors import CollectibleFetchError, ProviderError
from fetchnft.core.logging import get_logger
from fetchnft.schemas.api import CollectiblesResponse, CollectionsResponse, OwnerResponse
from fetchnft.schemas.collectible import Collectible, NftPortPage

router = APIRouter(tags=["collectibles"])
log = get_logger("collectibles_routes")

Provider = Literal["opensea", "nftport"]


@router.get("/collectibles", response_model=CollectiblesResponse)
async def get_collectibles(
    wallets: List[str] = Query(..., description="Wallet addresses to reconcile"),
    client: FetchNFTClient = Depends(get_client),
):
    """
    Reconciled collectibles per wallet.

    Merges current holdings, creation events and transfer events from
    OpenSea. Individual wallet failures are absorbed; 502 is returned only
    when nothing could be fetched.
    """
    request_id = str(uuid.uuid4())
    started = time.perf_counter()
    try:
        state = await client.get_collectibles(eth_wallets=wallets)
    except CollectibleFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return CollectiblesResponse(
        request_id=request_id,
        api_latency_ms=int((time.perf_counter() - started) * 1000),
        wallets=wallets,
        data=state,
    )


@router.get("/collectibles/{contract_address}/{token_id}", response_model=Collectible)
async def get_asset_detail(
    contract_address: str,
    token_id: str,
    provider: Provider = Query("opensea", description="Provider to resolve the asset with"),
    client: FetchNFTClient = Depends(get_client),
):
    """Single asset as a collectible."""
    if provider == "nftport":
        collectible = await client.get_asset_detail_from_nftport(contract_address, token_id)
    else:
        collectible = await client.get_asset_detail_from_opensea(contract_address, token_id)
    if collectible is None:
        raise HTTPException(status_code=404, detail=f"Asset {contract_address}/{token_id} not found")
    return collectible


@router.get("/collectibles/{contract_address}/{token_id}/owner", response_model=OwnerResponse)
async def get_asset_owner(
    contract_address: str,
    token_id: str,
    client: FetchNFTClient = Depends(get_client),
):
    try:
        owner = await client.get_asset_owner(contract_address, token_id)
    except ProviderError as exc:
        log.warning(f"Owner lookup failed for {contract_address}/{token_id}: {exc}")
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return OwnerResponse(contract_address=contract_address, token_id=token_id, owner=owner)


@router.get("/collections/{wallet}", response_model=CollectionsResponse)
async def get_collections(
    wallet: str,
    provider: Provider = Query("opensea", description="Provider to list collections from"),
    client: FetchNFTClient = Depends(get_client),
):
    if provider == "nftport":
        collections = await client.get_all_collections_from_nftport(wallet)
    else:
        collections = await client.get_all_collections_from_opensea(wallet)
    return CollectionsResponse(
        request_id=str(uuid.uuid4()),
        wallet=wallet,
        provider=provider,
        data=collections,
    )


@router.get("/nftport/{wallet}", response_model=NftPortPage)
async def get_nftport_page(
    wallet: str,
    contract_address: Optional[str] = Query(None, description="Restrict to one contract"),
    limit: int = Query(50, ge=1, le=50, description="Page size (max 50)"),
    continuation: Optional[str] = Query(None, description="Cursor returned by the previous page"),
    exclude_1155: bool = Query(True, description="Skip ERC-1155 tokens"),
    client: FetchNFTClient = Depends(get_client),
):
    """One page of a wallet's NftPort collectibles."""
    return await client.get_nfts_from_nftport(wallet, contract_address, limit, continuation, exclude_1155)
