"""Fetch entrypoint - Standalone script for reconciling wallets.

Usage:
    python -m fetchnft.fetch_entrypoint 0xabc...                # One wallet
    python -m fetchnft.fetch_entrypoint 0xabc... 0xdef...       # Several wallets
"""

import asyncio
import json
import sys
from typing import List

from fetchnft.client import FetchNFTClient
from fetchnft.core.errors import CollectibleFetchError
from fetchnft.core.logging import get_logger
from fetchnft.schemas.collectible import CollectibleState

logger = get_logger("fetch_entrypoint")


async def fetch_collectibles(wallets: List[str]) -> CollectibleState:
    logger.info(f"Fetching collectibles for {len(wallets)} wallets")
    client = FetchNFTClient()
    return await client.get_collectibles(eth_wallets=wallets)


def dump_state(state: CollectibleState) -> str:
    return json.dumps(
        {
            wallet: [collectible.model_dump(mode="json", by_alias=True) for collectible in collectibles]
            for wallet, collectibles in state.items()
        },
        indent=2,
    )


def main():
    """Main entry point for the fetch job."""
    wallets = sys.argv[1:]
    if not wallets:
        logger.error("Usage: python -m fetchnft.fetch_entrypoint <wallet> [<wallet> ...]")
        sys.exit(1)

    try:
        state = asyncio.run(fetch_collectibles(wallets))
    except CollectibleFetchError as exc:
        logger.error(f"Fetch failed: {exc}")
        sys.exit(1)

    print(dump_state(state))
    logger.info(f"Fetched {sum(len(items) for items in state.values())} collectibles")
    return state


if __name__ == "__main__":
    main()
