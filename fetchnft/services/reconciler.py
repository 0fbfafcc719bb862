"""Merge holdings, creation events and transfer events into one state per wallet.

The merge runs in a fixed order and later steps never downgrade what earlier
steps established:

1. current holdings seed the map (owned, no dates);
2. transfers from the null address count as creations;
3. creation events fill in keys nobody has claimed yet;
4. ordinary transfers refresh ``date_last_transferred`` or, when they land in
   one of the queried wallets, add an owned collectible.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence

from fetchnft.core.logging import get_logger
from fetchnft.media.classifier import is_asset_valid
from fetchnft.schemas.collectible import Collectible, CollectibleState
from fetchnft.schemas.provider import AssetRecord, OwnershipEvent
from fetchnft.services.mapper import CollectibleMapper, asset_key

log = get_logger("services.reconciler")


def latest_events_by_key(events: Iterable[OwnershipEvent]) -> Dict[str, OwnershipEvent]:
    """Keep the most recent event per key.

    ISO-8601 timestamps order lexicographically; on a tie the later event in
    the stream wins.
    """
    latest: Dict[str, OwnershipEvent] = {}
    for event in events:
        key = asset_key(event.asset)
        current = latest.get(key)
        if current is not None and current.created_date > event.created_date:
            continue
        latest[key] = event
    return latest


def earliest_events_by_key(events: Iterable[OwnershipEvent]) -> Dict[str, OwnershipEvent]:
    earliest: Dict[str, OwnershipEvent] = {}
    for event in events:
        key = asset_key(event.asset)
        current = earliest.get(key)
        if current is not None and current.created_date <= event.created_date:
            continue
        earliest[key] = event
    return earliest


def group_by_wallet(collectibles: Iterable[Collectible]) -> CollectibleState:
    state: CollectibleState = {}
    for collectible in collectibles:
        state.setdefault(collectible.wallet, []).append(collectible)
    return state


class EventReconciler:
    """Single-writer merge of the three collectible streams of one fetch cycle."""

    def __init__(self, mapper: CollectibleMapper):
        self.mapper = mapper
        self._collectibles: Dict[str, Collectible] = {}
        # keys already claimed this cycle, owned or not
        self._known_keys: set[str] = set()

    async def reconcile(
        self,
        assets: Sequence[Optional[AssetRecord]],
        creation_events: Sequence[OwnershipEvent],
        transfer_events: Sequence[OwnershipEvent],
        wallets: Sequence[str],
    ) -> CollectibleState:
        self._collectibles = {}
        self._known_keys = set()

        valid_assets = [asset for asset in assets if is_asset_valid(asset)]
        valid_creations = [event for event in creation_events if is_asset_valid(event.asset)]
        valid_transfers = [event for event in transfer_events if is_asset_valid(event.asset)]
        log.debug(
            f"Reconciling assets={len(valid_assets)}/{len(assets)} "
            f"creations={len(valid_creations)}/{len(creation_events)} "
            f"transfers={len(valid_transfers)}/{len(transfer_events)}"
        )

        await self._apply_holdings(valid_assets)
        await self._apply_null_origin_transfers(
            [event for event in valid_transfers if event.is_from_null_address]
        )
        await self._apply_creation_events(valid_creations)
        await self._apply_transfers(
            [event for event in valid_transfers if not event.is_from_null_address],
            wallets,
        )

        state = group_by_wallet(self._collectibles.values())
        log.info(f"Reconciled {len(self._collectibles)} collectibles across {len(state)} wallets")
        return state

    async def _apply_holdings(self, assets: List[AssetRecord]) -> None:
        for collectible in await self.mapper.map_assets(assets):
            self._collectibles[collectible.id] = collectible
        self._known_keys.update(self._collectibles)

    async def _apply_null_origin_transfers(self, events: List[OwnershipEvent]) -> None:
        to_insert: List[OwnershipEvent] = []
        for key, event in latest_events_by_key(events).items():
            if key in self._known_keys:
                self._amend_last_transferred(key, event.created_date)
            else:
                to_insert.append(event)

        self._insert_all(
            await asyncio.gather(
                *(self.mapper.transfer_event_to_collectible(event, is_owned=False) for event in to_insert)
            )
        )

    async def _apply_creation_events(self, events: List[OwnershipEvent]) -> None:
        pending = [
            event for key, event in earliest_events_by_key(events).items() if key not in self._known_keys
        ]
        self._insert_all(
            await asyncio.gather(*(self.mapper.creation_event_to_collectible(event) for event in pending))
        )

    async def _apply_transfers(self, events: List[OwnershipEvent], wallets: Sequence[str]) -> None:
        # lowercased address -> wallet as the caller spelled it
        tracked_wallets = {wallet.lower(): wallet for wallet in wallets}
        to_insert: List[OwnershipEvent] = []
        for key, event in latest_events_by_key(events).items():
            if key in self._known_keys:
                self._amend_last_transferred(key, event.created_date)
            elif (event.to_address or "").lower() in tracked_wallets:
                to_insert.append(event)
            else:
                log.debug(f"Dropping {key}: transferred to untracked wallet {event.to_address}")

        self._insert_all(
            await asyncio.gather(
                *(
                    self.mapper.transfer_event_to_collectible(
                        event, is_owned=True, wallet=tracked_wallets[(event.to_address or "").lower()]
                    )
                    for event in to_insert
                )
            )
        )

    def _insert_all(self, collectibles: Iterable[Collectible]) -> None:
        for collectible in collectibles:
            self._collectibles[collectible.id] = collectible
            self._known_keys.add(collectible.id)

    def _amend_last_transferred(self, key: str, created_date: str) -> None:
        collectible = self._collectibles[key]
        if collectible.date_last_transferred is None or collectible.date_last_transferred < created_date:
            collectible.date_last_transferred = created_date
