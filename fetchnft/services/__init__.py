# Services package
from fetchnft.services.mapper import CollectibleMapper, asset_key, collectible_key
from fetchnft.services.reconciler import EventReconciler, group_by_wallet, latest_events_by_key

__all__ = [
    "CollectibleMapper",
    "asset_key",
    "collectible_key",
    "EventReconciler",
    "group_by_wallet",
    "latest_events_by_key",
]
