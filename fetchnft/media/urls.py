"""Rewrite decentralized-storage references to the configured HTTP gateway."""

from __future__ import annotations

from typing import Optional

from fetchnft.core.config import settings

IPFS_SCHEME = "ipfs://"
IPFS_PATH_MARKER = "ipfs/"


def normalize_url(url: Optional[str], gateway: Optional[str] = None) -> Optional[str]:
    """Return ``url`` resolvable over HTTP.

    ``ipfs://<cid>`` and ``https://any.host/ipfs/<cid>`` both become
    ``<gateway>/<cid>``. Anything else is returned unchanged, so the rewrite
    is idempotent.
    """
    if not url:
        return None
    gateway = (gateway or settings.IPFS_GATEWAY).rstrip("/")

    if url.startswith(f"{gateway}/"):
        return url
    if url.startswith(IPFS_SCHEME):
        return f"{gateway}/{url[len(IPFS_SCHEME):]}"

    _, marker, path = url.partition(IPFS_PATH_MARKER)
    if marker and path:
        return f"{gateway}/{path}"
    return url
