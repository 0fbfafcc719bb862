"""Exception taxonomy for fetchnft."""

from __future__ import annotations

from typing import Optional


class FetchNFTError(Exception):
    """Base class for all fetchnft errors."""


class ProviderError(FetchNFTError):
    """A provider request failed (network error or non-success status)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class ProbeError(FetchNFTError):
    """A content-type probe could not be completed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"probe failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class CollectibleFetchError(FetchNFTError):
    """Every stream failed for every wallet, so there is nothing to reconcile."""

    def __init__(self, wallets: list[str]):
        super().__init__(f"all collectible streams failed for wallets={wallets}")
        self.wallets = wallets
