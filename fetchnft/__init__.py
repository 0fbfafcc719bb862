"""Fetch NFT collectibles from indexing providers and reconcile them per wallet."""

__version__ = "1.0.0"
