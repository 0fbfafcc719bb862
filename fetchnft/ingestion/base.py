"""Shared HTTP plumbing for provider clients."""

from __future__ import annotations

import asyncio
from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx

from fetchnft.core.config import settings
from fetchnft.core.errors import ProviderError
from fetchnft.core.logging import get_logger

log = get_logger("ingestion.base")

T = TypeVar("T")


class BaseProviderClient(ABC):
    """Base class for indexing provider clients.

    Subclasses set ``name`` and build their own auth headers. An
    ``httpx.AsyncClient`` may be injected (tests use ``httpx.MockTransport``);
    otherwise one is opened per request.
    """

    name: str

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._client = client

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def _throttle(self) -> None:
        """Hook for providers with request quotas."""

    async def _send_get_request(self, path: str, params: Any = None, expect: Type[Any] = dict) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises ``ProviderError`` on network failures, non-success statuses and
        bodies that are not an ``expect`` (throttling notices arrive as 200s
        with an error object).
        """
        await self._throttle()
        try:
            async with self._session() as client:
                resp = await client.get(f"{self.url}{path}", params=params, headers=self._headers())
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(self.name, str(exc), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise ProviderError(self.name, f"invalid JSON from {path}: {exc}") from exc

        if not isinstance(body, expect):
            raise ProviderError(
                self.name, f"unexpected {type(body).__name__} from {path}: {str(body)[:200]}", resp.status_code
            )
        return body


def as_dict(value: Any) -> Dict[str, Any]:
    """``value`` if it is a JSON object, else an empty one."""
    return value if isinstance(value, dict) else {}


def dict_items(values: Any) -> List[Dict[str, Any]]:
    """JSON objects of a list payload; anything else is dropped."""
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, dict)]


async def gather_settled(
    wallets: Sequence[str],
    fetch: Callable[[str], Awaitable[T]],
) -> List[Tuple[str, Optional[T]]]:
    """Run ``fetch`` for every wallet concurrently and settle all of them.

    A failing wallet is logged and paired with ``None`` instead of aborting
    the batch.
    """
    results = await asyncio.gather(*(fetch(wallet) for wallet in wallets), return_exceptions=True)

    settled: List[Tuple[str, Optional[T]]] = []
    for wallet, result in zip(wallets, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            log.warning(f"Fetch failed for wallet={wallet}: {result}")
            settled.append((wallet, None))
        else:
            settled.append((wallet, result))
    return settled


def parse_items(model: Type[T], items: Any, provider: str) -> List[T]:
    """Validate raw payload items with a pydantic model, skipping malformed ones."""
    if items and not isinstance(items, list):
        log.warning(f"Ignoring non-list {provider} payload: {type(items).__name__}")
        return []
    parsed: List[T] = []
    for item in items or []:
        try:
            parsed.append(model.model_validate(item))  # type: ignore[attr-defined]
        except ValueError as exc:
            log.warning(f"Skipping malformed {provider} item: {exc}")
    return parsed
