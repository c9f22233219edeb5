# stamp_service/services/fetcher.py
from __future__ import annotations

from dataclasses import dataclass

import httpx

from stamp_service.errors import FetchError


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of a best-effort download:
      - data is set when the fetch succeeded
      - error holds the reason otherwise
    """
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


def fetch_bytes(client: httpx.Client, url: str, what: str = "document") -> bytes:
    try:
        resp = client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to fetch {what}: {e}") from e

    if not resp.is_success:
        raise FetchError(f"Failed to fetch {what}: {resp.status_code}")
    return resp.content


def fetch_optional(client: httpx.Client, url: str, what: str = "document") -> FetchResult:
    try:
        return FetchResult(data=fetch_bytes(client, url, what))
    except FetchError as e:
        return FetchResult(error=str(e))
