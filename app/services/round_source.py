from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from app.models.quiz import RoundContent
from app.services.round_builder import CatalogSelector


logger = logging.getLogger(__name__)


FETCH_ERROR_KINDS = ("timeout", "network", "http-status", "unknown")


class RoundFetchError(Exception):
    """Не удалось получить раунд. kind: timeout | network | http-status | unknown."""

    def __init__(self, kind: str, message: str, status_code: Optional[int] = None):
        if kind not in FETCH_ERROR_KINDS:
            kind = "unknown"
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class RoundSource(Protocol):
    async def fetch(self, option_count: int = 4) -> RoundContent: ...


class LocalRoundSource:
    """Раунд собираем в этом же процессе из каталога."""

    def __init__(self, selector: CatalogSelector):
        self.selector = selector

    async def fetch(self, option_count: int = 4) -> RoundContent:
        return self.selector.select_round(option_count=option_count)


class RemoteRoundSource:
    """Раунд берём у другого инстанса через GET /api/game/random. Без ретраев."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, option_count: int = 4) -> RoundContent:
        url = f"{self.base_url}/api/game/random"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as c:
                r = await c.get(url, params={"option_count": option_count})
                r.raise_for_status()
                return RoundContent.model_validate(r.json())
        except httpx.TimeoutException as e:
            logger.warning("Round fetch timed out: %s", e)
            raise RoundFetchError("timeout", f"Request timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Round fetch failed with HTTP %d", status)
            raise RoundFetchError("http-status", f"HTTP error {status}", status_code=status) from e
        except httpx.TransportError as e:
            logger.warning("Round fetch network error: %s", e)
            raise RoundFetchError("network", f"Network error: {e}") from e
        except (ValidationError, ValueError) as e:
            logger.error("Round fetch returned unexpected payload: %s", e)
            raise RoundFetchError("unknown", "Unexpected response from game server") from e
