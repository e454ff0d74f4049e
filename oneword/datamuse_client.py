# oneword/datamuse_client.py
from __future__ import annotations

import asyncio
import logging
import os
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from .errors import ApiAuthError, ExternalApiError
from .frequency import parse_frequency_tag
from .retry import retry_async

log = logging.getLogger(__name__)

API_BASE = os.getenv("DATAMUSE_API_BASE", "https://api.datamuse.com")
HEADERS = {"accept": "application/json"}
METADATA_FLAGS = "fs"   # f = frequency tag, s = syllable count
MAX_RESULTS = 5


@dataclass(frozen=True)
class WordMetrics:
    word: str
    frequency: Optional[float] = None
    syllables: Optional[int] = None
    found: bool = False


# ───────── Throttling / caching ─────────
class RateLimiter:
    """At most one call per `interval` seconds; concurrent callers are serialised."""

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic, sleep=asyncio.sleep):
        self.interval = max(0.0, interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last: Optional[float] = None

    async def wait(self) -> None:
        async with self._lock:
            if self._last is not None:
                delay = self.interval - (self._clock() - self._last)
                if delay > 0:
                    await self._sleep(delay)
            self._last = self._clock()


class ResponseCache:
    """LRU cache of API responses keyed by request parameters; entries expire after `ttl` seconds."""

    def __init__(self, max_entries: int = 10_000, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._data: "OrderedDict[Tuple, Tuple[float, Any]]" = OrderedDict()

    @staticmethod
    def key(params: Dict[str, Any]) -> Tuple:
        return tuple(sorted((k, str(v)) for k, v in params.items()))

    def get(self, params: Dict[str, Any]) -> Optional[Any]:
        k = self.key(params)
        hit = self._data.get(k)
        if hit is None:
            return None
        stored_at, value = hit
        if self._clock() - stored_at > self.ttl:
            del self._data[k]
            return None
        self._data.move_to_end(k)
        return value

    def put(self, params: Dict[str, Any], value: Any) -> None:
        k = self.key(params)
        self._data[k] = (self._clock(), value)
        self._data.move_to_end(k)
        while len(self._data) > self.max_entries:
            self._data.popitem(last=False)


# ───────── Response helpers ─────────
def _collect_items(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    return []


def _exact_match(word: str, items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    target = word.strip().lower()
    for it in items:
        w = it.get("word")
        if isinstance(w, str) and w.strip().lower() == target:
            return it
    return None


def _syllables(item: Dict[str, Any]) -> Optional[int]:
    n = item.get("numSyllables")
    if isinstance(n, int) and n > 0:
        return n
    return None


# ───────── Client ─────────
class DatamuseClient:
    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        *,
        base_url: str = API_BASE,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        sleep=asyncio.sleep,
    ):
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter or RateLimiter(1.0)
        self.cache = cache if cache is not None else ResponseCache()
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep
        self.calls = 0

    @classmethod
    def from_settings(cls, settings, http: Optional[httpx.AsyncClient] = None) -> "DatamuseClient":
        return cls(
            http,
            base_url=settings.datamuse_api_base,
            limiter=RateLimiter(settings.rate_limit_interval_ms / 1000.0),
            cache=ResponseCache(settings.cache_max_entries, settings.cache_ttl_seconds),
            retry_attempts=settings.retry_attempts,
            retry_base_delay=settings.retry_base_delay_ms / 1000.0,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _get_json(self, path: str, params: Dict[str, Any]):
        await self.limiter.wait()
        self.calls += 1
        try:
            r = await self._http.get(f"{self.base_url}{path}", headers=HEADERS, params=params)
        except httpx.HTTPError as e:
            raise ExternalApiError(f"{path} request failed: {e}") from e
        if r.status_code in (401, 403):
            raise ApiAuthError(f"{path} rejected credentials ({r.status_code})", r.status_code)
        if 400 <= r.status_code < 500 and r.status_code != 429:
            # the request itself was refused for this word; nothing to retry
            log.warning("%s returned %d for %s, treating as no data", path, r.status_code, params)
            return []
        if r.status_code != 200:
            raise ExternalApiError(f"{path} returned {r.status_code}", r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ExternalApiError(f"{path} returned invalid JSON", r.status_code) from e

    async def words(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        cached = self.cache.get(params)
        if cached is not None:
            return cached
        data = await retry_async(
            lambda: self._get_json("/words", params),
            attempts=self.retry_attempts,
            base_delay=self.retry_base_delay,
            sleep=self._sleep,
            label=f"datamuse {params.get('sp')}",
        )
        items = _collect_items(data)
        self.cache.put(params, items)
        return items

    async def lookup(self, word: str) -> WordMetrics:
        """Frequency (f: tag) and syllable count for one word; found=False if Datamuse has no exact match."""
        items = await self.words({"sp": word, "md": METADATA_FLAGS, "max": MAX_RESULTS})
        match = _exact_match(word, items)
        if match is None:
            return WordMetrics(word)
        return WordMetrics(
            word=word,
            frequency=parse_frequency_tag(match.get("tags")),
            syllables=_syllables(match),
            found=True,
        )
