# oneword/tests/test_datamuse_client.py
import asyncio

import httpx
import pytest

from oneword.datamuse_client import DatamuseClient, RateLimiter, ResponseCache
from oneword.errors import ApiAuthError, ExternalApiError, RetryExhausted
from oneword.retry import retry_async


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


async def no_sleep(_):
    return None


def lookup(handler, word, **kwargs):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = DatamuseClient(
                http, limiter=RateLimiter(0), retry_attempts=3, retry_base_delay=0, sleep=no_sleep, **kwargs
            )
            return await client.lookup(word), client.calls
    return asyncio.run(_go())


# ───────── retry ─────────
def test_retry_recovers_after_transient_errors():
    clock = FakeClock()
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ExternalApiError("busy", 503)
        return "ok"

    assert asyncio.run(retry_async(flaky, attempts=3, base_delay=0.5, sleep=clock.sleep)) == "ok"
    assert clock.sleeps == [0.5, 1.0]


def test_retry_gives_up():
    async def down():
        raise ExternalApiError("down", 500)

    with pytest.raises(RetryExhausted) as info:
        asyncio.run(retry_async(down, attempts=2, base_delay=0, sleep=no_sleep))
    assert info.value.attempts == 2
    assert isinstance(info.value.last_error, ExternalApiError)


def test_retry_does_not_retry_permanent_errors():
    calls = []

    async def denied():
        calls.append(1)
        raise ApiAuthError("no", 401)

    with pytest.raises(ApiAuthError):
        asyncio.run(retry_async(denied, attempts=5, sleep=no_sleep))
    assert len(calls) == 1


# ───────── limiter / cache ─────────
def test_rate_limiter_spaces_calls():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    async def three():
        for _ in range(3):
            await limiter.wait()

    asyncio.run(three())
    assert clock.sleeps == [1.0, 1.0]


def test_cache_expires_and_evicts():
    clock = FakeClock()
    cache = ResponseCache(max_entries=2, ttl=10, clock=clock)
    cache.put({"sp": "a"}, [1])
    cache.put({"sp": "b"}, [2])
    assert cache.get({"sp": "a"}) == [1]
    cache.put({"sp": "c"}, [3])          # evicts b, the least recently used
    assert cache.get({"sp": "b"}) is None
    assert cache.get({"sp": "c"}) == [3]
    clock.now = 11
    assert cache.get({"sp": "a"}) is None


# ───────── client ─────────
def test_lookup_exact_match():
    def handler(request):
        assert request.url.path == "/words"
        assert request.url.params["sp"] == "teach"
        assert request.url.params["md"] == "fs"
        return httpx.Response(200, json=[
            {"word": "teacher", "numSyllables": 2, "tags": ["f:40.0"]},
            {"word": "Teach", "numSyllables": 1, "tags": ["v", "f:52.31"]},
        ])

    metrics, calls = lookup(handler, "teach")
    assert metrics.found
    assert metrics.frequency == 52.31
    assert metrics.syllables == 1
    assert calls == 1


def test_lookup_empty_array_and_missing_tags():
    metrics, _ = lookup(lambda r: httpx.Response(200, json=[]), "zzyzx")
    assert not metrics.found and metrics.frequency is None

    metrics, _ = lookup(lambda r: httpx.Response(200, json=[{"word": "zzyzx"}]), "zzyzx")
    assert metrics.found
    assert metrics.frequency is None and metrics.syllables is None


def test_server_errors_are_retried_then_surface():
    with pytest.raises(RetryExhausted):
        lookup(lambda r: httpx.Response(500), "teach")


def test_auth_errors_are_not_retried():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(401)

    with pytest.raises(ApiAuthError):
        lookup(handler, "teach")
    assert len(seen) == 1


def test_responses_are_cached():
    async def _go():
        def handler(request):
            return httpx.Response(200, json=[{"word": "teach", "tags": ["f:50"]}])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = DatamuseClient(http, limiter=RateLimiter(0), sleep=no_sleep)
            await client.lookup("teach")
            await client.lookup("teach")
            return client.calls

    assert asyncio.run(_go()) == 1


def test_refused_requests_count_as_no_data():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(404)

    metrics, calls = lookup(handler, "teach")
    assert not metrics.found
    assert calls == 1 and len(seen) == 1


def test_throttling_is_retried():
    responses = [httpx.Response(429), httpx.Response(200, json=[{"word": "teach", "tags": ["f:50"]}])]
    metrics, calls = lookup(lambda r: responses.pop(0), "teach")
    assert metrics.frequency == 50.0
    assert calls == 2
