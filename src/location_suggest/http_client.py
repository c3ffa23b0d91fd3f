from __future__ import annotations

import asyncio
import json
import os
import random

import httpx

from .providers.base import ProviderError


RETRY_STATUS = {429, 500, 502, 503, 504}


def _ua() -> str:
    return os.getenv("LSG_HTTP_USER_AGENT") or "location-suggest/0.1"


class RetryConfig:
    def __init__(self, retries=1, base_delay=0.2, factor=2.0, jitter=0.1):
        self.retries = retries
        self.base_delay = base_delay
        self.factor = factor
        self.jitter = jitter


def compute_backoff_delays(
    retries, base_delay=0.2, factor=2.0, jitter=0.1, rand_fn=None
):
    delays = []
    current = base_delay
    rand_fn = rand_fn or random.random
    for _ in range(retries):
        noise = (rand_fn() * 2 - 1) * jitter
        delays.append(max(0.0, current + noise))
        current *= factor
    return delays


class AsyncJsonClient:
    """GET-and-decode-JSON over a lazily created httpx.AsyncClient.

    Every transport, status and decoding failure surfaces as ProviderError.
    Task cancellation is never caught here.
    """

    def __init__(self, timeout=10, max_bytes=2_000_000, retry_config=None, transport=None):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.retry_config = retry_config or RetryConfig()
        self._transport = transport
        self._client = None

    def _ensure_client(self):
        if self._client is not None:
            return self._client
        use_no_proxy = os.environ.get("NO_PROXY_LOOKUP") == "1" or os.environ.get("CI") == "1"
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            trust_env=not use_no_proxy,
            transport=self._transport,
            headers={"User-Agent": _ua(), "Accept": "application/json"},
        )
        return self._client

    async def get_json(self, url, params=None, sleep_fn=None):
        sleep_fn = sleep_fn or asyncio.sleep
        delays = compute_backoff_delays(
            self.retry_config.retries,
            self.retry_config.base_delay,
            self.retry_config.factor,
            self.retry_config.jitter,
        )
        client = self._ensure_client()
        last_error = None
        for attempt in range(len(delays) + 1):
            try:
                response = await client.get(url, params=params)
            except httpx.HTTPError as exc:
                last_error = ProviderError(f"request failed: {exc}")
                if attempt < len(delays):
                    await sleep_fn(delays[attempt])
                continue
            if response.status_code in RETRY_STATUS and attempt < len(delays):
                await sleep_fn(delays[attempt])
                continue
            if response.status_code >= 400:
                raise ProviderError(f"HTTP {response.status_code} from {response.url}")
            if len(response.content) > self.max_bytes:
                raise ProviderError(f"response exceeds {self.max_bytes} bytes")
            try:
                return json.loads(response.content.decode(response.encoding or "utf-8", errors="replace"))
            except ValueError as exc:
                raise ProviderError(f"invalid JSON: {exc}") from exc
        raise last_error

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
