"""HTTP client with timeouts, typed status errors, and host-aware rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests

from wqp_harvest.common.constants import USER_AGENT
from wqp_harvest.common.errors import StageError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 300.0


@dataclass(frozen=True)
class HttpResponse:
    text: str
    headers: dict[str, str]


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else rate_per_sec
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                deficit = tokens - self.tokens
                wait_for = max(deficit / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


class HostRateLimiter:
    def __init__(self, default_rate_per_sec: float) -> None:
        self.default_rate_per_sec = default_rate_per_sec
        self.buckets: dict[str, TokenBucket] = {}
        self.lock = threading.Lock()

    def acquire(self, host: str, tokens: float = 1.0) -> None:
        with self.lock:
            bucket = self.buckets.get(host)
            if bucket is None:
                bucket = TokenBucket(rate_per_sec=self.default_rate_per_sec, capacity=max(self.default_rate_per_sec, 1.0))
                self.buckets[host] = bucket
        bucket.acquire(tokens=tokens)


class HttpClient:
    """Thin wrapper over one requests session.

    Retrying is left to callers so that a single attempt budget governs
    each logical request.
    """

    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        rate_per_sec: float = 1.0,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()
        self.limiter = HostRateLimiter(default_rate_per_sec=rate_per_sec)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _host(self, url: str) -> str:
        return urlparse(url).netloc

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status: {status}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}")

    def request_text(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> HttpResponse:
        req_timeout = timeout or self.timeout
        self.limiter.acquire(self._host(url))

        response = self.session.request(
            method=method,
            url=url,
            params=params,
            json=payload,
            headers=self._headers(headers),
            timeout=(req_timeout.connect, req_timeout.read),
        )
        self._raise_for_status(response)
        return HttpResponse(text=response.text, headers=dict(response.headers))

    def post_json_text(
        self,
        url: str,
        *,
        payload: dict[str, Any],
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> HttpResponse:
        merged = {"Content-Type": "application/json", "Accept": "text/csv"}
        if headers:
            merged.update(headers)
        return self.request_text(
            "POST",
            url,
            params=params,
            payload=payload,
            headers=merged,
            timeout=timeout,
        )
