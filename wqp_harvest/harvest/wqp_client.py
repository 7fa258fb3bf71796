"""Water Quality Portal result queries."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Mapping

from wqp_harvest.common.constants import WQP_RESULTS_URL
from wqp_harvest.common.http import HttpClient, TimeoutConfig
from wqp_harvest.common.logging import log_event


def _encode_query(params: Mapping[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            body[key] = [str(v) for v in value]
        else:
            body[key] = value
    return body


def _parse_csv(text: str) -> list[dict[str, str]]:
    if not text.strip():
        return []
    reader = csv.DictReader(io.StringIO(text))
    return [dict(row) for row in reader]


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


class WqpClient:
    def __init__(
        self,
        *,
        results_url: str = WQP_RESULTS_URL,
        http_client: HttpClient | None = None,
        timeout: TimeoutConfig | None = None,
        rate_per_sec: float = 1.0,
    ) -> None:
        self.results_url = results_url
        self.timeout = timeout
        self._owns_client = http_client is None
        self.http = http_client or HttpClient(timeout=timeout, rate_per_sec=rate_per_sec)

    def close(self) -> None:
        if self._owns_client:
            self.http.close()

    def __enter__(self) -> "WqpClient":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def read_results(
        self,
        params: Mapping[str, Any],
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> list[dict[str, str]]:
        log = logger or logging.getLogger(__name__)
        response = self.http.post_json_text(
            self.results_url,
            params={"mimeType": "csv", "zip": "no"},
            payload=_encode_query(params),
            timeout=self.timeout,
        )

        warning = _header(response.headers, "Warning")
        if warning:
            log_event(log, f"WQP warning: {warning}", level=logging.WARNING, event="PORTAL_WARNING", status="warn")

        rows = _parse_csv(response.text)
        if not rows:
            log_event(log, "No data returned for query", event="NO_DATA", status="ok", rows_out=0)
        else:
            log_event(log, f"WQP returned {len(rows)} rows", level=logging.DEBUG, event="PORTAL_ROWS", rows_out=len(rows))
        return rows


def build_wqp_client(cfg: dict) -> WqpClient:
    portal = cfg["portal"]
    timeout = TimeoutConfig(
        connect=float(portal["timeout_seconds"]["connect"]),
        read=float(portal["timeout_seconds"]["read"]),
    )
    return WqpClient(
        results_url=portal["results_url"],
        timeout=timeout,
        rate_per_sec=float(portal["rate_per_sec"]),
    )
