"""Fetch one download group of WQP results."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from wqp_harvest.common.constants import SITE_ID_FIELD
from wqp_harvest.common.logging import log_event
from wqp_harvest.common.retry import call_with_retry, diagnostics_logger
from wqp_harvest.harvest.bbox import site_bbox
from wqp_harvest.harvest.models import SiteGroup
from wqp_harvest.harvest.wqp_client import WqpClient

Transport = Callable[..., list[dict[str, Any]]]
BBoxBuilder = Callable[[SiteGroup], str]

LOGGER = logging.getLogger(__name__)


def build_query_params(
    group: SiteGroup,
    characteristic_names: Iterable[str],
    extra_options: Mapping[str, Any] | None = None,
    bbox_builder: BBoxBuilder = site_bbox,
) -> dict[str, Any]:
    """Query by siteid when the group's ids are safe, otherwise by a box around the sites."""
    params = dict(extra_options or {})
    if group.pull_by_id:
        params["siteid"] = group.site_ids
    else:
        params["bBox"] = bbox_builder(group)
    params["characteristicName"] = list(characteristic_names)
    return params


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def normalise_results(rows: Iterable[Mapping[str, Any]], site_ids: Iterable[str]) -> list[dict[str, str]]:
    # A bBox query can pick up neighbouring sites outside the group.
    wanted = set(site_ids)
    out: list[dict[str, str]] = []
    for row in rows:
        if _as_text(row.get(SITE_ID_FIELD)) not in wanted:
            continue
        out.append({str(key): _as_text(value) for key, value in row.items()})
    return out


def fetch_batch(
    group: SiteGroup,
    characteristic_names: Iterable[str],
    extra_options: Mapping[str, Any] | None = None,
    max_tries: int = 3,
    verbose: bool = False,
    *,
    transport: Transport | None = None,
    bbox_builder: BBoxBuilder = site_bbox,
    retry_wait_seconds: float = 0.0,
    logger: logging.Logger | None = None,
) -> list[dict[str, str]]:
    """Download WQP results for one download group.

    ``transport`` takes the query mapping plus a ``logger`` keyword and
    returns rows; it defaults to a fresh :class:`WqpClient`. With
    ``verbose`` off, informational portal messages such as "no data" are
    dropped, but every error still propagates once ``max_tries`` attempts
    are used up. All returned values are strings so batches can be
    concatenated without type clashes.
    """
    if max_tries < 1:
        raise ValueError(f"max_tries must be >= 1, got {max_tries}")

    log = logger or LOGGER
    names = list(characteristic_names)
    params = build_query_params(group, names, extra_options, bbox_builder)

    log_event(
        log,
        f"Retrieving WQP data for {len(group.sites)} sites in group {group.download_grp}, {', '.join(names)}",
        stage="fetch",
        download_grp=group.download_grp,
        event="GROUP_START",
        status="ok",
        rows_in=len(group.sites),
    )

    portal_log = diagnostics_logger(verbose)
    owned_client: WqpClient | None = None
    if transport is None:
        owned_client = WqpClient()
        transport = owned_client.read_results

    try:
        rows = call_with_retry(
            lambda: transport(params, logger=portal_log),
            max_tries=max_tries,
            wait_seconds=retry_wait_seconds,
            logger=log,
        )
    finally:
        if owned_client is not None:
            owned_client.close()

    out = normalise_results(rows, group.site_ids)
    log_event(
        log,
        f"Group {group.download_grp} returned {len(out)} records",
        stage="fetch",
        download_grp=group.download_grp,
        event="GROUP_END",
        status="ok",
        rows_in=len(rows),
        rows_out=len(out),
    )
    return out
