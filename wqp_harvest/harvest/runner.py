"""Fetch orchestration over download groups with fail-soft semantics."""

from __future__ import annotations

import functools
import logging
from typing import Callable, Iterable

from wqp_harvest.common.errors import StageError
from wqp_harvest.common.logging import log_event
from wqp_harvest.harvest.bbox import site_bbox
from wqp_harvest.harvest.models import SiteGroup
from wqp_harvest.harvest.wqp_client import WqpClient, build_wqp_client
from wqp_harvest.harvest.wqp_fetch import fetch_batch

LOGGER = logging.getLogger(__name__)


def run_fetch_for_groups(
    groups: Iterable[SiteGroup],
    cfg: dict,
    *,
    fetch: Callable[..., list[dict[str, str]]] = fetch_batch,
    transport=None,
    logger: logging.Logger | None = None,
    strict: bool = False,
    verbose: bool | None = None,
) -> dict:
    log = logger or LOGGER
    group_list = list(groups)
    bbox_builder = functools.partial(site_bbox, buffer_deg=float(cfg["grouping"]["bbox_buffer_deg"]))
    if verbose is None:
        verbose = bool(cfg["fetch"]["verbose"])

    rows: list[dict[str, str]] = []
    failures: list[int | str] = []

    owned_client: WqpClient | None = None
    if transport is None:
        owned_client = build_wqp_client(cfg)
        transport = owned_client.read_results

    try:
        for group in group_list:
            try:
                group_rows = fetch(
                    group,
                    cfg["query"]["characteristic_names"],
                    cfg["query"]["wqp_args"] or None,
                    max_tries=int(cfg["fetch"]["max_tries"]),
                    verbose=verbose,
                    transport=transport,
                    bbox_builder=bbox_builder,
                    retry_wait_seconds=float(cfg["fetch"]["retry_wait_seconds"]),
                    logger=log,
                )
            except Exception as exc:
                log_event(
                    log,
                    f"fetch failed for group {group.download_grp}: {exc!r}",
                    level=logging.ERROR,
                    stage="fetch",
                    download_grp=group.download_grp,
                    event="GROUP_FAIL",
                    status="error",
                    error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
                )
                if strict:
                    raise StageError(f"Fetch failed for download group {group.download_grp}") from exc
                failures.append(group.download_grp)
                continue
            rows.extend(group_rows)
    finally:
        if owned_client is not None:
            owned_client.close()

    if group_list and len(failures) >= len(group_list):
        raise StageError("All download groups failed")

    return {
        "rows": rows,
        "row_count": len(rows),
        "group_count": len(group_list),
        "failed_groups": failures,
    }
