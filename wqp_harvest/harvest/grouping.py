"""Split sites into homogeneous download groups."""

from __future__ import annotations

from typing import Iterable, Mapping

from wqp_harvest.common.constants import LATITUDE_FIELD, LONGITUDE_FIELD, SITE_ID_FIELD
from wqp_harvest.common.errors import ConfigError
from wqp_harvest.harvest.models import GroupedSite, SiteGroup
from wqp_harvest.harvest.site_ids import identify_bad_ids


def _safe_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _chunked(values: list[GroupedSite], size: int):
    for i in range(0, len(values), size):
        yield values[i : i + size]


def add_download_groups(
    sites: Iterable[Mapping[str, object]],
    *,
    max_sites_per_group: int = 500,
) -> list[SiteGroup]:
    if max_sites_per_group < 1:
        raise ConfigError("max_sites_per_group must be >= 1")

    site_list = list(sites)
    bad_ids = {record["site_id"] for record in identify_bad_ids(site_list)}

    by_id: list[GroupedSite] = []
    by_bbox: list[GroupedSite] = []
    seen: set[str] = set()
    for site in site_list:
        site_id = str(site[SITE_ID_FIELD])
        if site_id in seen:
            continue
        seen.add(site_id)
        grouped = GroupedSite(
            site_id=site_id,
            pull_by_id=site_id not in bad_ids,
            latitude=_safe_float(site.get(LATITUDE_FIELD)),
            longitude=_safe_float(site.get(LONGITUDE_FIELD)),
        )
        if grouped.pull_by_id:
            by_id.append(grouped)
        else:
            by_bbox.append(grouped)

    groups: list[SiteGroup] = []
    for chunk in _chunked(by_id, max_sites_per_group):
        groups.append(SiteGroup(download_grp=len(groups) + 1, sites=tuple(chunk)))
    # One tight box per bad-id site keeps unrelated neighbours to a minimum.
    for grouped in by_bbox:
        groups.append(SiteGroup(download_grp=len(groups) + 1, sites=(grouped,)))
    return groups
