"""Bounding boxes for groups whose identifiers cannot be sent as siteid."""

from __future__ import annotations

from wqp_harvest.common.errors import ContractError
from wqp_harvest.harvest.models import SiteGroup


def site_bbox(group: SiteGroup, buffer_deg: float = 0.001) -> str:
    """Return a ``west,south,east,north`` box around every site in ``group``."""
    lats: list[float] = []
    lons: list[float] = []
    for site in group.sites:
        if site.latitude is None or site.longitude is None:
            raise ContractError(f"Site {site.site_id} has no coordinates for a bounding box query")
        lats.append(site.latitude)
        lons.append(site.longitude)
    if not lats:
        raise ContractError(f"Group {group.download_grp} has no sites")

    west = min(lons) - buffer_deg
    south = min(lats) - buffer_deg
    east = max(lons) + buffer_deg
    north = max(lats) + buffer_deg
    return ",".join(f"{value:.6f}" for value in (west, south, east, north))
