"""Data models used across the harvest."""

from __future__ import annotations

from dataclasses import dataclass

from wqp_harvest.common.errors import ContractError


@dataclass(frozen=True)
class GroupedSite:
    site_id: str
    pull_by_id: bool
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class SiteGroup:
    download_grp: int | str
    sites: tuple[GroupedSite, ...]

    @property
    def site_ids(self) -> list[str]:
        return [site.site_id for site in self.sites]

    @property
    def pull_by_id(self) -> bool:
        flags = {site.pull_by_id for site in self.sites}
        if not flags:
            raise ContractError(f"Download group {self.download_grp} is empty")
        if len(flags) > 1:
            raise ContractError(f"Download group {self.download_grp} mixes pull_by_id values")
        return flags.pop()
