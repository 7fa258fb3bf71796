import pytest

from wqp_harvest.common.errors import ConfigError
from wqp_harvest.harvest.grouping import add_download_groups


def _site(site_id: str, lat="41.9", lon="-93.6") -> dict:
    return {"MonitoringLocationIdentifier": site_id, "LatitudeMeasure": lat, "LongitudeMeasure": lon}


def test_add_download_groups_chunks_safe_ids_and_isolates_bad_ids():
    sites = [
        _site("USGS-1"),
        _site("USGS-2"),
        _site("COE/ISU-1", lat="42.0", lon="-93.5"),
        _site("USGS-3"),
        _site("COE/ISU-2"),
    ]

    groups = add_download_groups(sites, max_sites_per_group=2)

    assert [g.download_grp for g in groups] == [1, 2, 3, 4]
    assert [g.site_ids for g in groups] == [["USGS-1", "USGS-2"], ["USGS-3"], ["COE/ISU-1"], ["COE/ISU-2"]]
    assert [g.pull_by_id for g in groups] == [True, True, False, False]
    assert groups[2].sites[0].latitude == 42.0
    assert groups[2].sites[0].longitude == -93.5


def test_add_download_groups_skips_duplicate_sites():
    groups = add_download_groups([_site("USGS-1"), _site("USGS-1")])
    assert [g.site_ids for g in groups] == [["USGS-1"]]


def test_add_download_groups_tolerates_missing_coordinates():
    groups = add_download_groups([{"MonitoringLocationIdentifier": "USGS-1", "LatitudeMeasure": ""}])
    assert groups[0].sites[0].latitude is None
    assert groups[0].sites[0].longitude is None


def test_add_download_groups_empty_input():
    assert add_download_groups([]) == []


def test_add_download_groups_rejects_non_positive_group_size():
    with pytest.raises(ConfigError):
        add_download_groups([_site("USGS-1")], max_sites_per_group=0)
