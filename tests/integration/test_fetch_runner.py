from __future__ import annotations

import pytest

from wqp_harvest.common.errors import StageError
from wqp_harvest.harvest.grouping import add_download_groups
from wqp_harvest.harvest.runner import run_fetch_for_groups

CFG = {
    "portal": {
        "results_url": "https://wqp.test/data/Result/search",
        "timeout_seconds": {"connect": 5, "read": 60},
        "rate_per_sec": 1.0,
    },
    "query": {"characteristic_names": ["Temperature, water"], "wqp_args": {"siteType": "Stream"}},
    "fetch": {"max_tries": 2, "retry_wait_seconds": 0, "verbose": False},
    "grouping": {"max_sites_per_group": 2, "bbox_buffer_deg": 0.001},
}

SITES = [
    {"MonitoringLocationIdentifier": "USGS-1", "LatitudeMeasure": "40.0", "LongitudeMeasure": "-75.0"},
    {"MonitoringLocationIdentifier": "USGS-2", "LatitudeMeasure": "40.1", "LongitudeMeasure": "-75.1"},
    {"MonitoringLocationIdentifier": "COE/ISU-27630001", "LatitudeMeasure": "41.9", "LongitudeMeasure": "-93.6"},
]


class PortalStub:
    """Answers siteid queries per site and bBox queries with a neighbour mixed in."""

    def __init__(self, failing_keys: set[str] | None = None):
        self.failing_keys = failing_keys or set()
        self.calls: list[dict] = []

    def __call__(self, params, *, logger=None):
        self.calls.append(params)
        key = "bBox" if "bBox" in params else "siteid"
        if key in self.failing_keys:
            raise ConnectionError(f"{key} endpoint down")
        if key == "siteid":
            return [{"MonitoringLocationIdentifier": site, "ResultMeasureValue": 10.0} for site in params["siteid"]]
        return [
            {"MonitoringLocationIdentifier": "COE/ISU-27630001", "ResultMeasureValue": "*Non-detect"},
            {"MonitoringLocationIdentifier": "IOWA-NEIGHBOUR", "ResultMeasureValue": 1},
        ]


@pytest.mark.integration
def test_runner_concatenates_groups_with_uniform_text_schema():
    portal = PortalStub()

    result = run_fetch_for_groups(add_download_groups(SITES, max_sites_per_group=2), CFG, transport=portal)

    assert result["group_count"] == 2
    assert result["failed_groups"] == []
    assert [row["MonitoringLocationIdentifier"] for row in result["rows"]] == ["USGS-1", "USGS-2", "COE/ISU-27630001"]
    assert [row["ResultMeasureValue"] for row in result["rows"]] == ["10.0", "10.0", "*Non-detect"]
    assert portal.calls[0]["siteType"] == "Stream"
    assert portal.calls[1]["bBox"] == "-93.601000,41.899000,-93.599000,41.901000"


@pytest.mark.integration
def test_runner_skips_failed_group_when_not_strict():
    portal = PortalStub(failing_keys={"bBox"})

    result = run_fetch_for_groups(add_download_groups(SITES), CFG, transport=portal)

    assert result["failed_groups"] == [2]
    assert result["row_count"] == 2
    # one siteid call plus max_tries bBox attempts
    assert len(portal.calls) == 3


@pytest.mark.integration
def test_runner_strict_mode_raises_on_first_failure():
    portal = PortalStub(failing_keys={"siteid"})

    with pytest.raises(StageError):
        run_fetch_for_groups(add_download_groups(SITES), CFG, transport=portal, strict=True)

    assert len(portal.calls) == 2


@pytest.mark.integration
def test_runner_raises_when_every_group_fails():
    portal = PortalStub(failing_keys={"siteid", "bBox"})

    with pytest.raises(StageError, match="All download groups failed"):
        run_fetch_for_groups(add_download_groups(SITES), CFG, transport=portal)
