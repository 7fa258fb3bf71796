from wqp_harvest.harvest.site_ids import extract_safe_token, identify_bad_ids, is_bad_id


def test_identify_bad_ids_flags_slash_and_keeps_columns():
    sites = [
        {"MonitoringLocationIdentifier": "USGS-01573482", "OrganizationIdentifier": "USGS-PA"},
        {"MonitoringLocationIdentifier": "COE/ISU-27630001", "OrganizationIdentifier": "COE/ISU"},
    ]

    bad = identify_bad_ids(sites)

    assert bad == [{"site_id": "COE/ISU-27630001", "OrganizationIdentifier": "COE/ISU"}]
    assert "MonitoringLocationIdentifier" not in bad[0]


def test_identify_bad_ids_returns_empty_for_safe_ids():
    sites = [
        {"MonitoringLocationIdentifier": "USGS-01573482"},
        {"MonitoringLocationIdentifier": "21PA_WQX-WQN0201"},
        {"MonitoringLocationIdentifier": "NARS_WQX-OWW04440-0017"},
    ]
    assert identify_bad_ids(sites) == []


def test_identify_bad_ids_empty_input():
    assert identify_bad_ids([]) == []


def test_surrounding_whitespace_and_leading_punctuation_are_bad():
    assert is_bad_id(" USGS-01573482")
    assert is_bad_id("USGS-01573482 ")
    assert is_bad_id("/USGS-01573482")


def test_flagged_id_never_matches_its_safe_token():
    sites = [{"MonitoringLocationIdentifier": value} for value in ("COE/ISU-1", " X-1", "ok-1", "A")]
    bad = identify_bad_ids(sites)

    assert [record["site_id"] for record in bad] == ["COE/ISU-1", " X-1"]
    for record in bad:
        assert extract_safe_token(record["site_id"]) != record["site_id"]


def test_embedded_slash_is_bad_and_safe_ids_match_in_full():
    assert extract_safe_token("COE/ISU-27630001") == "COE"
    assert is_bad_id("COE/ISU-27630001")
    assert extract_safe_token("USGS-01573482") == "USGS-01573482"
    assert extract_safe_token("NARS_WQX-OWW04440-0017") == "NARS_WQX-OWW04440-0017"
    assert not is_bad_id("USGS-01573482")


def test_identifier_without_any_token_is_not_flagged():
    assert extract_safe_token("A") is None
    assert identify_bad_ids([{"MonitoringLocationIdentifier": "A"}]) == []


def test_identify_bad_ids_does_not_mutate_input():
    site = {"MonitoringLocationIdentifier": "COE/ISU-27630001", "LatitudeMeasure": "41.9"}
    identify_bad_ids([site])
    assert site == {"MonitoringLocationIdentifier": "COE/ISU-27630001", "LatitudeMeasure": "41.9"}
