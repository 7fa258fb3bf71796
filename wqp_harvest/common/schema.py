"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from wqp_harvest.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"Expected a mapping for {ctx}")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_wqp_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"portal", "query", "fetch", "grouping"}
    _assert_required_keys(cfg, top_required, "wqp config")
    _assert_no_unknown_keys(cfg, top_required, "wqp config", allow_unknown)

    _assert_required_keys(cfg["portal"], {"results_url", "timeout_seconds", "rate_per_sec"}, "portal")
    _assert_required_keys(cfg["portal"]["timeout_seconds"], {"connect", "read"}, "portal.timeout_seconds")
    _assert_required_keys(cfg["query"], {"characteristic_names", "wqp_args"}, "query")
    _assert_required_keys(cfg["fetch"], {"max_tries", "retry_wait_seconds", "verbose"}, "fetch")
    _assert_required_keys(cfg["grouping"], {"max_sites_per_group", "bbox_buffer_deg"}, "grouping")

    names = cfg["query"]["characteristic_names"]
    if not isinstance(names, list) or not names:
        raise ConfigError("query.characteristic_names must be a non-empty list")
    if not isinstance(cfg["query"]["wqp_args"] or {}, dict):
        raise ConfigError("query.wqp_args must be a mapping")

    max_tries = cfg["fetch"]["max_tries"]
    if not isinstance(max_tries, int) or max_tries < 1:
        raise ConfigError("fetch.max_tries must be an integer >= 1")

    max_sites = cfg["grouping"]["max_sites_per_group"]
    if not isinstance(max_sites, int) or max_sites < 1:
        raise ConfigError("grouping.max_sites_per_group must be an integer >= 1")

    return cfg
