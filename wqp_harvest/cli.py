"""CLI entrypoint for the Water Quality Portal harvest."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from wqp_harvest.common.config_loader import load_config
from wqp_harvest.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from wqp_harvest.common.errors import PipelineError
from wqp_harvest.common.fs import read_csv, write_csv, write_json
from wqp_harvest.common.ids import generate_run_id
from wqp_harvest.common.logging import build_logger, log_event
from wqp_harvest.harvest.grouping import add_download_groups
from wqp_harvest.harvest.runner import run_fetch_for_groups
from wqp_harvest.harvest.site_ids import identify_bad_ids


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=list(COMMANDS))
    parser.add_argument("--sites", required=True, help="CSV of sites with a MonitoringLocationIdentifier column")
    parser.add_argument("--out", required=True)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    parser.add_argument("--verbose", action="store_true", help="forward informational portal messages")
    return parser.parse_args(argv)


def _headers(rows: list[dict]) -> list[str]:
    headers: set[str] = set()
    for row in rows:
        headers.update(row)
    return sorted(headers)


def run_check_ids(sites: list[dict], out_path: Path, logger: logging.Logger, run_id: str) -> int:
    bad = identify_bad_ids(sites)
    write_csv(out_path, _headers(bad) or ["site_id"], bad)
    log_event(
        logger,
        f"{len(bad)} of {len(sites)} site identifiers cannot be queried by id",
        run_id=run_id,
        stage="check-ids",
        event="STAGE_END",
        status="ok",
        rows_in=len(sites),
        rows_out=len(bad),
    )
    return EXIT_SUCCESS


def run_fetch(
    sites: list[dict],
    cfg: dict,
    out_path: Path,
    logger: logging.Logger,
    run_id: str,
    *,
    strict: bool,
    verbose: bool,
) -> int:
    groups = add_download_groups(sites, max_sites_per_group=int(cfg["grouping"]["max_sites_per_group"]))
    result = run_fetch_for_groups(
        groups,
        cfg,
        logger=logger,
        strict=strict,
        verbose=verbose or bool(cfg["fetch"]["verbose"]),
    )
    rows = result["rows"]
    write_csv(out_path, _headers(rows), rows)
    write_json(
        out_path.with_suffix(".summary.json"),
        {
            "run_id": run_id,
            "group_count": result["group_count"],
            "row_count": result["row_count"],
            "failed_groups": result["failed_groups"],
            "status": "partial" if result["failed_groups"] else "success",
        },
    )
    log_event(
        logger,
        f"wrote {result['row_count']} records from {result['group_count']} groups",
        run_id=run_id,
        stage="fetch",
        event="STAGE_END",
        status="partial" if result["failed_groups"] else "ok",
        rows_out=result["row_count"],
    )
    if result["failed_groups"]:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    log_event(logger, "stage start", run_id=run_id, stage=args.command, event="STAGE_START", status="ok")
    try:
        sites = read_csv(Path(args.sites))
        if args.command == "check-ids":
            return run_check_ids(sites, Path(args.out), logger, run_id)
        cfg = load_config(config_dir, overlay_config_dir=overlay_config_dir)
        return run_fetch(sites, cfg, Path(args.out), logger, run_id, strict=args.strict, verbose=args.verbose)
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            event="STAGE_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except Exception:
        logging.getLogger("wqp_harvest").exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
