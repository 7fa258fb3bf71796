"""Detection of site identifiers the portal cannot parse in a siteid query."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from wqp_harvest.common.constants import SITE_ID_FIELD
from wqp_harvest.common.errors import ContractError

# Portal siteid token: starts on a word character, ends on a non-space, never crosses "/".
SAFE_ID_PATTERN = re.compile(r"\w+[^/]*[^\s/]")


def extract_safe_token(identifier: str) -> str | None:
    match = SAFE_ID_PATTERN.search(identifier)
    if match is None:
        return None
    return match.group(0)


def is_bad_id(identifier: str) -> bool:
    token = extract_safe_token(identifier)
    # No token at all (e.g. a single character) is treated as unknown, not bad.
    if token is None:
        return False
    return token != identifier


def identify_bad_ids(sites: Iterable[Mapping[str, object]]) -> list[dict[str, object]]:
    """Return the sites whose identifier would break a WQP siteid query.

    Each returned record carries the identifier under ``site_id`` with every
    other column of the input kept as-is. An empty list means every
    identifier is safe to query by id.
    """
    bad: list[dict[str, object]] = []
    for site in sites:
        if SITE_ID_FIELD not in site:
            raise ContractError(f"Site record is missing {SITE_ID_FIELD}")
        identifier = str(site[SITE_ID_FIELD])
        if not is_bad_id(identifier):
            continue
        record = {"site_id": identifier}
        record.update({key: value for key, value in site.items() if key != SITE_ID_FIELD})
        bad.append(record)
    return bad
