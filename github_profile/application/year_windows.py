from __future__ import annotations

import logging
from datetime import datetime, timezone

from github_profile.domain.entities import YearWindow

log = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_year_windows(created_at: datetime, now: datetime) -> list[YearWindow]:
    """
    Split [created_at, now] into one window per calendar year (UTC).

    The first window starts at created_at and the last one ends at now;
    every window in between covers Jan 1 00:00:00 to Dec 31 23:59:59.
    Returns an empty list if created_at is in a later year than now.
    """
    created_at = _as_utc(created_at)
    now        = _as_utc(now)

    start_year   = created_at.year
    current_year = now.year

    windows: list[YearWindow] = []
    for year in range(start_year, current_year + 1):
        from_time = (
            created_at if year == start_year
            else datetime(year, 1, 1, tzinfo=timezone.utc)
        )
        to_time = (
            now if year == current_year
            else datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        )
        windows.append(YearWindow(year=year, from_time=from_time, to_time=to_time))

    log.debug(
        "Generated %d year windows (%d..%d)", len(windows), start_year, current_year,
    )
    return windows


def format_timestamp(value: datetime) -> str:
    """Render a datetime the way GitHub's DateTime scalar expects it."""
    return _as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """Parse GitHub's ISO timestamp ("2020-06-15T00:00:00Z")."""
    return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
