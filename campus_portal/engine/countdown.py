from dataclasses import dataclass
from datetime import datetime, timedelta

from campus_portal.core.config import URGENT_THRESHOLD
from campus_portal.engine.deadline import Active, DeadlineState, Expired, Unlimited
from campus_portal.schemas._time import as_utc

NO_TIME_LIMIT = "No time limit"
DEADLINE_PASSED = "Deadline passed"
EXTENDED_DEADLINE_PASSED = "Extended deadline passed"


@dataclass(frozen=True)
class CountdownDisplay:
    text: str
    urgent: bool = False
    expired: bool = False


def format_remaining(remaining: timedelta) -> str:
    """
    "1d 0h 5m 3s", "2h 0m 10s", "45s": starts at the coarsest non-zero
    unit and always runs down to seconds. Sub-second parts are dropped.
    """
    total = max(0, int(remaining.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    units = [(days, "d"), (hours, "h"), (minutes, "m"), (seconds, "s")]
    while len(units) > 1 and units[0][0] == 0:
        units.pop(0)
    return " ".join(f"{value}{suffix}" for value, suffix in units)


def present_countdown(state: DeadlineState, now: datetime) -> CountdownDisplay:
    """Pure; the caller supplies a fresh `now` on every tick."""
    if isinstance(state, Unlimited):
        return CountdownDisplay(NO_TIME_LIMIT)

    if isinstance(state, Expired):
        text = EXTENDED_DEADLINE_PASSED if state.extended else DEADLINE_PASSED
        return CountdownDisplay(text, urgent=False, expired=True)

    if not isinstance(state, Active):
        raise TypeError(f"unknown deadline state: {state!r}")

    # a state resolved a moment ago may already be behind `now`: clamp to 0s
    remaining = max(as_utc(state.until) - as_utc(now), timedelta(0))
    text = f"{format_remaining(remaining)} left"
    if state.extended:
        text += " (extended)"
    return CountdownDisplay(text, urgent=remaining < URGENT_THRESHOLD, expired=False)
