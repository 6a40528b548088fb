"""Court and time-slot assignment for batches of matches."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any

from smash.core.constants import DEFAULT_BUFFER_MINUTES, DEFAULT_MATCH_DURATION_MINUTES
from smash.errors import ValidationError
from smash.utils import add_minutes, to_iso

if TYPE_CHECKING:
    import datetime

    from .models import Match

COURT_RANGE_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


def parse_courts(courts_input: Any) -> list[str]:
    """Parse the host's free-text court field into an ordered list of names.

    ``"1-4"`` expands to ``Court 1`` .. ``Court 4``; a comma list keeps
    its order, prefixing bare numbers with ``Court``. A list is treated as
    already parsed. Repeated names are kept once.
    """
    if isinstance(courts_input, (list, tuple)):
        names = [str(c).strip() for c in courts_input if str(c).strip()]
        return list(dict.fromkeys(names))
    if not courts_input or not isinstance(courts_input, str):
        return []

    text = courts_input.strip()
    range_match = COURT_RANGE_RE.match(text)
    if range_match:
        start, end = int(range_match.group(1)), int(range_match.group(2))
        return [f"Court {i}" for i in range(start, end + 1)]

    parts = [part.strip() for part in text.split(",") if part.strip()]
    names = [f"Court {part}" if part.isdigit() else part for part in parts]
    return list(dict.fromkeys(names))


def schedule_matches(
    matches: list[Match],
    courts: list[str],
    start_time: datetime.datetime,
    match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
    buffer_time: int = DEFAULT_BUFFER_MINUTES,
) -> list[Match]:
    """Assign courts round-robin and advance the start time once per wave.

    Returns new match dicts carrying ``court``, ``dateTime`` (ISO-8601),
    ``timeSlot`` (1-based wave) and ``duration``.

    Raises:
        ValidationError: If no court is available.
    """
    if not matches:
        return []
    if not courts:
        raise ValidationError("At least one court is required")

    courts = list(dict.fromkeys(courts))
    slot_minutes = match_duration + buffer_time
    scheduled: list[Match] = []
    for index, match in enumerate(matches):
        time_slot = index // len(courts)
        match_start = add_minutes(start_time, time_slot * slot_minutes)
        scheduled.append({
            **match,
            "court": courts[index % len(courts)],
            "dateTime": to_iso(match_start),
            "timeSlot": time_slot + 1,
            "duration": match_duration,
        })
    return scheduled


def calculate_round_duration(
    match_count: int,
    court_count: int,
    match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
    buffer_time: int = DEFAULT_BUFFER_MINUTES,
) -> int:
    """Minutes a round occupies when its matches queue for the courts."""
    if match_count <= 0:
        return 0
    if court_count <= 0:
        raise ValidationError("At least one court is required")
    return math.ceil(match_count / court_count) * (match_duration + buffer_time)


def get_scheduling_summary(
    total_matches: int,
    available_courts: int,
    match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
    buffer_time: int = DEFAULT_BUFFER_MINUTES,
) -> dict[str, Any]:
    """Describe how long a batch of matches takes on the given courts."""
    if available_courts <= 0:
        raise ValidationError("At least one court is required")
    slots = math.ceil(total_matches / available_courts)
    # The last slot does not need a buffer
    total_minutes = max(slots * (match_duration + buffer_time) - buffer_time, 0)
    hours, minutes = divmod(total_minutes, 60)
    return {
        "timeSlotsNeeded": slots,
        "totalDurationMinutes": total_minutes,
        "totalDurationFormatted": f"{hours}h {minutes}m",
        "matchesPerSlot": available_courts,
        "simultaneous": available_courts >= total_matches,
    }


def needs_scheduling(match_count: int, court_count: int) -> bool:
    """Return True when matches must wait for a free court."""
    return match_count > court_count


def group_matches_by_time_slot(matches: list[Match]) -> dict[int, list[Match]]:
    """Bucket scheduled matches by their wave."""
    grouped: dict[int, list[Match]] = {}
    for match in matches:
        grouped.setdefault(match.get("timeSlot") or 1, []).append(match)
    return grouped


def validate_courts(courts: list[str], team_count: int) -> dict[str, Any]:
    """Check a court list against the first round of a tournament."""
    match_count = team_count // 2
    if not courts:
        return {"valid": False, "message": "At least one court is required"}
    if len(courts) >= match_count:
        return {
            "valid": True,
            "message": "All matches can be played simultaneously",
            "simultaneous": True,
        }

    summary = get_scheduling_summary(match_count, len(courts), 60, 15)
    return {
        "valid": True,
        "message": (
            f"Matches will be played in {summary['timeSlotsNeeded']} time slots "
            f"over {summary['totalDurationFormatted']}"
        ),
        "simultaneous": False,
        "timeSlotsNeeded": summary["timeSlotsNeeded"],
        "duration": summary["totalDurationFormatted"],
    }
