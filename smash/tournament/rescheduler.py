"""Rebuilds match logistics after the host edits date, courts or venue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from smash.core.constants import (
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_MATCH_DURATION_MINUTES,
    ROUND_GROUP,
    ROUND_STAGES,
)
from smash.utils import add_minutes, parse_datetime

from .scheduler import calculate_round_duration, parse_courts, schedule_matches

if TYPE_CHECKING:
    import datetime

    from .models import Match, Tournament

SCHEDULING_FIELDS = ("court", "dateTime", "timeSlot", "duration")
LAST_STAGE = max(ROUND_STAGES.values()) + 1


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def round_key(match: Match) -> tuple[int, int]:
    """Position of a match's round in the playing order as ``(stage, round)``.

    Group matches come first, ordered by their numeric round when they
    carry one (``roundNumber`` or an integer ``round``). Knockout rounds
    follow, then the final, then anything unrecognized.
    """
    round_value: Any = match.get("round")
    number = _int_or_none(match.get("roundNumber"))
    if number is None:
        number = _int_or_none(round_value)

    stage = ROUND_STAGES.get(round_value) if isinstance(round_value, str) else None
    if stage is None and (match.get("groupId") or number is not None):
        stage = ROUND_STAGES[ROUND_GROUP]
    return (LAST_STAGE if stage is None else stage), number or 0


def strip_scheduling(match: Match) -> Match:
    """Copy a match without its court and time assignment."""
    return {k: v for k, v in match.items() if k not in SCHEDULING_FIELDS}  # type: ignore[return-value]


def reschedule_matches(
    tournament: Tournament,
    new_date_time: datetime.datetime | str,
    new_courts: Any,
    new_location: str | None = None,
    match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
    buffer_time: int = DEFAULT_BUFFER_MINUTES,
) -> list[Match]:
    """Reassign every match to courts and times, round after round.

    Pairings, ids and scores are kept. Each round starts where the
    previous one ends, so waves of a court-starved round never overlap the
    next round. Matches come back in their original list order.

    Raises:
        ValidationError: If no court is configured.
    """
    matches = list(tournament.get("matches") or [])
    if not matches:
        return []

    start = parse_datetime(new_date_time)
    courts = parse_courts(new_courts)

    rounds: dict[tuple[int, int], list[int]] = {}
    for index, match in enumerate(matches):
        rounds.setdefault(round_key(match), []).append(index)

    result: list[Match | None] = [None] * len(matches)
    offset = 0
    for key in sorted(rounds):
        indexes = rounds[key]
        batch = [strip_scheduling(matches[i]) for i in indexes]
        scheduled = schedule_matches(
            batch, courts, add_minutes(start, offset), match_duration, buffer_time
        )
        for i, match in zip(indexes, scheduled):
            if new_location is not None:
                match["location"] = new_location
            result[i] = match
        offset += calculate_round_duration(
            len(batch), len(courts), match_duration, buffer_time
        )

    return [m for m in result if m is not None]


def remap_courts(
    matches: list[Match], old_courts: list[str], new_courts: list[str]
) -> list[Match]:
    """Rename courts positionally, leaving every time untouched.

    A match whose court was stored as the bare token (``"1"`` rather than
    ``"Court 1"``) is remapped as well.
    """
    mapping: dict[str, str] = {}
    for old, new in zip(old_courts, new_courts):
        mapping[old] = new
        mapping.setdefault(old.removeprefix("Court ").strip(), new)
    remapped = []
    for match in matches:
        court = match.get("court")
        if court in mapping:
            match = {**match, "court": mapping[court]}
        remapped.append(match)
    return remapped


def _same_instant(old: Any, new: Any) -> bool:
    if not old or not new:
        return old == new
    try:
        return parse_datetime(old) == parse_datetime(new)
    except ValueError:
        return old == new


def plan_logistics_update(
    tournament: Tournament,
    updates: dict[str, Any],
    match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
    buffer_time: int = DEFAULT_BUFFER_MINUTES,
) -> dict[str, Any]:
    """Turn a host's logistics edit into one sparse tournament update.

    A new start time, or a court list of a different size, reschedules
    every match. Renaming courts while keeping their count only remaps
    court names. Venue and tournament name are copied onto every match.
    """
    update = dict(updates)
    matches = list(tournament.get("matches") or [])
    if not matches:
        return update

    old_courts = parse_courts(tournament.get("courts"))
    new_courts = parse_courts(updates["courts"]) if "courts" in updates else old_courts
    date_changed = "dateTime" in updates and not _same_instant(
        tournament.get("dateTime"), updates["dateTime"]
    )
    courts_changed = new_courts != old_courts
    location = updates.get("location")

    if date_changed or (courts_changed and len(new_courts) != len(old_courts)):
        logging.info(f"Rescheduling {len(matches)} matches for {tournament.get('id')}")
        matches = reschedule_matches(
            {**tournament, "matches": matches},
            updates.get("dateTime") or tournament.get("dateTime"),
            new_courts,
            location,
            match_duration,
            buffer_time,
        )
    elif courts_changed:
        matches = remap_courts(matches, old_courts, new_courts)

    if location is not None:
        matches = [{**m, "location": location} for m in matches]
    if updates.get("name") is not None:
        matches = [{**m, "tournamentName": updates["name"]} for m in matches]

    update["matches"] = matches
    return update
