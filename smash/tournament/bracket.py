"""Builds knockout and final matches from earlier results."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from smash.core.constants import (
    DEFAULT_COURT,
    KNOCKOUT_GROUP_COUNT,
    PLACEHOLDER_MARKER,
    PLACEHOLDER_SF1_LABEL,
    PLACEHOLDER_SF2_LABEL,
    ROUND_FINAL,
    ROUND_SEMIFINAL,
    SEMIFINAL_COUNT,
)
from smash.errors import PreconditionError

from .models import winning_team
from .scheduler import parse_courts
from .standings import calculate_standings

if TYPE_CHECKING:
    from .models import Match, Team, Tournament

MIN_TEAMS_PER_GROUP = 2


def is_placeholder(match: Match) -> bool:
    """Return True for synthetic matches reserving a UI slot."""
    return PLACEHOLDER_MARKER in str(match.get("id") or "")


def strip_placeholders(matches: list[Match]) -> list[Match]:
    """Drop every placeholder match."""
    return [m for m in matches if not is_placeholder(m)]


def _draw_courts(tournament: Tournament, count: int, rng: random.Random) -> list[str]:
    """Pick ``count`` courts at random, distinct while enough exist."""
    courts = parse_courts(tournament.get("courts"))
    if not courts:
        return [DEFAULT_COURT] * count
    if len(courts) >= count:
        return rng.sample(courts, count)
    return [rng.choice(courts) for _ in range(count)]


def _new_match(
    tournament: Tournament,
    match_id: str,
    round_name: str,
    team1: Team,
    team2: Team,
    court: str,
    label: str,
) -> Match:
    match: Match = {
        "id": match_id,
        "round": round_name,
        "team1": team1,
        "team2": team2,
        "court": court,
        "dateTime": tournament.get("dateTime", ""),
        "status": label,
        "scoreRecorded": False,
        "score": None,
        "winningTeam": None,
    }
    if tournament.get("location"):
        match["location"] = tournament["location"]
    if tournament.get("name"):
        match["tournamentName"] = tournament["name"]
    return match


def create_placeholder_final(
    tournament: Tournament, rng: random.Random | None = None
) -> Match:
    """Build the stand-in final shown until both semifinals are decided."""
    rng = rng or random.Random()
    (court,) = _draw_courts(tournament, 1, rng)
    return _new_match(
        tournament,
        f"{tournament['id']}_final_{PLACEHOLDER_MARKER}",
        ROUND_FINAL,
        {"player1": {"firstName": PLACEHOLDER_SF1_LABEL, "lastName": ""}, "player2": None},
        {"player1": {"firstName": PLACEHOLDER_SF2_LABEL, "lastName": ""}, "player2": None},
        court,
        "Final",
    )


def create_knockout_matches(
    tournament: Tournament, rng: random.Random | None = None
) -> list[Match]:
    """Cross-pair the top two of each group into semifinals.

    Group A's winner meets group B's runner-up and vice versa, so group
    mates cannot meet again in the first knockout round. Both semifinals
    start at the tournament's start time on courts drawn at random, and a
    placeholder final is appended.

    Raises:
        PreconditionError: Unless there are exactly two groups with at
            least two teams each.
    """
    rng = rng or random.Random()
    groups = tournament.get("groups") or []
    if len(groups) != KNOCKOUT_GROUP_COUNT:
        raise PreconditionError(
            f"Knockout stage requires exactly {KNOCKOUT_GROUP_COUNT} groups."
        )

    group_a = calculate_standings(tournament, groups[0]["id"])
    group_b = calculate_standings(tournament, groups[1]["id"])
    if len(group_a) < MIN_TEAMS_PER_GROUP or len(group_b) < MIN_TEAMS_PER_GROUP:
        raise PreconditionError("Each group needs at least two teams.")

    court1, court2 = _draw_courts(tournament, SEMIFINAL_COUNT, rng)
    tid = tournament["id"]
    return [
        _new_match(
            tournament,
            f"{tid}_semifinal_1",
            ROUND_SEMIFINAL,
            group_a[0]["team"],
            group_b[1]["team"],
            court1,
            "Semifinal 1",
        ),
        _new_match(
            tournament,
            f"{tid}_semifinal_2",
            ROUND_SEMIFINAL,
            group_b[0]["team"],
            group_a[1]["team"],
            court2,
            "Semifinal 2",
        ),
        create_placeholder_final(tournament, rng),
    ]


def create_final_match(
    tournament: Tournament,
    matches: list[Match] | None = None,
    rng: random.Random | None = None,
) -> Match | None:
    """Build the final from the two semifinal winners.

    Returns None when there are not exactly two semifinals or either one
    is still unscored; callers treat that as "not ready".
    """
    if matches is None:
        matches = tournament.get("matches") or []
    semifinals = [m for m in matches if m.get("round") == ROUND_SEMIFINAL]
    if len(semifinals) != SEMIFINAL_COUNT:
        return None
    if not all(m.get("scoreRecorded") for m in semifinals):
        return None

    semifinals.sort(key=lambda m: str(m.get("id")))
    winners = [winning_team(m) for m in semifinals]
    if not all(winners):
        return None

    (court,) = _draw_courts(tournament, 1, rng or random.Random())
    return _new_match(
        tournament,
        f"{tournament['id']}_final",
        ROUND_FINAL,
        winners[0],
        winners[1],
        court,
        "Final",
    )
