"""Group standings for the knockout draw."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smash.core.constants import POINTS_PER_LOSS, POINTS_PER_WIN, SIDE_LEFT, SIDE_RIGHT

from .models import same_team

if TYPE_CHECKING:
    from .models import Group, Match, Standing, Team, Tournament


def find_group(tournament: Tournament, group_id: str) -> Group | None:
    """Return the group with ``group_id`` or None."""
    for group in tournament.get("groups") or []:
        if group.get("id") == group_id:
            return group
    return None


def _find_standing(standings: list[Standing], team: Team) -> Standing | None:
    for standing in standings:
        if same_team(standing["team"], team):
            return standing
    return None


def _apply_result(standings: list[Standing], match: Match) -> None:
    side = match.get("winningTeam")
    if side not in (SIDE_LEFT, SIDE_RIGHT):
        return

    left = _find_standing(standings, match.get("team1") or {})
    right = _find_standing(standings, match.get("team2") or {})
    winner, loser = (left, right) if side == SIDE_LEFT else (right, left)

    if winner is not None:
        winner["played"] += 1
        winner["won"] += 1
        winner["points"] += POINTS_PER_WIN
    if loser is not None:
        loser["played"] += 1
        loser["lost"] += 1
        loser["points"] += POINTS_PER_LOSS


def calculate_standings(tournament: Tournament, group_id: str) -> list[Standing]:
    """Rank the teams of a group from its scored matches.

    Every team in the group gets a row, even without a scored match.
    Rows are ordered by points, then wins, then matches played, all
    descending; index 0 is first place.
    """
    group = find_group(tournament, group_id)
    if group is None:
        return []

    standings: list[Standing] = [
        {"team": team, "played": 0, "won": 0, "lost": 0, "points": 0}
        for team in group.get("teams") or []
    ]

    for match in tournament.get("matches") or []:
        if match.get("groupId") != group_id or not match.get("scoreRecorded"):
            continue
        _apply_result(standings, match)

    # Sort by points (desc), wins (desc), then played (desc)
    standings.sort(key=lambda s: (s["points"], s["won"], s["played"]), reverse=True)
    return standings
