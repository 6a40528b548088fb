"""Data models for the tournament blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from smash.core.constants import SIDE_LEFT, SIDE_RIGHT
from smash.core.types import FirestoreDocument


class Player(TypedDict, total=False):
    """A player embedded in a team snapshot."""

    userId: Optional[str]
    firstName: str
    lastName: str
    avatarSource: Any


class Team(TypedDict, total=False):
    """A team of up to two players."""

    id: str
    player1: Optional[Player]
    player2: Optional[Player]
    isAdminTeam: bool


class Group(TypedDict, total=False):
    """A group with a frozen copy of its teams."""

    id: str
    name: str
    teams: list[Team]


class SetScore(TypedDict):
    """Games won by each side in a single set."""

    teamA: int
    teamB: int


class Match(FirestoreDocument, total=False):
    """A match embedded in the tournament document."""

    round: str
    roundNumber: int
    groupId: Optional[str]
    team1: Team
    team2: Team
    court: str
    dateTime: str
    timeSlot: int
    duration: int
    status: str
    scoreRecorded: bool
    score: Optional[list[SetScore]]
    winningTeam: Optional[str]
    location: str
    tournamentName: str


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    status: str
    hostId: str
    teams: list[Team]
    groups: list[Group]
    matches: list[Match]
    courts: str
    dateTime: str
    location: str
    teamCount: int
    registeredTeams: int
    winner: Optional[Team]
    version: int


class Standing(TypedDict):
    """A team's derived record within a group."""

    team: Team
    played: int
    won: int
    lost: int
    points: int


def is_team_complete(team: Team | None) -> bool:
    """Return True when both player slots are filled."""
    return bool(team and team.get("player1") and team.get("player2"))


def registered_team_count(teams: list[Team] | None) -> int:
    """Count the complete teams of a roster."""
    return sum(1 for team in teams or [] if is_team_complete(team))


def _players(team: Team) -> list[Player]:
    return [p for p in (team.get("player1"), team.get("player2")) if p]


def _user_ids(team: Team) -> tuple[str, ...] | None:
    players = _players(team)
    ids = [p.get("userId") for p in players]
    if not players or not all(ids):
        return None
    return tuple(sorted(str(uid) for uid in ids))


def _names(team: Team) -> tuple[str, ...]:
    return tuple(
        sorted(
            f"{p.get('firstName', '')} {p.get('lastName', '')}".strip().lower()
            for p in _players(team)
        )
    )


def same_team(a: Team | None, b: Team | None) -> bool:
    """Decide whether two team snapshots describe the same team.

    A synthetic team id wins when both sides carry one. Otherwise the
    players' user ids are compared when every player on both teams is a
    registered user, falling back to first/last name pairs.
    """
    if not a or not b:
        return False
    if a.get("id") and b.get("id"):
        return a["id"] == b["id"]
    ids_a, ids_b = _user_ids(a), _user_ids(b)
    if ids_a is not None and ids_b is not None:
        return ids_a == ids_b
    return _names(a) == _names(b)


def player_display_name(player: Player | None) -> str:
    """Render a player's name for messages."""
    if not player:
        return "TBD"
    name = f"{player.get('firstName', '')} {player.get('lastName', '')}".strip()
    return name or "Unknown Player"


def team_display_name(team: Team | None) -> str:
    """Render a team as ``"A & B"``."""
    if not team:
        return "TBD"
    return " & ".join(player_display_name(p) for p in _players(team)) or "TBD"


def winning_team(match: Match) -> Team | None:
    """Resolve the team snapshot on the match's winning side."""
    side = match.get("winningTeam")
    if side == SIDE_LEFT:
        return match.get("team1")
    if side == SIDE_RIGHT:
        return match.get("team2")
    return None


def participant_ids(tournament: Tournament) -> list[str]:
    """Collect the user ids of every player and the host, de-duplicated."""
    ids: list[str] = []
    for team in tournament.get("teams") or []:
        for player in _players(team):
            uid = player.get("userId")
            if uid and uid not in ids:
                ids.append(uid)
    host_id = tournament.get("hostId")
    if host_id and host_id not in ids:
        ids.append(host_id)
    return ids
