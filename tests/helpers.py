"""Builders for tournament documents used across the test suite."""

from __future__ import annotations

import copy
from typing import Any

from smash.core.constants import ROUND_GROUP, SIDE_LEFT, STATUS_GROUP_STAGE

START = "2025-12-15T10:00:00"
WINNING_SETS = [{"teamA": 6, "teamB": 3}, {"teamA": 6, "teamB": 4}]


def make_player(uid: str | None, first: str, last: str) -> dict[str, Any]:
    """Build an embedded player."""
    return {"userId": uid, "firstName": first, "lastName": last, "avatarSource": None}


def make_team(label: str, registered: bool = True) -> dict[str, Any]:
    """Build a complete two-player team named after ``label``."""
    return {
        "player1": make_player(f"{label}-p1" if registered else None, label, "One"),
        "player2": make_player(f"{label}-p2" if registered else None, label, "Two"),
        "isAdminTeam": False,
    }


def round_robin(group_id: str, teams: list[dict[str, Any]], scored: bool = True) -> list[dict[str, Any]]:
    """Every pairing of a group once; the team listed first always wins."""
    matches = []
    number = 1
    for i in range(len(teams)):
        for j in range(i + 1, len(teams)):
            matches.append({
                "id": f"{group_id}-m{number}",
                "round": ROUND_GROUP,
                "groupId": group_id,
                "team1": copy.deepcopy(teams[i]),
                "team2": copy.deepcopy(teams[j]),
                "court": "Court 1",
                "dateTime": START,
                "status": f"Match {number}",
                "scoreRecorded": scored,
                "score": copy.deepcopy(WINNING_SETS) if scored else None,
                "winningTeam": SIDE_LEFT if scored else None,
            })
            number += 1
    return matches


def make_tournament(
    tournament_id: str = "t1",
    status: str = STATUS_GROUP_STAGE,
    scored: bool = True,
    courts: str = "1,2",
) -> dict[str, Any]:
    """Two groups of four with a full round robin each (12 matches)."""
    group_a = [make_team(f"A{i}") for i in range(4)]
    group_b = [make_team(f"B{i}") for i in range(4)]
    return {
        "id": tournament_id,
        "name": "Summer Padel Championship",
        "hostId": "host-1",
        "status": status,
        "location": "PadelPoints Amsterdam",
        "courts": courts,
        "dateTime": START,
        "teamCount": 8,
        "teams": copy.deepcopy(group_a + group_b),
        "groups": [
            {"id": "gA", "name": "Group A", "teams": copy.deepcopy(group_a)},
            {"id": "gB", "name": "Group B", "teams": copy.deepcopy(group_b)},
        ],
        "matches": round_robin("gA", group_a, scored) + round_robin("gB", group_b, scored),
    }


def seed_tournament(db: Any, tournament: dict[str, Any]) -> None:
    """Store a tournament document in a mock Firestore client."""
    data = {k: v for k, v in tournament.items() if k != "id"}
    db.collection("tournaments").document(tournament["id"]).set(copy.deepcopy(data))


def stored_tournament(db: Any, tournament_id: str = "t1") -> dict[str, Any]:
    """Read a tournament document back from a mock Firestore client."""
    return db.collection("tournaments").document(tournament_id).get().to_dict()
