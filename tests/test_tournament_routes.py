"""Tests for the tournament blueprint using mockfirestore."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from smash import create_app
from smash.errors import ConcurrentUpdateError
from smash.tournament.store import FirestoreTournamentStore
from tests.helpers import WINNING_SETS, make_tournament, seed_tournament, stored_tournament


def _open_last_group_match(tournament: dict) -> dict:
    tournament["matches"][-1].update(
        {"scoreRecorded": False, "score": None, "winningTeam": None}
    )
    return tournament


class TournamentRoutesFirebaseTestCase(unittest.TestCase):
    """Test case for the tournament blueprint."""

    def setUp(self) -> None:
        """Set up a test client over a mock database."""
        self.mock_db = MockFirestore()

        # Patch firestore.client() to return our mock_db
        self.mock_firestore_module = MagicMock()
        self.mock_firestore_module.client.return_value = self.mock_db
        self.mock_firestore_module.SERVER_TIMESTAMP = "2023-01-01"

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_routes": patch(
                "smash.tournament.routes.firestore", new=self.mock_firestore_module
            ),
            "firestore_notifications": patch(
                "smash.tournament.notifications.firestore",
                new=self.mock_firestore_module,
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "SERVER_NAME": "localhost"})
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

        seed_tournament(self.mock_db, _open_last_group_match(make_tournament()))

    def tearDown(self) -> None:
        """Tear down the test client."""
        self.app_context.pop()
        self.mock_db.reset()

    def test_view_tournament(self) -> None:
        """A stored tournament is returned as JSON."""
        response = self.client.get("/tournaments/t1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["id"], "t1")

    def test_view_missing_tournament(self) -> None:
        """Unknown tournaments are 404s."""
        response = self.client.get("/tournaments/missing")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])

    def test_group_standings(self) -> None:
        """Standings are ranked for the requested group."""
        response = self.client.get("/tournaments/t1/groups/gA/standings")
        self.assertEqual(response.status_code, 200)
        standings = response.get_json()["standings"]
        self.assertEqual(len(standings), 4)
        self.assertEqual(standings[0]["points"], 9)

        missing = self.client.get("/tournaments/t1/groups/gZ/standings")
        self.assertEqual(missing.status_code, 404)

    def test_record_score_progresses(self) -> None:
        """The last group score opens the knockout stage."""
        response = self.client.post(
            "/tournaments/t1/matches/gB-m6/score", json={"score": WINNING_SETS}
        )

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data["progressed"])
        self.assertEqual(data["status"], "KNOCKOUT")
        self.assertNotIn("code", data)
        self.assertEqual(stored_tournament(self.mock_db)["status"], "KNOCKOUT")

        # Participants were notified
        inbox = (
            self.mock_db.collection("users")
            .document("A0-p1")
            .collection("notifications")
            .stream()
        )
        self.assertEqual(len(list(inbox)), 1)

    def test_record_invalid_score(self) -> None:
        """Malformed and tied scores are rejected with 400."""
        response = self.client.post("/tournaments/t1/matches/gB-m6/score", json={})
        self.assertEqual(response.status_code, 400)

        tied = [{"teamA": 6, "teamB": 2}, {"teamA": 2, "teamB": 6}]
        response = self.client.post(
            "/tournaments/t1/matches/gB-m6/score", json={"score": tied}
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["success"])

    def test_record_score_unknown_match(self) -> None:
        """Scoring an unknown match is a 404."""
        response = self.client.post(
            "/tournaments/t1/matches/nope/score", json={"score": WINNING_SETS}
        )
        self.assertEqual(response.status_code, 404)

    def test_body_must_be_object(self) -> None:
        """A JSON array body is refused."""
        response = self.client.post("/tournaments/t1/progress", json=[1, 2])
        self.assertEqual(response.status_code, 400)

    def test_progress_not_ready(self) -> None:
        """An open stage is reported without error."""
        response = self.client.post("/tournaments/t1/progress", json={})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["progressed"])

    def test_progress_with_caller_matches(self) -> None:
        """The caller's complete list advances the tournament."""
        response = self.client.post(
            "/tournaments/t1/progress", json={"matches": make_tournament()["matches"]}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "KNOCKOUT")

    def test_manual_knockout_conflict(self) -> None:
        """Starting the knockout stage early is a 409 with a reason."""
        response = self.client.post("/tournaments/t1/knockout")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.get_json()["error"], "All group matches must be scored first."
        )

    def test_manual_finals_conflict(self) -> None:
        """Starting the finals from the group stage is a 409."""
        response = self.client.post("/tournaments/t1/finals")
        self.assertEqual(response.status_code, 409)

    def test_update_logistics(self) -> None:
        """Renaming courts keeps match times."""
        response = self.client.patch(
            "/tournaments/t1/logistics", json={"courts": "Center,Side"}
        )
        self.assertEqual(response.status_code, 200)
        stored = stored_tournament(self.mock_db)
        self.assertEqual(stored["courts"], "Center,Side")
        self.assertEqual(stored["matches"][0]["court"], "Center")
        self.assertEqual(stored["matches"][0]["dateTime"], "2025-12-15T10:00:00")

    def test_update_logistics_without_fields(self) -> None:
        """A body with no logistics fields is a 400."""
        response = self.client.patch("/tournaments/t1/logistics", json={"status": "FINISHED"})
        self.assertEqual(response.status_code, 400)

    def test_concurrent_update_is_conflict(self) -> None:
        """A lost versioned write surfaces as 409."""
        with patch.object(
            FirestoreTournamentStore, "put", side_effect=ConcurrentUpdateError()
        ):
            response = self.client.post(
                "/tournaments/t1/matches/gB-m6/score", json={"score": WINNING_SETS}
            )
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.get_json()["success"])

    def test_schedule_summary(self) -> None:
        """Twelve matches on two courts need six waves."""
        response = self.client.get("/tournaments/t1/schedule")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["courts"], ["Court 1", "Court 2"])
        self.assertEqual(data["summary"]["timeSlotsNeeded"], 6)
        self.assertEqual(data["summary"]["totalDurationFormatted"], "4h 15m")
        self.assertTrue(data["needsScheduling"])
        self.assertEqual(data["courtCheck"]["timeSlotsNeeded"], 2)
        self.assertEqual(len(data["timeSlots"]["1"]), 12)

    def test_schedule_summary_without_courts(self) -> None:
        """A tournament without courts cannot be summarized."""
        self.mock_db.collection("tournaments").document("t1").update({"courts": ""})
        response = self.client.get("/tournaments/t1/schedule")
        self.assertEqual(response.status_code, 400)

    def test_unknown_route(self) -> None:
        """Unknown URLs get a JSON 404."""
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "Not found.")


if __name__ == "__main__":
    unittest.main()
