"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify, request

from smash.errors import NotFoundError, ValidationError

from . import bp
from .bracket import strip_placeholders
from .models import registered_team_count
from .notifications import FirestoreNotifier
from .progression import TournamentService
from .scheduler import (
    get_scheduling_summary,
    group_matches_by_time_slot,
    needs_scheduling,
    parse_courts,
    validate_courts,
)
from .standings import calculate_standings, find_group
from .store import FirestoreTournamentStore


def _service() -> TournamentService:
    """Build a service bound to the app's Firestore client and settings."""
    db = firestore.client()
    config = current_app.config
    return TournamentService(
        FirestoreTournamentStore(db),
        FirestoreNotifier(db),
        match_duration=config["MATCH_DURATION_MINUTES"],
        buffer_time=config["MATCH_BUFFER_MINUTES"],
        optimistic=config["OPTIMISTIC_LOCKING"],
    )


def _payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _respond(result: dict[str, Any]) -> Any:
    """Serialize an operation result, mapping failures to HTTP codes."""
    code = result.pop("code", None)
    if result.get("success"):
        return jsonify(result), 200
    current_app.logger.info(f"Tournament request failed ({code}): {result.get('error')}")
    return jsonify(result), code or 400


@bp.route("/<string:tournament_id>", methods=["GET"])
def view_tournament(tournament_id: str) -> Any:
    """Return a tournament document."""
    tournament = _service().get_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found.")
    return jsonify(tournament), 200


@bp.route("/<string:tournament_id>/groups/<string:group_id>/standings", methods=["GET"])
def group_standings(tournament_id: str, group_id: str) -> Any:
    """Return the ranked standings of one group."""
    tournament = _service().get_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found.")
    if find_group(tournament, group_id) is None:
        raise NotFoundError("Group not found.")
    return jsonify({"standings": calculate_standings(tournament, group_id)}), 200


@bp.route("/<string:tournament_id>/matches/<string:match_id>/score", methods=["POST"])
def record_score(tournament_id: str, match_id: str) -> Any:
    """Record a match score and progress the tournament if a stage is done."""
    data = _payload()
    result = _service().record_score_and_progress(
        tournament_id, match_id, data.get("score"), data.get("matches")
    )
    return _respond(dict(result))


@bp.route("/<string:tournament_id>/progress", methods=["POST"])
def check_progress(tournament_id: str) -> Any:
    """Run the progression check against the caller's match list."""
    data = _payload()
    service = _service()
    tournament = service.get_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found.")
    return _respond(dict(service.check_and_progress(tournament, data.get("matches"))))


@bp.route("/<string:tournament_id>/knockout", methods=["POST"])
def start_knockout(tournament_id: str) -> Any:
    """Host override that starts the knockout stage."""
    data = _payload()
    return _respond(dict(_service().start_knockout_stage(tournament_id, data.get("matches"))))


@bp.route("/<string:tournament_id>/finals", methods=["POST"])
def start_finals(tournament_id: str) -> Any:
    """Host override that starts the finals."""
    data = _payload()
    return _respond(dict(_service().start_finals_stage(tournament_id, data.get("matches"))))


@bp.route("/<string:tournament_id>/logistics", methods=["PATCH"])
def update_logistics(tournament_id: str) -> Any:
    """Change date, courts, venue or name and rebuild the match schedule."""
    return _respond(dict(_service().update_logistics(tournament_id, _payload())))


@bp.route("/<string:tournament_id>/schedule", methods=["GET"])
def schedule_summary(tournament_id: str) -> Any:
    """Summarize how the tournament's matches fit on its courts."""
    tournament = _service().get_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found.")

    config = current_app.config
    courts = parse_courts(tournament.get("courts"))
    matches = strip_placeholders(tournament.get("matches") or [])
    summary = get_scheduling_summary(
        len(matches),
        len(courts),
        config["MATCH_DURATION_MINUTES"],
        config["MATCH_BUFFER_MINUTES"],
    )
    waves = group_matches_by_time_slot(matches)
    return jsonify({
        "courts": courts,
        "summary": summary,
        "needsScheduling": needs_scheduling(len(matches), len(courts)),
        "courtCheck": validate_courts(
            courts, registered_team_count(tournament.get("teams"))
        ),
        "timeSlots": {
            str(slot): [m.get("id") for m in slot_matches]
            for slot, slot_matches in sorted(waves.items())
        },
    }), 200
