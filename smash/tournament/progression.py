"""Tournament lifecycle: score recording and stage progression."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, cast

from smash.core.constants import (
    ACTION_FINALS_STARTED,
    ACTION_KNOCKOUT_STARTED,
    ACTION_TOURNAMENT_FINISHED,
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_MATCH_DURATION_MINUTES,
    KNOCKOUT_ROUNDS,
    NOTIFICATION_TYPE_TOURNAMENT,
    ROUND_FINAL,
    SIDE_LEFT,
    SIDE_RIGHT,
    STATUS_FINALS,
    STATUS_FINISHED,
    STATUS_GROUP_STAGE,
    STATUS_KNOCKOUT,
    STATUS_LEGACY_COMPLETED,
)
from smash.errors import AppError, NotFoundError, PreconditionError, ValidationError

from .bracket import (
    create_final_match,
    create_knockout_matches,
    is_placeholder,
    strip_placeholders,
)
from .models import participant_ids, team_display_name, winning_team
from .rescheduler import plan_logistics_update

if TYPE_CHECKING:
    from smash.core.types import OperationResult

    from .models import Match, SetScore, Tournament
    from .notifications import Notifier
    from .store import TournamentStore


# Score recording


def _tally(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("Set scores must be non-negative integers.")
    return value


def normalize_set_scores(set_scores: Any) -> list[SetScore]:
    """Validate raw set tallies into ``{teamA, teamB}`` dicts.

    Each set may be given as a mapping with ``teamA``/``teamB`` keys or as
    a two-item sequence.

    Raises:
        ValidationError: On an empty list or a malformed tally.
    """
    if not isinstance(set_scores, (list, tuple)) or not set_scores:
        raise ValidationError("At least one set score is required.")

    normalized: list[SetScore] = []
    for entry in set_scores:
        if isinstance(entry, Mapping):
            team_a, team_b = entry.get("teamA"), entry.get("teamB")
        elif isinstance(entry, Sequence) and not isinstance(entry, str) and len(entry) == 2:
            team_a, team_b = entry
        else:
            raise ValidationError("Each set needs a score for both teams.")
        normalized.append({"teamA": _tally(team_a), "teamB": _tally(team_b)})
    return normalized


def determine_winning_side(set_scores: list[SetScore]) -> str:
    """Return the side that won more sets.

    Raises:
        ValidationError: When both sides won the same number of sets.
    """
    left = sum(1 for s in set_scores if s["teamA"] > s["teamB"])
    right = sum(1 for s in set_scores if s["teamB"] > s["teamA"])
    if left == right:
        raise ValidationError("Set wins are tied; the match has no winner.")
    return SIDE_LEFT if left > right else SIDE_RIGHT


def record_match_score(
    matches: list[Match], match_id: str, set_scores: Any
) -> list[Match]:
    """Return a copy of ``matches`` with one match's result applied.

    Raises:
        ValidationError: If the set scores are invalid or tied.
        NotFoundError: If no match has ``match_id``.
        PreconditionError: If the match is a placeholder awaiting its teams.
    """
    score = normalize_set_scores(set_scores)
    side = determine_winning_side(score)

    updated: list[Match] = []
    found = False
    for match in matches:
        if match.get("id") == match_id:
            if is_placeholder(match):
                raise PreconditionError("Placeholder matches cannot be scored.")
            match = {**match, "scoreRecorded": True, "score": score, "winningTeam": side}
            found = True
        updated.append(match)

    if not found:
        raise NotFoundError(f"Match {match_id} not found.")
    return updated


# Stage checks


def group_stage_complete(matches: list[Match]) -> bool:
    """True once every group match is scored; False if there are none."""
    group_matches = [m for m in matches if m.get("groupId")]
    return bool(group_matches) and all(m.get("scoreRecorded") for m in group_matches)


def knockout_stage_complete(matches: list[Match]) -> bool:
    """True once every knockout match is scored; False if there are none."""
    knockout = [m for m in matches if m.get("round") in KNOCKOUT_ROUNDS]
    return bool(knockout) and all(m.get("scoreRecorded") for m in knockout)


def find_final(matches: list[Match]) -> Match | None:
    """Return the real (non-placeholder) final, if one exists."""
    finals = [m for m in strip_placeholders(matches) if m.get("round") == ROUND_FINAL]
    return finals[0] if finals else None


# Transitions (Tournament, matches) -> Tournament


def migrate_legacy_status(tournament: Tournament) -> tuple[Tournament, dict[str, Any]]:
    """Rewrite the legacy ``COMPLETED`` status as ``FINISHED``.

    Returns the migrated tournament and the sparse update to persist,
    which is empty when nothing changed.
    """
    if tournament.get("status") != STATUS_LEGACY_COMPLETED:
        return tournament, {}

    update: dict[str, Any] = {"status": STATUS_FINISHED}
    if not tournament.get("winner"):
        final = find_final(tournament.get("matches") or [])
        winner = winning_team(final) if final else None
        if winner:
            update["winner"] = winner
    return cast("Tournament", {**tournament, **update}), update


def advance_to_knockout(
    tournament: Tournament, matches: list[Match], rng: random.Random | None = None
) -> Tournament:
    """Move a finished group stage into the semifinals.

    Raises:
        PreconditionError: If the tournament is not in the group stage or
            a group match is unscored.
    """
    if tournament.get("status") != STATUS_GROUP_STAGE:
        raise PreconditionError("Tournament is not in the group stage.")
    if not group_stage_complete(matches):
        raise PreconditionError("All group matches must be scored first.")

    knockout = create_knockout_matches(
        cast("Tournament", {**tournament, "matches": matches}), rng
    )
    return cast(
        "Tournament",
        {
            **tournament,
            "matches": strip_placeholders(matches) + knockout,
            "status": STATUS_KNOCKOUT,
        },
    )


def advance_to_finals(
    tournament: Tournament, matches: list[Match], rng: random.Random | None = None
) -> Tournament:
    """Replace the placeholder final with the real one.

    Raises:
        PreconditionError: If the tournament is not in the knockout stage,
            a knockout match is unscored, or there are not exactly two
            scored semifinals.
    """
    if tournament.get("status") != STATUS_KNOCKOUT:
        raise PreconditionError("Tournament is not in the knockout stage.")
    if not knockout_stage_complete(matches):
        raise PreconditionError("All knockout matches must be scored first.")

    final = create_final_match(tournament, matches, rng)
    if final is None:
        raise PreconditionError("The final needs exactly two scored semifinals.")
    return cast(
        "Tournament",
        {
            **tournament,
            "matches": strip_placeholders(matches) + [final],
            "status": STATUS_FINALS,
        },
    )


def finish_tournament(tournament: Tournament, matches: list[Match]) -> Tournament:
    """Crown the final's winner.

    Raises:
        PreconditionError: If the tournament is not in the finals or the
            final is unscored.
    """
    if tournament.get("status") != STATUS_FINALS:
        raise PreconditionError("Tournament is not in the finals.")
    final = find_final(matches)
    if final is None or not final.get("scoreRecorded"):
        raise PreconditionError("The final must be scored first.")

    return cast(
        "Tournament",
        {
            **tournament,
            "matches": matches,
            "status": STATUS_FINISHED,
            "winner": winning_team(final),
        },
    )


def progress(
    tournament: Tournament, matches: list[Match], rng: random.Random | None = None
) -> Tournament | None:
    """Apply the single transition the results allow, or return None.

    The guard is the tournament's current status, so applying this to an
    already advanced tournament is a no-op.
    """
    status = tournament.get("status")
    if status == STATUS_GROUP_STAGE and group_stage_complete(matches):
        return advance_to_knockout(tournament, matches, rng)
    if status == STATUS_KNOCKOUT and knockout_stage_complete(matches):
        return advance_to_finals(tournament, matches, rng)
    if status == STATUS_FINALS:
        final = find_final(matches)
        if final is not None and final.get("scoreRecorded"):
            return finish_tournament(tournament, matches)
    return None


# Orchestration

LOGISTICS_FIELDS = frozenset({"dateTime", "courts", "location", "name"})


def _failure(error: AppError) -> OperationResult:
    logging.warning(f"Tournament operation rejected: {error.message}")
    return {"success": False, "error": error.message, "code": error.status_code}


class TournamentService:
    """Drives tournaments through their stages against a store and notifier.

    Every entry point takes the caller's own match list when it has one,
    so a client never overwrites another client's score with a stale
    server copy. Store failures propagate to the caller untouched.
    """

    def __init__(  # noqa: PLR0913
        self,
        store: TournamentStore,
        notifier: Notifier,
        match_duration: int = DEFAULT_MATCH_DURATION_MINUTES,
        buffer_time: int = DEFAULT_BUFFER_MINUTES,
        optimistic: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        """Wire the service to its collaborators."""
        self.store = store
        self.notifier = notifier
        self.match_duration = match_duration
        self.buffer_time = buffer_time
        self.optimistic = optimistic
        self.rng = rng or random.Random()

    def _persist(self, tournament: Tournament, update: dict[str, Any]) -> Tournament:
        """Write ``update`` and return the tournament as the store now has it."""
        expected = tournament.get("version", 0) if self.optimistic else None
        self.store.put(tournament["id"], update, expected_version=expected)
        written = cast("Tournament", {**tournament, **update})
        if self.optimistic:
            written["version"] = tournament.get("version", 0) + 1
        return written

    def _load(self, tournament_id: str) -> Tournament:
        tournament = self.get_tournament(tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament not found.")
        return tournament

    def _migrate(self, tournament: Tournament) -> Tournament:
        migrated, update = migrate_legacy_status(tournament)
        if not update:
            return migrated
        logging.info(f"Migrating legacy status for tournament {tournament['id']}")
        return self._persist(tournament, update)

    def _notify(self, tournament: Tournament, action: str, title: str, message: str) -> None:
        self.notifier.notify_users(
            participant_ids(tournament),
            {
                "type": NOTIFICATION_TYPE_TOURNAMENT,
                "action": action,
                "title": title,
                "message": message,
                "metadata": {
                    "tournamentId": tournament["id"],
                    "tournamentName": tournament.get("name", ""),
                },
            },
        )

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        """Load a tournament, migrating a legacy status on first sight."""
        tournament = self.store.get(tournament_id)
        if tournament is None:
            return None
        return self._migrate(tournament)

    def _score(
        self,
        tournament_id: str,
        match_id: str,
        set_scores: Any,
        matches: list[Match] | None,
    ) -> tuple[Tournament, list[Match]]:
        tournament = self._load(tournament_id)
        base = matches if matches is not None else tournament.get("matches") or []
        return tournament, record_match_score(base, match_id, set_scores)

    def record_match_score(
        self,
        tournament_id: str,
        match_id: str,
        set_scores: Any,
        matches: list[Match] | None = None,
    ) -> OperationResult:
        """Score one match on the caller's list and persist that list."""
        try:
            tournament, updated = self._score(tournament_id, match_id, set_scores, matches)
        except AppError as e:
            return _failure(e)

        self._persist(tournament, {"matches": updated})
        return {"success": True, "error": None, "matches": updated}

    def check_and_progress(
        self, tournament: Tournament, matches: list[Match] | None = None
    ) -> OperationResult:
        """Advance the tournament if the given results complete its stage.

        Not being ready is the normal state, so it is reported as
        ``progressed: False`` rather than as an error.
        """
        tournament = self._migrate(tournament)
        if matches is None:
            matches = tournament.get("matches") or []

        try:
            advanced = progress(tournament, matches, self.rng)
        except PreconditionError as e:
            logging.warning(f"Progression skipped for {tournament['id']}: {e.message}")
            advanced = None

        if advanced is None:
            return {
                "success": True,
                "error": None,
                "progressed": False,
                "status": tournament.get("status", ""),
                "matches": matches,
            }
        return self._commit_transition(tournament, advanced)

    def record_score_and_progress(
        self,
        tournament_id: str,
        match_id: str,
        set_scores: Any,
        matches: list[Match] | None = None,
    ) -> OperationResult:
        """Record a score, then check progression on the very same list."""
        try:
            tournament, updated = self._score(tournament_id, match_id, set_scores, matches)
        except AppError as e:
            return _failure(e)

        tournament = self._persist(tournament, {"matches": updated})
        return self.check_and_progress(tournament, updated)

    def start_knockout_stage(
        self, tournament_id: str, matches: list[Match] | None = None
    ) -> OperationResult:
        """Host override: build the semifinals now or explain why not."""
        return self._manual_transition(tournament_id, matches, advance_to_knockout)

    def start_finals_stage(
        self, tournament_id: str, matches: list[Match] | None = None
    ) -> OperationResult:
        """Host override: build the final now or explain why not."""
        return self._manual_transition(tournament_id, matches, advance_to_finals)

    def _manual_transition(
        self,
        tournament_id: str,
        matches: list[Match] | None,
        transition: Callable[..., Tournament],
    ) -> OperationResult:
        try:
            tournament = self._load(tournament_id)
            base = matches if matches is not None else tournament.get("matches") or []
            advanced = transition(tournament, base, self.rng)
        except AppError as e:
            return _failure(e)
        return self._commit_transition(tournament, advanced)

    def _commit_transition(self, before: Tournament, after: Tournament) -> OperationResult:
        update: dict[str, Any] = {"status": after["status"], "matches": after["matches"]}
        if after.get("winner"):
            update["winner"] = after["winner"]
        written = self._persist(before, update)
        logging.info(
            f"Tournament {before['id']} advanced from {before.get('status')} "
            f"to {after['status']}"
        )

        name = after.get("name") or "Your tournament"
        status = after["status"]
        if status == STATUS_KNOCKOUT:
            self._notify(
                after,
                ACTION_KNOCKOUT_STARTED,
                "Knockout Stage Started",
                f"{name} has moved to the knockout stage! Check your semifinal matches.",
            )
        elif status == STATUS_FINALS:
            final = find_final(after["matches"]) or {}
            self._notify(
                after,
                ACTION_FINALS_STARTED,
                "Final Is Set",
                f"The final of {name} is set: {team_display_name(final.get('team1'))} "
                f"vs {team_display_name(final.get('team2'))}.",
            )
        elif status == STATUS_FINISHED:
            self._notify(
                after,
                ACTION_TOURNAMENT_FINISHED,
                "Tournament Finished",
                f"{team_display_name(after.get('winner'))} won {name}!",
            )

        return {
            "success": True,
            "error": None,
            "progressed": True,
            "status": status,
            "matches": after["matches"],
            "tournament": dict(written),
        }

    def update_logistics(
        self, tournament_id: str, updates: dict[str, Any]
    ) -> OperationResult:
        """Apply a date/court/venue/name edit, rebuilding match logistics."""
        allowed = {k: v for k, v in updates.items() if k in LOGISTICS_FIELDS}
        if not allowed:
            return _failure(ValidationError("No logistics fields to update."))
        try:
            tournament = self._load(tournament_id)
            update = plan_logistics_update(
                tournament, allowed, self.match_duration, self.buffer_time
            )
        except AppError as e:
            return _failure(e)
        except ValueError as e:
            return _failure(ValidationError(str(e)))

        self._persist(tournament, update)
        return {
            "success": True,
            "error": None,
            "matches": update.get("matches", tournament.get("matches") or []),
        }
