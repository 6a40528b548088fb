"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .models import Match, Team, Tournament  # noqa: E402
from .progression import TournamentService  # noqa: E402

__all__ = ["Match", "Team", "Tournament", "TournamentService", "routes"]
