"""Global constants for the smash application."""

# Collections
TOURNAMENTS_COLLECTION = "tournaments"
USERS_COLLECTION = "users"
NOTIFICATIONS_COLLECTION = "notifications"
SETTINGS_COLLECTION = "settings"
NOTIFICATION_SETTINGS_DOC = "notifications"

# Tournament stages, in lifecycle order
STATUS_REGISTRATION = "REGISTRATION"
STATUS_GROUP_STAGE = "GROUP STAGE"
STATUS_KNOCKOUT = "KNOCKOUT"
STATUS_FINALS = "FINALS"
STATUS_FINISHED = "FINISHED"
STATUS_LEGACY_COMPLETED = "COMPLETED"

# Match rounds
ROUND_GROUP = "group"
ROUND_SEMIFINAL = "semifinal"
ROUND_KNOCKOUT = "knockout"
ROUND_FINAL = "final"
KNOCKOUT_ROUNDS = frozenset({ROUND_SEMIFINAL, ROUND_KNOCKOUT})

# Stages are chained in this order when a schedule is rebuilt
ROUND_STAGES = {
    ROUND_GROUP: 0,
    ROUND_SEMIFINAL: 1,
    ROUND_KNOCKOUT: 1,
    ROUND_FINAL: 2,
}

# Winning side markers
SIDE_LEFT = "left"
SIDE_RIGHT = "right"

PLACEHOLDER_MARKER = "placeholder"
PLACEHOLDER_SF1_LABEL = "Winner SF1"
PLACEHOLDER_SF2_LABEL = "Winner SF2"

# Scheduling defaults
DEFAULT_MATCH_DURATION_MINUTES = 30
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_COURT = "TBD"

# Standings
POINTS_PER_WIN = 3
POINTS_PER_LOSS = 0
KNOCKOUT_GROUP_COUNT = 2
SEMIFINAL_COUNT = 2

# Notifications
NOTIFICATION_TYPE_TOURNAMENT = "tournament"
ACTION_KNOCKOUT_STARTED = "knockout_started"
ACTION_FINALS_STARTED = "finals_started"
ACTION_TOURNAMENT_FINISHED = "tournament_finished"
