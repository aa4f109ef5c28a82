"""Application-wide constants."""

APP_TITLE = "envprof"
APP_SUBTITLE = "Environment profiles"

DEFAULT_ENV_FILENAME = ".env"
DEFAULT_MAX_BACKUPS = 10

# Bytes that are not valid UTF-8 survive a decode/encode round trip.
ENV_ENCODING = "utf-8"
ENV_ENCODING_ERRORS = "surrogateescape"

# <live file name>.backup.<YYYYMMDDHHMMSS>
BACKUP_SEPARATOR = ".backup."
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
BACKUP_TIMESTAMP_DIGITS = 14

PROFILE_NAME_MAX_LENGTH = 255

PROFILE_COLUMNS = ("#", "Name", "Label", "Active", "Updated")
VAR_COLUMNS = ("#", "Key", "Value")

ACTIVE_MARKER = "●"

HELP_TEXT = """\
 Navigation
 ──────────────────────────────
 j / ↓        Move down
 k / ↑        Move up
 g g          Jump to top
 G            Jump to bottom

 Profiles
 ──────────────────────────────
 a / Enter    Activate selected profile
 v            View profile variables
 c            View current .env variables
 d d          Delete selected profile
 r            Reload from disk

 General
 ──────────────────────────────
 ?            Toggle this help
 q            Quit\
"""
