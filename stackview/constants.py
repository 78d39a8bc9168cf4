"""
Shared constants: commit metadata markers, drag transfer formats and
settings defaults.
"""

# Commit metadata
NO_DESCRIPTION = "(no description)"
CHANGE_ID_HEADER = "change-id"
CHANGE_ID_TRAILER = "Change-Id:"

# Drag transfer formats
JSON_MIME = "application/json"
TEXT_MIME = "text/plain"
URI_LIST_MIME = "text/uri-list"
FILES_TYPE = "Files"

# Settings
SETTINGS_DIR_NAME = "stackview"
DEFAULT_JJ_BINARY = "jj"
DEFAULT_COMMIT_LIMIT = 500
DEFAULT_STATS_WORKERS = 8
DEFAULT_WATCH_DEBOUNCE_MS = 300
