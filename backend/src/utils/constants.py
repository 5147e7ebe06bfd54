"""Shared constants for the AgriConnect feedback client."""

# Comment textarea limit, mirrored by FeedbackDraft validation.
MAX_COMMENT_LENGTH: int = 1000

MAX_RATING: int = 5

# Delay before a closed dialog forgets its draft, so exit animations can still
# read the last state.
CLOSE_RESET_DELAY_MS: int = 200

# Auto-close delay used when the caller does not pass one explicitly.
DEFAULT_AUTO_CLOSE_DELAY_MS: int = 2000

FEEDBACK_ENDPOINT: str = "/feedback"
SESSION_ENDPOINT: str = "/auth/session"

# Backend enums: low | medium | high | urgent
DEFAULT_PRIORITY: str = "medium"
# Backend enums: pending | in_progress | resolved | closed
DEFAULT_STATUS: str = "pending"

# Roles accepted by the backend user_type column
ALLOWED_USER_TYPES: frozenset[str] = frozenset(
    {"farmer", "supplier", "driver", "admin", "anonymous"}
)
ANONYMOUS_USER_TYPE: str = "anonymous"

# Length of the comment excerpt written to debug logs
COMMENT_PREVIEW_LENGTH: int = 60
