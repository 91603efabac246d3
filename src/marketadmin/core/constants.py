"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_ID_LENGTH = 64
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_STATUS_LENGTH = 32
MAX_ROLE_LENGTH = 32
MAX_ACTION_LENGTH = 50
MAX_TARGET_TYPE_LENGTH = 32
MAX_NOTIFICATION_TYPE_LENGTH = 50
MAX_TITLE_LENGTH = 255
MAX_URL_LENGTH = 512

# Pagination defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Audit
UNKNOWN_ADMIN_EMAIL = "unknown"

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Notification locks are striped across a fixed pool
NOTIFICATION_LOCK_STRIPES = 64

# Best-effort failures kept in memory for inspection
RECENT_FAILURES_SIZE = 100
