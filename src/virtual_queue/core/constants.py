"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MINUTES_PER_POSITION = 2
ALMOST_TURN_POSITION = 3
MIN_PASSWORD_LENGTH = 6
COUNTER_FEEDBACK_LIMIT = 20
ADMIN_FEEDBACK_LIMIT = 50
DEFAULT_SESSION_DAYS = 7
DEFAULT_REPORT_DAYS = 7
GUEST_NAME = "Guest Customer"
GUEST_PHONE = "N/A"
