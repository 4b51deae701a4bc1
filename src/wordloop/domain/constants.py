"""Centralized constants for wordloop.

Scheduling tables and transport defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduling ----------
# Base interval in days per review stage. Index 0 is a same-day slot.
STAGE_INTERVALS = (0, 1, 3, 7, 14, 30)
FIRST_STAGE = 1
MAX_STAGE = 5

MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 2.5
DEFAULT_EASE_FACTOR = 2.5

MIN_QUALITY = 0
MAX_QUALITY = 5
DEFAULT_PASS_THRESHOLD = 3

# ---------- Word store / HTTP ----------
REQUEST_TIMEOUT = 30.0
FLUSH_RETRIES = 3
RETRY_DELAY = 1.0  # seconds

# ---------- Identity ----------
TOKEN_SAFETY_BUFFER_SEC = 60
TOKEN_MAX_SKEW_SEC = 60
