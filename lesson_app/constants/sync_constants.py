"""Timing and channel constants for presenter/audience synchronization."""

BROADCAST_CHANNEL_NAME: str = "lesson-presentation"

HEARTBEAT_INTERVAL_SECONDS: float = 3.0
HEARTBEAT_TIMEOUT_SECONDS: float = 10.0

BANNER_DISPLAY_SECONDS: float = 3.0
BANNER_EXIT_SECONDS: float = 0.5

# Presenter-side "on call" highlight after a cold-call selection.
ON_CALL_DISPLAY_SECONDS: float = 3.0

DISPLAY_POLL_INTERVAL_SECONDS: float = 5.0
DEFAULT_DISPLAY_LABEL: str = "External Display"
