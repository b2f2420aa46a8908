"""Tunable timing for the presenter/audience protocol."""

from __future__ import annotations

from dataclasses import dataclass

from lesson_app.constants.sync_constants import (
    BANNER_DISPLAY_SECONDS,
    BANNER_EXIT_SECONDS,
    BROADCAST_CHANNEL_NAME,
    DISPLAY_POLL_INTERVAL_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    HEARTBEAT_TIMEOUT_SECONDS,
    ON_CALL_DISPLAY_SECONDS,
)


@dataclass(frozen=True, slots=True)
class SyncSettings:
    """Channel name and timing constants shared by both windows."""

    channel_name: str = BROADCAST_CHANNEL_NAME
    heartbeat_interval_seconds: float = HEARTBEAT_INTERVAL_SECONDS
    heartbeat_timeout_seconds: float = HEARTBEAT_TIMEOUT_SECONDS
    banner_display_seconds: float = BANNER_DISPLAY_SECONDS
    banner_exit_seconds: float = BANNER_EXIT_SECONDS
    on_call_display_seconds: float = ON_CALL_DISPLAY_SECONDS
    display_poll_interval_seconds: float = DISPLAY_POLL_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if not self.channel_name:
            raise ValueError("Channel name must not be empty.")
        if self.heartbeat_interval_seconds <= 0:
            raise ValueError("Heartbeat interval must be positive.")
        if self.heartbeat_timeout_seconds < self.heartbeat_interval_seconds:
            raise ValueError("Heartbeat timeout must not be shorter than the interval.")
        if self.banner_display_seconds <= 0 or self.banner_exit_seconds < 0:
            raise ValueError("Banner durations must be positive.")
        if self.display_poll_interval_seconds <= 0:
            raise ValueError("Display poll interval must be positive.")


DEFAULT_SETTINGS = SyncSettings()
