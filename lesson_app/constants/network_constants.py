"""Network configuration constants for the audience relay."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8765
AUDIENCE_PATH: str = "/audience"
CHANNEL_PATH: str = "/channel"
