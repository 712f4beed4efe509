from enum import Enum


class FetchStatus(str, Enum):
    """Client fetch lifecycle state."""

    IDLE = "idle"
    LOADING = "loading"
    STREAMING = "streaming"
    SUCCESS = "success"
    ERROR = "error"
