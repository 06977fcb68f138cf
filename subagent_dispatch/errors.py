"""Typed failures surfaced by subagent task execution."""

from typing import Optional


class SubagentError(Exception):
    """Base class for every failure raised by a subagent task."""


class InvalidTaskRequest(SubagentError, ValueError):
    """Task request rejected before any backend call was made."""


class ModelConnectionError(SubagentError, ConnectionError):
    """Model backend could not be reached."""


class ModelTimeoutError(SubagentError, TimeoutError):
    """Model backend did not finish answering within the configured bound."""


class ModelError(SubagentError):
    """Model backend answered with an error status or a malformed payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
