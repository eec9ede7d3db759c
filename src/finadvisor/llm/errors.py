"""Errors raised by chat services."""


class ChatServiceError(Exception):
    """Base class for model-calling service errors."""


class TransportError(ChatServiceError):
    """The service was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(f"Transport error: {message}")
        self.status = status


class MalformedResponseError(ChatServiceError):
    """The service answered but the response carried no usable candidate."""

    def __init__(self, message: str):
        super().__init__(f"Malformed response: {message}")
