class StreamError(Exception):
    """Base for failures that abort a decode session."""


class TransportUnavailable(StreamError):
    """No readable body could be obtained from the response."""


class ReadFailure(StreamError):
    """The underlying byte stream raised while it was being read."""


class ChatHTTPError(StreamError):
    """The chat endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code
