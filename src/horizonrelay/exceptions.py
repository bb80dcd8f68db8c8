from __future__ import annotations


class RelayError(Exception):
    """Base class for errors raised by the stream relay."""


class UpstreamRequestError(RelayError):
    """The upstream streaming request could not be initiated.

    Raised before any frame is produced, either because the connection
    failed or because the upstream answered with a non-2xx status.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class UpstreamStreamError(RelayError):
    """The upstream failed after streaming had started."""


class PayloadDecodeError(RelayError, ValueError):
    """A record payload is not valid JSON. Always recovered by passthrough."""


def describe_error(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__
