"""Exceptions raised by pagecompare."""

from enum import Enum


class UsageError(Exception):
    """Raised when the command line is missing required arguments."""

    pass


class CaptureFailure(str, Enum):
    """Why a snapshot could not be produced."""

    TIMEOUT = "timeout"
    NAVIGATION = "navigation"
    DECODE = "decode"


class CaptureError(Exception):
    """Raised when a page cannot be captured for one configuration.

    Carries the URL and the underlying cause so the runner can record the
    failure on that configuration's slot and move on.
    """

    def __init__(
        self,
        url: str,
        cause: BaseException | str,
        kind: CaptureFailure = CaptureFailure.NAVIGATION,
    ) -> None:
        self.url = url
        self.cause = cause
        self.kind = kind
        super().__init__(f"{kind.value} error capturing {url}: {cause}")
