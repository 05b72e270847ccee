from enum import Enum
from typing import Optional


class WebPomError(Exception):
    """Base class for errors surfaced to callers of the analysis core."""


class NavigationKind(str, Enum):
    PROTOCOL_BLOCKED = "protocol_blocked"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class NavigationError(WebPomError):
    """Raised when every navigation strategy failed for a URL."""

    def __init__(self, kind: NavigationKind, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.original = original


class BrowserLaunchError(WebPomError):
    """Raised when the browser could not be started or connected to."""


class SelectorError(WebPomError):
    """Invalid or unanswerable selector during synthesis.

    Never leaves the selector synthesizer.
    """


class BodyParseError(WebPomError):
    """A request or response body is not JSON. Never leaves the recorder."""


class FlowDetectionError(WebPomError):
    """A live detector failed; the detector contributes no flow."""

    def __init__(self, detector: str, original: BaseException):
        super().__init__(f"{detector} detector failed: {original}")
        self.detector = detector
        self.original = original


class AnalysisTimeoutError(WebPomError):
    """The whole analysis request ran past its time budget."""
