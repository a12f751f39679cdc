"""Error taxonomy for the issue import pipeline."""

from __future__ import annotations

from typing import Optional


class IssueImportError(Exception):
    """Base class for every failure that aborts an import request."""


class RequestDecodeError(IssueImportError):
    """The request body is missing, not text, or not a valid project payload."""


class IdentityResolutionError(IssueImportError):
    """A repository URL does not carry an owner and a name."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Couldn't extract repo info from url {url!r}: {reason}")
        self.url = url
        self.reason = reason


class UpstreamApiError(IssueImportError):
    """GitHub could not be reached, rejected the credentials, or answered with a non-success status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreWriteError(IssueImportError):
    """An insert failed because of a connection problem or a constraint violation."""
