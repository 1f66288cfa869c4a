"""
Error taxonomy for the repository analysis pipeline.

Every failure that can abort an analysis derives from AnalysisError so the
HTTP layer can turn it into a failure envelope without knowing the details.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for failures that abort a pipeline invocation."""


class InvalidReferenceError(AnalysisError):
    """The input did not contain a recognizable owner/name pair."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Invalid GitHub URL format: {reference!r}")


class UpstreamError(AnalysisError):
    """A call to the GitHub API did not succeed."""

    def __init__(self, path: str, message: str, status_code: Optional[int] = None):
        self.path = path
        self.status_code = status_code
        super().__init__(message)


class UpstreamNotFoundError(UpstreamError):
    """GitHub answered 404 for the requested path."""

    def __init__(self, path: str):
        super().__init__(
            path,
            f"Repository not found or data not available for: {path}",
            status_code=404,
        )


class UpstreamAPIError(UpstreamError):
    """GitHub answered with any other non-2xx status, or could not be reached."""

    def __init__(self, path: str, reason: str, status_code: Optional[int] = None):
        if status_code is None:
            message = f"GitHub API Error for {path}: {reason}"
        else:
            message = f"GitHub API Error for {path}: {reason} (Status: {status_code})"
        super().__init__(path, message, status_code=status_code)
        self.reason = reason


class AssessmentSynthesisError(AnalysisError):
    """The generative service reply was missing, unparseable or off-schema."""
