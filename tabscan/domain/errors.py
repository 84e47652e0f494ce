"""Failure taxonomy for receipt extraction.

None of these escape the extraction orchestrator; each one downgrades
the run to the next fallback step.
"""


class ExtractionError(RuntimeError):
    """Base class for recoverable extraction failures."""


class InvalidImageInput(ExtractionError):
    """Raised when no pages were supplied or image bytes cannot be decoded."""


class NetworkFailure(ExtractionError):
    """Raised on transport errors and timeouts."""


class NoProcessingEndpoint(NetworkFailure):
    """Raised when no usable remote processing endpoint is configured."""


class BadStatus(ExtractionError):
    """Raised when a service answers with a non-2xx status."""

    def __init__(self, status_code: int, body_preview: str | None = None) -> None:
        self.status_code = status_code
        self.body_preview = body_preview
        message = f"unexpected HTTP status {status_code}"
        if body_preview:
            message = f"{message}: {body_preview}"
        super().__init__(message)


class MalformedResponse(ExtractionError):
    """Raised when a response body is undecodable or reports success=false."""


class LocalRecognitionFailure(ExtractionError):
    """Raised when text recognition yields no usable text."""
