from __future__ import annotations

NEWS_ERROR_MESSAGE = "An error occurred while fetching news articles. Please try again later."
MARKETS_ERROR_MESSAGE = "An error occurred while fetching markets. Please try again later."
RELATED_ERROR_MESSAGE = "Error processing your request. Please try again later."
AUTH_ERROR_MESSAGE = "Error validating API key. Please try again later."


class UpstreamError(Exception):
    """An external collaborator failed; carries the message shown to callers."""

    def __init__(self, message: str, *, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


__all__ = [
    "AUTH_ERROR_MESSAGE",
    "MARKETS_ERROR_MESSAGE",
    "NEWS_ERROR_MESSAGE",
    "RELATED_ERROR_MESSAGE",
    "UpstreamError",
]
