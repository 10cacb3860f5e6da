"""
Errors raised between the upload and schema validation.

A model response that decodes but fails SIGNAL_SCHEMA is not an error:
it comes back as violations on the AnalysisOutcome. Messages here are
safe to show to end users.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class; the message is user-facing."""

    status_code = 500

    def __init__(self, message: str = "Analysis failed. Please try again or contact support.") -> None:
        super().__init__(message)
        self.message = message


class UnsupportedSelectionError(AnalysisError):
    """Unknown market index or trading strategy."""

    status_code = 400


class InvalidImageError(AnalysisError):
    status_code = 400

    def __init__(self, message: str = "Invalid image format. Please upload a valid chart screenshot.") -> None:
        super().__init__(message)


class AIConfigurationError(AnalysisError):
    status_code = 503

    def __init__(self, message: str = "API configuration error. Please contact support.") -> None:
        super().__init__(message)


class AIQuotaError(AnalysisError):
    status_code = 429

    def __init__(self, message: str = "API quota exceeded. Please try again later.") -> None:
        super().__init__(message)


class AIResponseFormatError(AnalysisError):
    """Model text was not a JSON document."""

    status_code = 502

    def __init__(self, message: str = "AI returned invalid JSON format. Please try again.") -> None:
        super().__init__(message)
