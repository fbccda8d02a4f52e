"""
Exceptions raised by the Lead Qualification Engine.
"""
from typing import Any, Dict, Optional


class QualificationError(Exception):
    """Base class for qualification errors. Carries an HTTP status for the API layer."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ConfigurationError(QualificationError):
    """Raised when keyword, threshold or extraction configuration is malformed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 422, details)


class UnknownQuestionError(QualificationError):
    """Raised when an answer targets a question outside the session snapshot."""

    def __init__(self, question_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Unknown or inactive question: {question_id}", 404, details)
        self.question_id = question_id


class InvalidTransitionError(QualificationError):
    """Raised when a session operation is not allowed from the current step."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 409, details)


class SessionNotFoundError(QualificationError):
    """Raised when a session id is not known to the API."""

    def __init__(self, session_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Session not found: {session_id}", 404, details)
        self.session_id = session_id


class CallRecordWriteError(QualificationError):
    """Raised when a call record cannot be persisted."""

    def __init__(self, message: str = "Failed to write call record", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 502, details)


class TranscriptTooLargeError(QualificationError):
    """Raised by the API when a transcript exceeds the configured bound."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Transcript too large: {size} > {limit} characters",
            413,
            {"size": size, "limit": limit},
        )
