"""
Error taxonomy shared by the analysis, chunking and summarization services.
"""
from typing import Optional


class StudyAssistError(Exception):
    """Base class for errors raised by StudyAssist services."""
    pass


class InputError(StudyAssistError):
    """Raised when input text is too short or required options are missing."""
    pass


class GenerationError(StudyAssistError):
    """Raised when the generation API fails, blocks, truncates or returns nothing."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
