"""
Error classification for photodiary.

Every failure the package reports derives from PhotoDiaryError and carries a
category, a machine-readable code and structured details. Translating these
into human-readable text is the caller's job; no display strings live here.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import log_error


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    INVALID_INPUT = "invalid_input"
    DECODE = "decode"
    STORE = "store"


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    code: str
    message: str
    details: dict[str, Any]
    timestamp: datetime
    recoverable: bool = True
    retry_suggested: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
        }


class PhotoDiaryError(Exception):
    """Base exception class for photodiary."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = False,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.code = code or f"{category.value}_error"
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_suggested = retry_suggested
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        error_context = {
            "category": self.category.value,
            "code": self.code,
            "recoverable": self.recoverable,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            code=self.code,
            message=str(self),
            details=self.details,
            timestamp=self.timestamp,
            recoverable=self.recoverable,
            retry_suggested=self.retry_suggested,
        )


class InvalidInputError(PhotoDiaryError):
    """Non-image asset, empty payload or malformed date key. The caller must fix the input."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.INVALID_INPUT,
            code=code or "invalid_input",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class DecodeError(PhotoDiaryError):
    """An asset typed as an image could not be decoded."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.DECODE,
            code=code or "decode_failed",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class StoreError(PhotoDiaryError):
    """The persistence engine failed; ``operation`` names the store call that triggered it."""

    def __init__(
        self,
        message: str,
        operation: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        self.operation = operation
        super().__init__(
            message=message,
            category=ErrorCategory.STORE,
            code=code or "store_failed",
            details={"operation": operation, **(details or {})},
            recoverable=True,
            # quota exhaustion and transient I/O look the same from here
            retry_suggested=False,
            original_exception=original_exception,
        )
