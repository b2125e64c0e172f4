"""
Error Hierarchy for locale-sync

Structured error types for the sync engine, the locale store and the
translation backends. Every error carries a machine-readable code and a
context dict so it can be logged as a single structured event.
"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone


class LocaleSyncError(Exception):
    """
    Base exception for all locale-sync errors.

    Provides error context and categorization for logging and for deciding
    whether an operation may be retried.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        retry_after: Optional[int] = None,
        previous_error: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.retry_after = retry_after
        self.previous_error = previous_error
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "retry_after": self.retry_after,
            "timestamp": self.timestamp.isoformat(),
            "previous_error": str(self.previous_error) if self.previous_error else None,
        }

    def is_retryable(self) -> bool:
        """Determine if this error should trigger a retry."""
        return isinstance(self, TemporaryError)

    def requires_user_action(self) -> bool:
        """Determine if this error requires user intervention."""
        return isinstance(
            self, (ConfigurationError, ValidationError, SourceLocaleError, LanguageExistsError)
        )


class TemporaryError(LocaleSyncError):
    """Base class for temporary errors that should be retried."""

    def __init__(self, message: str, retry_after: int = 5, **kwargs):
        super().__init__(message, retry_after=retry_after, **kwargs)


class PermanentError(LocaleSyncError):
    """Base class for permanent errors that should not be retried."""
    pass


class ConfigurationError(PermanentError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, context={"config_key": config_key}, **kwargs)


class ValidationError(PermanentError):
    """Invalid arguments passed to a public operation."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(
            message,
            context={"field": field, "value": str(value) if value is not None else None},
            **kwargs
        )


class SourceLocaleError(PermanentError):
    """The source-language document is absent or empty."""

    def __init__(self, message: str, language_code: Optional[str] = None, **kwargs):
        super().__init__(message, context={"language_code": language_code}, **kwargs)


class LanguageExistsError(PermanentError):
    """A locale file for the requested new language already exists."""

    def __init__(self, message: str, language_code: Optional[str] = None, **kwargs):
        super().__init__(message, context={"language_code": language_code}, **kwargs)


class LocaleStoreError(LocaleSyncError):
    """Locale or cache file I/O errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        **kwargs
    ):
        # Permission and encoding problems will not fix themselves
        is_temporary = not any(
            keyword in message.lower() for keyword in ["permission", "read-only", "encode", "decode"]
        )

        super().__init__(
            message,
            context={
                "operation": operation,
                "path": path,
                "is_temporary": is_temporary,
            },
            retry_after=1 if is_temporary else None,
            **kwargs
        )

    def is_retryable(self) -> bool:
        return self.context.get("is_temporary", False)


class TranslationError(LocaleSyncError):
    """Translation backend errors."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        target_lang: Optional[str] = None,
        **kwargs
    ):
        is_temporary = "timeout" in message.lower() or "connection" in message.lower()

        super().__init__(
            message,
            context={
                "service": service,
                "target_lang": target_lang,
                "is_temporary": is_temporary,
            },
            retry_after=2 if is_temporary else None,
            **kwargs
        )

    def is_retryable(self) -> bool:
        """Backend errors are retryable if they're connection/timeout related."""
        return self.context.get("is_temporary", False)


def categorize_error(error: Exception) -> str:
    """Categorize an unknown error into our error hierarchy."""
    if isinstance(error, LocaleSyncError):
        return error.__class__.__name__

    error_msg = str(error).lower()

    if isinstance(error, (OSError, UnicodeError)):
        return "LocaleStoreError"
    if "config" in error_msg or "setting" in error_msg:
        return "ConfigurationError"
    elif "translat" in error_msg:
        return "TranslationError"
    elif "timeout" in error_msg or "connection" in error_msg:
        return "TemporaryError"
    else:
        return "LocaleSyncError"
