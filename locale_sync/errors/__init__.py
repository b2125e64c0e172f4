"""
Error handling for locale-sync

- Structured error hierarchy
- Logging and fallback decorators
"""

from .exceptions import (
    LocaleSyncError,
    TemporaryError,
    PermanentError,
    ConfigurationError,
    ValidationError,
    SourceLocaleError,
    LanguageExistsError,
    LocaleStoreError,
    TranslationError,
    categorize_error,
)

from .decorators import (
    log_errors,
    with_fallback,
)

__all__ = [
    # Exceptions
    "LocaleSyncError",
    "TemporaryError",
    "PermanentError",
    "ConfigurationError",
    "ValidationError",
    "SourceLocaleError",
    "LanguageExistsError",
    "LocaleStoreError",
    "TranslationError",
    "categorize_error",

    # Decorators
    "log_errors",
    "with_fallback",
]
