"""Core sync engine: documents, storage, cache, key selection and translation."""

from .cache import SyncCache, SyncCacheStore
from .diff import KeyClassification, find_missing_keys, needs_translation, plan
from .flatten import MISSING, flatten, get_all_keys, get_value, set_value, unflatten
from .manager import (
    AddLanguageResult,
    LanguageSyncResult,
    SyncReport,
    SyncState,
    TranslationManager,
    TranslationStatus,
)
from .progress import ConsoleProgressBar, ProgressEvent, ProgressSink
from .store import LocaleStore
from .translator import BatchTranslator, Translator

__all__ = [
    "AddLanguageResult",
    "BatchTranslator",
    "ConsoleProgressBar",
    "KeyClassification",
    "LanguageSyncResult",
    "LocaleStore",
    "MISSING",
    "ProgressEvent",
    "ProgressSink",
    "SyncCache",
    "SyncCacheStore",
    "SyncReport",
    "SyncState",
    "TranslationManager",
    "TranslationStatus",
    "Translator",
    "find_missing_keys",
    "flatten",
    "get_all_keys",
    "get_value",
    "needs_translation",
    "plan",
    "set_value",
    "unflatten",
]
