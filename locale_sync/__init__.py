"""Keep JSON locale files in sync with a source language."""

__version__ = "0.1.0"

from locale_sync.config import Settings, load_config
from locale_sync.core import SyncState, TranslationManager
from locale_sync.errors import LocaleSyncError

__all__ = [
    "LocaleSyncError",
    "Settings",
    "SyncState",
    "TranslationManager",
    "__version__",
    "load_config",
]
