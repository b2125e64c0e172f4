"""Locale file storage."""

import json
from pathlib import Path
from typing import Iterable, List, Union

import aiofiles
import structlog

from locale_sync.core.flatten import LocaleDocument
from locale_sync.errors import LocaleStoreError

logger = structlog.get_logger(__name__)

CACHE_FILENAME = ".i18n-sync-cache.json"
LOCALE_SUFFIX = ".json"


def dump_document(doc: LocaleDocument) -> str:
    """Serialize a document the way locale files are written to disk."""
    return json.dumps(doc, ensure_ascii=False, indent=2) + "\n"


class LocaleStore:
    """Reads and writes ``<lang>.json`` files in one locales directory."""

    def __init__(
        self,
        locales_path: Union[str, Path],
        exclude_files: Iterable[str] = (),
        cache_filename: str = CACHE_FILENAME,
    ):
        """Initialize the store.

        Args:
            locales_path: Directory containing the locale files
            exclude_files: File names never treated as languages
            cache_filename: Name of the sync cache file inside the directory
        """
        self.locales_path = Path(locales_path)
        self.exclude_files = set(exclude_files)
        self.cache_filename = cache_filename
        self.logger = logger.bind(component="locale_store", locales_path=str(self.locales_path))

    def path_for(self, lang: str) -> Path:
        return self.locales_path / f"{lang}{LOCALE_SUFFIX}"

    def exists(self, lang: str) -> bool:
        return self.path_for(lang).is_file()

    def _is_locale_file(self, path: Path) -> bool:
        name = path.name
        return (
            path.is_file()
            and name.endswith(LOCALE_SUFFIX)
            and not name.startswith(".")
            and name not in self.exclude_files
            and name != self.cache_filename
        )

    def detect_languages(self) -> List[str]:
        """List language codes of the locale files currently on disk."""
        if not self.locales_path.is_dir():
            self.logger.warning("Locales directory not found")
            return []

        try:
            languages = sorted(
                path.name[: -len(LOCALE_SUFFIX)]
                for path in self.locales_path.iterdir()
                if self._is_locale_file(path)
            )
        except OSError as e:
            self.logger.error("Failed to list locales directory", error=str(e))
            return []

        if languages:
            self.logger.info("Detected languages", count=len(languages), languages=languages)
        else:
            self.logger.warning("No locale files found")
        return languages

    async def load(self, lang: str) -> LocaleDocument:
        """Load a language document.

        Returns an empty document when the file is absent or unreadable;
        read and parse failures are logged, never raised.
        """
        path = self.path_for(lang)
        if not path.exists():
            return {}

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.error("Failed to load locale file", language=lang, error=str(e))
            return {}

        if not isinstance(data, dict):
            self.logger.error(
                "Locale file does not contain a JSON object",
                language=lang,
                found=type(data).__name__,
            )
            return {}
        return data

    async def save(self, lang: str, doc: LocaleDocument) -> None:
        """Write a language document, replacing the whole file.

        Raises:
            LocaleStoreError: If the directory or file cannot be written
        """
        path = self.path_for(lang)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(dump_document(doc))
        except OSError as e:
            self.logger.error("Failed to save locale file", language=lang, error=str(e))
            raise LocaleStoreError(
                f"Cannot write {path.name}: {e}",
                operation="save",
                path=str(path),
                previous_error=e,
            ) from e

        self.logger.info("Saved locale file", language=lang)
