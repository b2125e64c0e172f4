"""Translation manager: the public operations over one locales directory."""

import asyncio
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from locale_sync.config.settings import Settings
from locale_sync.core.cache import SyncCache, SyncCacheStore
from locale_sync.core.diff import find_missing_keys, plan
from locale_sync.core.flatten import LocaleDocument, get_all_keys, get_value, set_value
from locale_sync.core.progress import ProgressEvent, ScaledProgressSink, as_sink, emit
from locale_sync.core.store import LocaleStore
from locale_sync.core.translator import BatchTranslator, Translator
from locale_sync.errors import (
    LanguageExistsError,
    LocaleStoreError,
    LocaleSyncError,
    SourceLocaleError,
    ValidationError,
    log_errors,
)

logger = structlog.get_logger(__name__)


class SyncState(Enum):
    """Stages a target language passes through during a sync."""
    IDLE = "idle"
    LOADING = "loading"
    DIFFING = "diffing"
    TRANSLATING = "translating"
    SAVING = "saving"
    DONE = "done"
    ERROR = "error"


@dataclass
class LanguageSyncResult:
    """Outcome of syncing one target language."""
    language: str
    state: SyncState = SyncState.IDLE
    keys_translated: int = 0
    modified_only: int = 0
    missing_only: int = 0
    modified_and_missing: int = 0
    failed_stage: Optional[SyncState] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is SyncState.DONE


@dataclass
class SyncReport:
    """Outcome of a whole sync run."""
    source_lang: str
    force: bool
    total_keys: int
    results: Dict[str, LanguageSyncResult] = field(default_factory=dict)
    cache_refreshed: bool = False

    @property
    def failed(self) -> List[str]:
        return [lang for lang, result in self.results.items() if not result.ok]


@dataclass
class TranslationStatus:
    """Translation completeness of one language against the source."""
    language: str
    total: int
    translated: int
    missing: int
    completeness: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AddLanguageResult:
    keys_translated: int
    total_keys: int


def _completeness(translated: int, total: int) -> float:
    return round(translated / total * 100, 1) if total > 0 else 0.0


def _validate_key_path(path: str) -> None:
    if not isinstance(path, str) or not path or any(not part for part in path.split(".")):
        raise ValidationError(f"Invalid key path: {path!r}", field="key_path", value=path)


class TranslationManager:
    """Keeps every locale file of a directory in line with a source language."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        translator: Optional[Translator] = None,
        base_dir: Optional[Union[str, Path]] = None,
    ):
        """Initialize the manager.

        Args:
            settings: Configuration; defaults are used when omitted
            translator: Translation backend; built from
                ``settings.translation_service`` when omitted
            base_dir: Directory relative locales paths are resolved against
        """
        self.settings = settings or Settings()
        self.locales_path = self.settings.resolve_locales_path(base_dir)
        self.store = LocaleStore(self.locales_path, self.settings.exclude_files)
        self.cache = SyncCacheStore(self.locales_path)

        if translator is None:
            from locale_sync.services import create_translator
            translator = create_translator(self.settings.translation_service)
        self.translator = translator

        rate = self.settings.rate_limiting
        self.batch_translator = BatchTranslator(
            translator, batch_size=rate.batch_size, delay_ms=rate.delay_between_batches
        )
        self.logger = logger.bind(component="translation_manager", locales_path=str(self.locales_path))
        self._languages = set(self.store.detect_languages())

    # Language registry

    def detect_languages(self) -> List[str]:
        """Re-read the language set from disk, replacing the registry."""
        self._languages = set(self.store.detect_languages())
        return self.get_supported_languages()

    def register_language(self, code: str) -> None:
        self._languages.add(code)

    def get_supported_languages(self) -> List[str]:
        return sorted(self._languages)

    def _source(self, source_lang: Optional[str]) -> str:
        return source_lang or self.settings.default_source_lang

    async def aclose(self) -> None:
        """Release backend resources such as an HTTP client."""
        close = getattr(self.translator, "aclose", None)
        if close is not None:
            await close()

    # Sync

    @log_errors(operation_name="sync_translations")
    async def sync_translations(
        self,
        source_lang: Optional[str] = None,
        force: bool = False,
        on_progress: Any = None,
    ) -> SyncReport:
        """Bring every target language in line with the source language.

        Smart mode translates keys that are missing or untranslated in a
        target plus keys changed in the source since the last smart sync.
        Force mode re-translates every key from scratch.

        Args:
            source_lang: Source language code (defaults to config)
            force: Re-translate all keys, ignoring cache and target content
            on_progress: Optional progress sink or callable

        Returns:
            Per-language results

        Raises:
            SourceLocaleError: If the source document is absent or empty
        """
        source_lang = self._source(source_lang)
        log = self.logger.bind(source_lang=source_lang, force=force)
        log.info("Starting translation sync")

        source_doc = await self.store.load(source_lang)
        if not source_doc:
            raise SourceLocaleError(
                f"Source language file {source_lang}.json is empty or doesn't exist",
                language_code=source_lang,
            )

        report = SyncReport(source_lang=source_lang, force=force, total_keys=len(get_all_keys(source_doc)))
        log.info("Source keys found", total_keys=report.total_keys)

        sink = as_sink(on_progress)
        targets = [lang for lang in self.get_supported_languages() if lang != source_lang]
        for index, target_lang in enumerate(targets):
            # Each target reports within its own slice of 0-100
            span = 100 / len(targets)
            target_sink = ScaledProgressSink(sink, start=index * span, span=span)
            report.results[target_lang] = await self._sync_language(
                source_lang, target_lang, source_doc, force, target_sink
            )

        if not force:
            report.cache_refreshed = await self.cache.save(SyncCache.snapshot(source_doc, source_lang))

        if targets:
            emit(sink, ProgressEvent(
                type="complete", stage="complete",
                message=f"Synced {len(targets)} language(s)", progress=100,
            ))

        log.info(
            "Translation sync completed",
            languages=len(report.results),
            failed=report.failed,
            cache_refreshed=report.cache_refreshed,
        )
        return report

    async def _sync_language(
        self,
        source_lang: str,
        target_lang: str,
        source_doc: LocaleDocument,
        force: bool,
        sink: Any,
    ) -> LanguageSyncResult:
        result = LanguageSyncResult(language=target_lang)
        log = self.logger.bind(source_lang=source_lang, target_lang=target_lang)

        def transition(state: SyncState) -> None:
            log.debug("Sync state changed", previous=result.state.value, state=state.value)
            result.state = state

        transition(SyncState.LOADING)
        target_doc = await self.store.load(target_lang)

        transition(SyncState.DIFFING)
        selection = await plan(source_doc, target_doc, source_lang, target_lang, cache=self.cache, force=force)
        result.modified_only = len(selection.modified_only)
        result.missing_only = len(selection.missing_only)
        result.modified_and_missing = len(selection.modified_and_missing)

        if not selection.keys:
            log.info("Language is up to date")
            transition(SyncState.DONE)
            return result

        log.info(
            "Keys selected for translation",
            total=len(selection.keys),
            modified=result.modified_only,
            missing=result.missing_only,
            new=result.modified_and_missing,
            force=force,
        )

        transition(SyncState.TRANSLATING)
        updated = await self.batch_translator.translate_keys(
            selection.keys,
            source_doc,
            {} if force else target_doc,
            source_lang,
            target_lang,
            progress=sink,
        )
        result.keys_translated = len(selection.keys)

        transition(SyncState.SAVING)
        try:
            await self.store.save(target_lang, updated)
        except LocaleStoreError as e:
            result.failed_stage = SyncState.SAVING
            result.error = e.message
            transition(SyncState.ERROR)
            log.error("Target language left unsaved", error=e.message)
            return result

        transition(SyncState.DONE)
        return result

    # Keys and languages

    @log_errors(operation_name="add_key")
    async def add_key(self, key_path: str, source_value: str, source_lang: Optional[str] = None) -> Dict[str, Any]:
        """Add a key to every language, translating it for non-source languages.

        Returns:
            Mapping of language code to the value written
        """
        _validate_key_path(key_path)
        source_lang = self._source(source_lang)
        log = self.logger.bind(key=key_path, source_lang=source_lang)
        log.info("Adding new key")

        written: Dict[str, Any] = {}
        for lang in self.get_supported_languages():
            data = await self.store.load(lang)
            if lang == source_lang:
                value = source_value
            else:
                value = await self.batch_translator.translate_value(source_value, source_lang, lang)
            set_value(data, key_path, value)

            try:
                await self.store.save(lang, data)
            except LocaleStoreError as e:
                log.error("Key not saved", language=lang, error=e.message)
                continue
            written[lang] = value

        log.info("Key added", languages=sorted(written))
        return written

    @log_errors(operation_name="add_new_language")
    async def add_new_language(
        self,
        source_lang: str,
        new_lang: str,
        on_progress: Any = None,
    ) -> AddLanguageResult:
        """Create ``<new_lang>.json`` by cloning the source and translating every key.

        Raises:
            SourceLocaleError: If the source file does not exist
            LanguageExistsError: If the new language file already exists
            LocaleSyncError: If anything fails after the file was created
        """
        if not self.store.exists(source_lang):
            raise SourceLocaleError(
                f"Source language file not found: {source_lang}.json", language_code=source_lang
            )
        if self.store.exists(new_lang):
            raise LanguageExistsError(
                f"Language file already exists: {new_lang}.json", language_code=new_lang
            )

        sink = as_sink(on_progress)
        log = self.logger.bind(source_lang=source_lang, new_lang=new_lang)

        try:
            emit(sink, ProgressEvent(
                type="progress", stage="creating-file",
                message=f"Creating {new_lang}.json file...", progress=10, language=new_lang,
            ))
            source_doc = await self.store.load(source_lang)
            await self.store.save(new_lang, source_doc)
            self.register_language(new_lang)
            log.info("Language added by cloning source")

            emit(sink, ProgressEvent(
                type="progress", stage="analyzing-keys",
                message="Analyzing translation keys...", progress=20, language=new_lang,
            ))
            all_keys = get_all_keys(source_doc)
            total_keys = len(all_keys)

            emit(sink, ProgressEvent(
                type="progress", stage="translating",
                message=f"Starting translation of {total_keys} keys...", progress=30,
                total=total_keys, language=new_lang,
            ))
            updated = await self.batch_translator.translate_keys(
                all_keys, source_doc, {}, source_lang, new_lang, progress=sink
            )

            emit(sink, ProgressEvent(
                type="progress", stage="saving",
                message="Saving translation file...", progress=95, language=new_lang,
            ))
            await self.store.save(new_lang, updated)
        except Exception as e:
            emit(sink, ProgressEvent(
                type="error", stage="error", message=f"Error: {e}", progress=0, language=new_lang,
            ))
            raise LocaleSyncError(f"Failed to add new language: {e}", previous_error=e) from e

        emit(sink, ProgressEvent(
            type="complete", stage="complete",
            message=f"Language {new_lang} added successfully! {total_keys} keys translated.",
            progress=100, translated=total_keys, total=total_keys, language=new_lang,
        ))
        log.info("Translation completed for new language", keys=total_keys)
        return AddLanguageResult(keys_translated=total_keys, total_keys=total_keys)

    @log_errors(operation_name="translate_batch")
    async def translate_batch(
        self,
        source_lang: str,
        target_lang: str,
        batch_size: int = 25,
        offset: int = 0,
    ) -> int:
        """Translate one window of source keys into the target, one key at a time.

        Keys whose target value is already present and differs from the
        source are skipped.

        Returns:
            Number of keys translated
        """
        if batch_size < 1:
            raise ValidationError("Batch size must be at least 1", field="batch_size", value=batch_size)
        if offset < 0:
            raise ValidationError("Offset must not be negative", field="offset", value=offset)

        source_doc = await self.store.load(source_lang)
        target_doc = await self.store.load(target_lang)

        batch_keys = get_all_keys(source_doc)[offset:offset + batch_size]
        if not batch_keys:
            return 0

        log = self.logger.bind(source_lang=source_lang, target_lang=target_lang)
        log.info("Translating manual batch", keys=len(batch_keys), offset=offset)

        key_delay = self.settings.rate_limiting.delay_between_keys / 1000
        translated_count = 0
        for key in batch_keys:
            source_value = get_value(source_doc, key)
            existing = get_value(target_doc, key)
            if existing and existing != source_value:
                continue

            value = await self.batch_translator.translate_value(source_value, source_lang, target_lang)
            set_value(target_doc, key, value)
            translated_count += 1
            if key_delay:
                await asyncio.sleep(key_delay)

        await self.store.save(target_lang, target_doc)
        log.info("Manual batch complete", translated=translated_count, keys=len(batch_keys))
        return translated_count

    # Status

    async def _language_status(
        self, source_doc: LocaleDocument, source_lang: str, target_lang: str, total: int
    ) -> TranslationStatus:
        if target_lang == source_lang:
            return TranslationStatus(target_lang, total, total, 0, 100.0)

        target_doc = await self.store.load(target_lang)
        missing = len(find_missing_keys(source_doc, target_doc, source_lang, target_lang))
        translated = total - missing
        return TranslationStatus(target_lang, total, translated, missing, _completeness(translated, total))

    async def get_translation_status(
        self,
        source_lang: Optional[str] = None,
        target_lang: Optional[str] = None,
    ) -> Union[TranslationStatus, Dict[str, TranslationStatus]]:
        """Completeness of one language, or of every registered language."""
        source_lang = self._source(source_lang)
        source_doc = await self.store.load(source_lang)
        total = len(get_all_keys(source_doc))

        if target_lang:
            return await self._language_status(source_doc, source_lang, target_lang, total)

        return {
            lang: await self._language_status(source_doc, source_lang, lang, total)
            for lang in self.get_supported_languages()
        }

    async def get_key_count(self, source_lang: Optional[str] = None) -> int:
        source_doc = await self.store.load(self._source(source_lang))
        return len(get_all_keys(source_doc))
