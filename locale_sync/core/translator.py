"""Batched translation of locale keys."""

import asyncio
import copy
from typing import Any, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import structlog

from locale_sync.core.flatten import MISSING, LocaleDocument, get_value, set_value
from locale_sync.core.progress import ProgressEvent, ProgressSink, emit
from locale_sync.errors import ValidationError

logger = structlog.get_logger(__name__)

TRANSLATING_START = 30
TRANSLATING_SPAN = 60
TRANSLATION_COMPLETE = TRANSLATING_START + TRANSLATING_SPAN


@runtime_checkable
class Translator(Protocol):
    """Machine-translation backend."""

    async def translate(self, text: str, target_lang: str, source_lang: str) -> str:
        """Translate ``text``; implementations should return ``text`` on failure."""
        ...


def batches(keys: Sequence[str], size: int) -> List[List[str]]:
    """Split ``keys`` into contiguous chunks of at most ``size``."""
    return [list(keys[i:i + size]) for i in range(0, len(keys), size)]


class BatchTranslator:
    """Drives a translator over a key set in rate-limited batches."""

    def __init__(self, translator: Translator, batch_size: int = 25, delay_ms: int = 1000):
        if batch_size < 1:
            raise ValidationError("Batch size must be at least 1", field="batch_size", value=batch_size)
        if delay_ms < 0:
            raise ValidationError("Delay must not be negative", field="delay_ms", value=delay_ms)
        self.translator = translator
        self.batch_size = batch_size
        self.delay_ms = delay_ms

    async def translate_value(self, value: Any, source_lang: str, target_lang: str) -> Any:
        """Translate one leaf value.

        Only non-blank strings reach the backend; other values are returned
        as they are. A failing backend yields the original text.
        """
        if not isinstance(value, str) or not value.strip():
            return value

        try:
            return await self.translator.translate(value, target_lang, source_lang)
        except Exception as e:
            logger.warning(
                "Translation failed, keeping source text",
                target_lang=target_lang,
                text=value,
                error=str(e),
            )
            return value

    async def _translate_key(
        self, key: str, source_doc: LocaleDocument, source_lang: str, target_lang: str
    ) -> Tuple[str, Any]:
        source_value = get_value(source_doc, key)
        if source_value is MISSING:
            return key, MISSING
        return key, await self.translate_value(source_value, source_lang, target_lang)

    async def translate_keys(
        self,
        keys: Sequence[str],
        source_doc: LocaleDocument,
        target_doc: LocaleDocument,
        source_lang: str,
        target_lang: str,
        progress: Optional[ProgressSink] = None,
    ) -> LocaleDocument:
        """Translate ``keys`` from the source document into a copy of the target.

        Calls within a batch run concurrently; batches run one after another
        with ``delay_ms`` between them.

        Args:
            keys: Dot-paths to translate, in processing order
            source_doc: Source-language document
            target_doc: Target document; left untouched
            source_lang: Source language code
            target_lang: Target language code
            progress: Optional sink receiving an event after each batch

        Returns:
            Updated copy of ``target_doc``
        """
        result = copy.deepcopy(target_doc)
        total = len(keys)
        chunks = batches(keys, self.batch_size)
        log = logger.bind(source_lang=source_lang, target_lang=target_lang)
        log.info("Translating keys", keys=total, batches=len(chunks))

        done = 0
        for number, chunk in enumerate(chunks, start=1):
            translated = await asyncio.gather(
                *(self._translate_key(key, source_doc, source_lang, target_lang) for key in chunk)
            )

            for key, value in translated:
                if value is MISSING:
                    log.warning("Key not present in source, skipped", key=key)
                    continue
                set_value(result, key, value)
                log.debug("Translated key", key=key, value=value)

            done += len(chunk)
            emit(progress, ProgressEvent(
                type="progress",
                stage="translating",
                message=f"Translated batch {number}/{len(chunks)} ({len(chunk)} keys)",
                progress=round(TRANSLATING_START + (done / total) * TRANSLATING_SPAN),
                translated=done,
                total=total,
                language=target_lang,
            ))

            if number < len(chunks) and self.delay_ms:
                await asyncio.sleep(self.delay_ms / 1000)

        emit(progress, ProgressEvent(
            type="progress",
            stage="translation-complete",
            message=f"Translation completed! {total} keys processed.",
            progress=TRANSLATION_COMPLETE,
            translated=total,
            total=total,
            language=target_lang,
        ))
        log.info("Translation batch run finished", keys=total)
        return result
