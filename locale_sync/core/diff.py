"""Selection of the keys a target language needs translated."""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from locale_sync.core.cache import SyncCacheStore
from locale_sync.core.flatten import MISSING, LocaleDocument, get_all_keys, get_value


@dataclass
class KeyClassification:
    """Keys selected for one target, split by why they were selected."""
    keys: List[str] = field(default_factory=list)
    missing_only: List[str] = field(default_factory=list)
    modified_only: List[str] = field(default_factory=list)
    modified_and_missing: List[str] = field(default_factory=list)
    force: bool = False

    def __len__(self) -> int:
        return len(self.keys)


def _is_empty(value: Any) -> bool:
    return value is MISSING or value is None or (isinstance(value, str) and value == "")


def _untranslated_copy(target_value: Any, source_value: Any) -> bool:
    # Only strings are translated; any other value is carried over as is
    return isinstance(target_value, str) and isinstance(source_value, str) and target_value == source_value


def needs_translation(
    key: str,
    source_doc: LocaleDocument,
    target_doc: LocaleDocument,
    source_lang: str,
    target_lang: str,
) -> bool:
    """Check whether one key is missing or untranslated in the target.

    A target string identical to the source string counts as an
    untranslated placeholder unless both languages are the same.
    """
    target_value = get_value(target_doc, key)
    if _is_empty(target_value):
        return True

    if target_lang != source_lang and _untranslated_copy(target_value, get_value(source_doc, key)):
        return True

    return False


def find_missing_keys(
    source_doc: LocaleDocument,
    target_doc: LocaleDocument,
    source_lang: str,
    target_lang: str,
) -> List[str]:
    """Source keys that are missing, empty or untranslated in the target."""
    return [
        key for key in get_all_keys(source_doc)
        if needs_translation(key, source_doc, target_doc, source_lang, target_lang)
    ]


def classify_keys(missing: List[str], modified: List[str]) -> KeyClassification:
    """Merge missing and modified keys, missing first, without duplicates."""
    missing_set = set(missing)
    modified_set = set(modified)

    keys = list(dict.fromkeys(missing))
    keys.extend(k for k in dict.fromkeys(modified) if k not in missing_set)

    return KeyClassification(
        keys=keys,
        missing_only=[k for k in missing if k not in modified_set],
        modified_only=[k for k in modified if k not in missing_set],
        modified_and_missing=[k for k in modified if k in missing_set],
    )


async def plan(
    source_doc: LocaleDocument,
    target_doc: LocaleDocument,
    source_lang: str,
    target_lang: str,
    cache: Optional[SyncCacheStore] = None,
    force: bool = False,
) -> KeyClassification:
    """Work out which keys of ``target_lang`` must be (re)translated.

    Args:
        source_doc: Current source-language document
        target_doc: Current target-language document
        source_lang: Source language code
        target_lang: Target language code
        cache: Sync cache consulted for keys modified in the source
        force: Select every source key regardless of cache and target

    Returns:
        Classification whose ``keys`` are ordered missing first, then
        modified-only, each in source order
    """
    if target_lang == source_lang:
        return KeyClassification(force=force)

    if force:
        return KeyClassification(keys=get_all_keys(source_doc), force=True)

    missing = find_missing_keys(source_doc, target_doc, source_lang, target_lang)
    modified: List[str] = []
    if cache is not None:
        modified = await cache.compute_modified_keys(source_doc, source_lang)

    return classify_keys(missing, modified)


async def keys_needing_translation(
    source_doc: LocaleDocument,
    target_doc: LocaleDocument,
    source_lang: str,
    target_lang: str,
    cache: Optional[SyncCacheStore] = None,
    force: bool = False,
) -> List[str]:
    classification = await plan(source_doc, target_doc, source_lang, target_lang, cache, force)
    return classification.keys
