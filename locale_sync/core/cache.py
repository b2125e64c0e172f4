"""Sync cache: snapshot of the source language at the last smart sync.

The cache lets a later run tell which source keys were added or edited
since then, without comparing against every target file.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles
import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from locale_sync.core.flatten import FlatKeyMap, LocaleDocument, coerce_leaf, flatten, get_all_keys
from locale_sync.core.store import CACHE_FILENAME

logger = structlog.get_logger(__name__)


class SyncCacheFile(BaseModel):
    """On-disk layout of the cache file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    last_sync: str = ""
    source_lang: str
    source_data: Dict[str, str]

    @field_validator("last_sync", mode="before")
    @classmethod
    def stringify_timestamp(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("source_data", mode="before")
    @classmethod
    def stringify_values(cls, value: Any) -> Any:
        # Older snapshots may hold raw JSON leaves
        if isinstance(value, dict):
            return {str(k): coerce_leaf(v) for k, v in value.items()}
        return value


@dataclass
class SyncCache:
    """Flattened source snapshot plus the language and time it was taken."""
    last_sync: str
    source_lang: str
    source_data: FlatKeyMap = field(default_factory=dict)

    @classmethod
    def snapshot(cls, source_doc: LocaleDocument, source_lang: str) -> "SyncCache":
        return cls(
            last_sync=datetime.now(timezone.utc).isoformat(),
            source_lang=source_lang,
            source_data=flatten(source_doc),
        )

    def to_dict(self) -> Dict[str, Any]:
        return SyncCacheFile(
            last_sync=self.last_sync,
            source_lang=self.source_lang,
            source_data=self.source_data,
        ).model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncCache":
        """Build a cache from its on-disk form.

        Raises:
            ValueError: If required fields are missing or mistyped
        """
        try:
            model = SyncCacheFile.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValueError(f"invalid sync cache: {e}") from e

        return cls(
            last_sync=model.last_sync,
            source_lang=model.source_lang,
            source_data=model.source_data,
        )

    def diff(self, source_doc: LocaleDocument) -> List[str]:
        """Keys of ``source_doc`` that are new or changed since this snapshot."""
        current = flatten(source_doc)
        return [
            key for key, value in current.items()
            if key not in self.source_data or self.source_data[key] != value
        ]


class SyncCacheStore:
    """Persists the sync cache inside a locales directory."""

    def __init__(self, locales_path: Union[str, Path], filename: str = CACHE_FILENAME):
        self.path = Path(locales_path) / filename
        self.logger = logger.bind(component="sync_cache", path=str(self.path))

    async def load(self) -> Optional[SyncCache]:
        """Load the cache; any failure is treated as "no cache"."""
        if not self.path.exists():
            return None

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
            return SyncCache.from_dict(json.loads(content))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            self.logger.warning("Failed to load sync cache", error=str(e))
            return None

    async def save(self, cache: SyncCache) -> bool:
        """Overwrite the cache file. Returns False if it could not be written."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(cache.to_dict(), ensure_ascii=False, indent=2))
        except OSError as e:
            self.logger.warning("Failed to save sync cache", error=str(e))
            return False

        self.logger.info("Sync state saved", source_lang=cache.source_lang, keys=len(cache.source_data))
        return True

    async def compute_modified_keys(self, source_doc: LocaleDocument, source_lang: str) -> List[str]:
        """Return source keys that changed since the last recorded sync.

        Without a usable cache for ``source_lang`` every key counts as
        modified. Values are compared as strings, so ``1`` and ``"1"`` are
        the same value.
        """
        cache = await self.load()
        if cache is None or cache.source_lang != source_lang:
            return get_all_keys(source_doc)
        return cache.diff(source_doc)
