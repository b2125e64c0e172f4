"""Settings for locale-sync."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)

DEFAULT_LOCALES_PATH = "./src/i18n/locales"
DEFAULT_SOURCE_LANG = "en"
DEFAULT_TRANSLATION_SERVICE = "google-free"
DEFAULT_BATCH_SIZE = 25
DEFAULT_BATCH_DELAY_MS = 1000
DEFAULT_KEY_DELAY_MS = 100


class ConfigSection(BaseModel):
    """Config model accepting camelCase or snake_case keys.

    Unknown keys such as ``filePattern`` are ignored with a debug log entry.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    @model_validator(mode="before")
    @classmethod
    def log_unknown_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            known = set(cls.model_fields) | {to_camel(name) for name in cls.model_fields}
            ignored = [key for key in data if key not in known]
            if ignored:
                logger.debug("Ignoring unknown config keys", section=cls.__name__, keys=ignored)
        return data


class RateLimiting(ConfigSection):
    """Throttling applied to translation backend calls."""

    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    delay_between_batches: int = Field(default=DEFAULT_BATCH_DELAY_MS, ge=0, description="Milliseconds")
    delay_between_keys: int = Field(
        default=DEFAULT_KEY_DELAY_MS, ge=0, description="Milliseconds, manual batches only"
    )


class Settings(ConfigSection):
    """Runtime configuration consumed by the translation manager."""

    locales_path: str = Field(default=DEFAULT_LOCALES_PATH, min_length=1)
    default_source_lang: str = Field(default=DEFAULT_SOURCE_LANG, min_length=1)
    translation_service: str = Field(default=DEFAULT_TRANSLATION_SERVICE, min_length=1)
    exclude_files: List[str] = Field(default_factory=list, description="File names never treated as languages")
    rate_limiting: RateLimiting = Field(default_factory=RateLimiting)

    def resolve_locales_path(self, base: Optional[Union[str, Path]] = None) -> Path:
        """Absolute locales directory, relative paths taken from ``base`` or the cwd."""
        path = Path(self.locales_path).expanduser()
        if not path.is_absolute():
            path = Path(base or Path.cwd()) / path
        return path.resolve()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
