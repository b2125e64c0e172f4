"""Translation backends."""

from typing import Callable, Dict

from locale_sync.core.translator import Translator
from locale_sync.errors import ConfigurationError

from .google import GoogleFreeTranslator

TRANSLATION_SERVICES: Dict[str, Callable[[], Translator]] = {
    GoogleFreeTranslator.name: GoogleFreeTranslator,
}


def create_translator(service: str) -> Translator:
    """Instantiate the backend registered under ``service``."""
    factory = TRANSLATION_SERVICES.get(service)
    if factory is None:
        raise ConfigurationError(
            f"Unknown translation service: {service}. Available: {sorted(TRANSLATION_SERVICES)}",
            config_key="translation_service",
        )
    return factory()


__all__ = ["GoogleFreeTranslator", "TRANSLATION_SERVICES", "create_translator"]
