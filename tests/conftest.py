"""
Pytest configuration and fixtures for locale-sync tests.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Tuple

import pytest

from locale_sync.config.settings import RateLimiting, Settings
from locale_sync.core.manager import TranslationManager
from locale_sync.core.store import CACHE_FILENAME


class FakeTranslator:
    """Deterministic translator: prefixes text with the target language."""

    name = "fake"

    def __init__(self):
        self.calls: List[Tuple[str, str, str]] = []

    async def translate(self, text: str, target_lang: str, source_lang: str) -> str:
        self.calls.append((text, target_lang, source_lang))
        return f"[{target_lang}] {text}"

    def texts_for(self, target_lang: str) -> List[str]:
        return [text for text, lang, _ in self.calls if lang == target_lang]


class FailingTranslator:
    """Translator whose every call raises."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    async def translate(self, text: str, target_lang: str, source_lang: str) -> str:
        self.calls += 1
        raise ConnectionError("backend unavailable")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def locales_dir(temp_dir: Path) -> Path:
    """Empty locales directory inside the temp dir."""
    path = temp_dir / "locales"
    path.mkdir()
    return path


@pytest.fixture
def write_locale(locales_dir: Path):
    """Helper to write ``<lang>.json`` files."""
    def _write(lang: str, data: Dict[str, Any]) -> Path:
        path = locales_dir / f"{lang}.json"
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_locale(locales_dir: Path):
    """Helper to read ``<lang>.json`` files back."""
    def _read(lang: str) -> Dict[str, Any]:
        return json.loads((locales_dir / f"{lang}.json").read_text(encoding="utf-8"))
    return _read


@pytest.fixture
def read_cache(locales_dir: Path):
    """Helper to read the sync cache file."""
    def _read() -> Dict[str, Any]:
        return json.loads((locales_dir / CACHE_FILENAME).read_text(encoding="utf-8"))
    return _read


@pytest.fixture
def test_settings(locales_dir: Path) -> Settings:
    """Settings pointing at the temp locales directory, without throttling."""
    return Settings(
        locales_path=str(locales_dir),
        default_source_lang="en",
        rate_limiting=RateLimiting(batch_size=2, delay_between_batches=0, delay_between_keys=0),
    )


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def failing_translator() -> FailingTranslator:
    return FailingTranslator()


@pytest.fixture
def make_manager(test_settings: Settings, fake_translator: FakeTranslator):
    """Build a manager over the temp locales directory.

    The language registry is read at construction, so write locale files
    before calling.
    """
    def _make(translator: Any = None, settings: Settings = None) -> TranslationManager:
        return TranslationManager(
            settings or test_settings,
            translator=translator or fake_translator,
        )
    return _make
