"""Google Translate backend using the free ``translate_a/single`` endpoint."""

from typing import Any, Optional

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from locale_sync.errors import TranslationError, with_fallback

logger = structlog.get_logger(__name__)

GOOGLE_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"
DEFAULT_TIMEOUT = 10.0


def _untranslated(_translator: Any, text: str, *args: Any, **kwargs: Any) -> str:
    return text


def parse_response(data: Any) -> str:
    """Extract the translated text from a ``translate_a/single`` payload.

    The first element is a list of ``[translated, original, ...]`` segments,
    one per sentence.

    Raises:
        TranslationError: If the payload has no translated segment
    """
    try:
        segments = data[0]
        parts = [segment[0] for segment in segments if segment and isinstance(segment[0], str)]
    except (TypeError, IndexError, KeyError) as e:
        raise TranslationError("Invalid translation response", service=GoogleFreeTranslator.name) from e

    if not parts:
        raise TranslationError("Invalid translation response", service=GoogleFreeTranslator.name)
    return "".join(parts)


class GoogleFreeTranslator:
    """Translator backed by Google's keyless web endpoint."""

    name = "google-free"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        url: str = GOOGLE_TRANSLATE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.url = url
        self.transport = transport
        # A client passed in belongs to the caller and is never closed here
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this translator created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            logger.debug("HTTP client closed", service=self.name)
        self._client = None

    async def __aenter__(self) -> "GoogleFreeTranslator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @with_fallback(_untranslated)
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True
    )
    async def translate(self, text: str, target_lang: str, source_lang: str = "en") -> str:
        """Translate ``text``; on any failure the original text is returned."""
        params = {
            "client": "gtx",
            "sl": source_lang,
            "tl": target_lang,
            "dt": "t",
            "q": text,
        }

        response = await self._get_client().get(self.url, params=params)

        try:
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise TranslationError(
                f"Translation request failed: {e}",
                service=self.name,
                target_lang=target_lang,
            ) from e

        return parse_response(data)
