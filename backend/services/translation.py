"""
Translation adapters over hosted REST APIs.

Both providers share one contract: ``translate`` returns the translated
string or raises a TranslationError subclass that says what went wrong
(bad input, transport failure, or an error answer from the provider).
"""
import re
from typing import Optional

import httpx

from utils.logger import get_logger

logger = get_logger("services.translation")

AUTO_DETECT = "auto"
_LANGUAGE_CODE = re.compile(r"^[a-z]{2}$")


class TranslationError(Exception):
    """Base class for translation failures"""
    pass


class TranslationValidationError(TranslationError):
    """Input rejected before any request was made."""
    pass


class TranslationTransportError(TranslationError):
    """The provider could not be reached."""
    pass


class TranslationRemoteError(TranslationError):
    """The provider answered with an error or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def validate_language_code(code: Optional[str], allow_auto: bool = False) -> str:
    if allow_auto and code == AUTO_DETECT:
        return code
    if not code or not _LANGUAGE_CODE.match(code):
        raise TranslationValidationError(f"Invalid language code: {code!r}")
    return code


class Translator:
    """Shared request/validation plumbing; subclasses build the provider call."""

    provider = "base"

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    def build_request(self, text: str, source: str, target: str) -> dict:
        raise NotImplementedError

    def parse_response(self, body: dict) -> str:
        raise NotImplementedError

    async def translate(self, text: str, source: str, target: str) -> str:
        validate_language_code(source, allow_auto=True)
        validate_language_code(target)
        if not text or not text.strip():
            raise TranslationValidationError("Nothing to translate")

        request = self.build_request(text, source, target)
        logger.info("Translation requested", extra={
            "provider": self.provider,
            "source": source,
            "target": target,
            "text_length": len(text),
        })

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(**request)
            except httpx.HTTPError as e:
                logger.error("Translation transport error", extra={"provider": self.provider, "error": str(e)})
                raise TranslationTransportError(f"{self.provider} unreachable: {e}") from e

        if resp.status_code >= 400:
            logger.error("Translation provider error", extra={
                "provider": self.provider,
                "status_code": resp.status_code,
                "body": resp.text[:200],
            })
            raise TranslationRemoteError(
                f"{self.provider} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            translated = self.parse_response(resp.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected translation response", extra={"provider": self.provider, "error": str(e)})
            raise TranslationRemoteError(f"{self.provider} returned an unexpected body", status_code=resp.status_code) from e

        if not isinstance(translated, str):
            raise TranslationRemoteError(f"{self.provider} returned no translated text", status_code=resp.status_code)

        logger.info("Translation completed", extra={"provider": self.provider, "translated_length": len(translated)})
        return translated


class DeepTranslateTranslator(Translator):
    """RapidAPI Deep Translate."""

    provider = "deep_translate"

    def __init__(self, api_key: Optional[str], api_host: str, url: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.api_host = api_host
        self.url = url

    def build_request(self, text: str, source: str, target: str) -> dict:
        return {
            "url": self.url,
            "headers": {
                "x-rapidapi-key": self.api_key or "",
                "x-rapidapi-host": self.api_host,
                "Content-Type": "application/json",
            },
            "json": {"q": text, "source": source, "target": target},
        }

    def parse_response(self, body: dict) -> str:
        return body["data"]["translations"]["translatedText"]


class GoogleTranslator(Translator):
    """Google Cloud Translation v2 REST."""

    provider = "google"

    def __init__(self, api_key: Optional[str], url: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = url

    def build_request(self, text: str, source: str, target: str) -> dict:
        payload = {"q": text, "target": target, "format": "text"}
        # Google detects the source language when it is omitted
        if source != AUTO_DETECT:
            payload["source"] = source
        return {
            "url": self.url,
            "params": {"key": self.api_key or ""},
            "json": payload,
        }

    def parse_response(self, body: dict) -> str:
        return body["data"]["translations"][0]["translatedText"]


def build_translator(settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> Translator:
    provider = (settings.TRANSLATION_PROVIDER or "").lower()
    if provider == "google":
        return GoogleTranslator(
            api_key=settings.GOOGLE_TRANSLATE_API_KEY,
            url=settings.GOOGLE_TRANSLATE_URL,
            timeout=settings.TRANSLATION_TIMEOUT_SECONDS,
            transport=transport,
        )
    if provider == "deep_translate":
        return DeepTranslateTranslator(
            api_key=settings.RAPID_API_KEY,
            api_host=settings.RAPID_API_HOST,
            url=settings.DEEP_TRANSLATE_URL,
            timeout=settings.TRANSLATION_TIMEOUT_SECONDS,
            transport=transport,
        )
    raise ValueError(f"Unknown translation provider: {settings.TRANSLATION_PROVIDER}")
