"""
Translation widget backend.

Forwards text to a hosted Gradio model, which expects {"data": [text]} and
answers {"data": [translation, ...]}.
"""

import logging
from typing import Optional

import httpx

from elearn.core.config import settings
from elearn.core.errors import TranslationUnavailable

logger = logging.getLogger(__name__)


class Translator:
    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.TRANSLATOR_URL
        self.timeout = timeout or settings.TRANSLATOR_TIMEOUT_SECONDS
        self.transport = transport

    async def translate(self, text: str) -> str:
        if not text or not text.strip():
            return ""

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json={"data": [text]})
        except httpx.HTTPError as e:
            logger.error(f"Translator unreachable: {e}")
            raise TranslationUnavailable(f"Translation service unreachable: {e}") from e

        if response.status_code != 200:
            logger.error(f"Translator answered {response.status_code}")
            raise TranslationUnavailable(
                f"Translation service failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TranslationUnavailable("Translation service returned invalid JSON") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if data:
            return str(data[0])
        return ""

    async def ping(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self.transport) as client:
                response = await client.get(self.url)
            return response.status_code < 500
        except httpx.HTTPError:
            return False


def get_translator() -> Translator:
    return Translator()
