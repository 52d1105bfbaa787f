"""Client for the generative text model (Gemini)."""
import asyncio
import logging
from typing import Optional, Protocol

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from routeweaver.config import Settings
from routeweaver.errors import ErrorKind, Result

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    async def generate(self, prompt: str) -> Result[str]:
        ...


class GeminiTextGenerator:
    """Wraps ``genai.GenerativeModel`` and reports failures as ``Result``."""

    def __init__(self, api_key: Optional[str], model_name: str, timeout: float = 10.0) -> None:
        self.model_name = model_name
        self.timeout = timeout
        self._model = None
        if api_key:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(model_name)
        else:
            logger.warning("Gemini API key not configured, text generation disabled")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiTextGenerator":
        return cls(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            timeout=settings.http_timeout_seconds,
        )

    async def generate(self, prompt: str) -> Result[str]:
        """
        Send a single-turn prompt.

        Returns:
            Result with the response text, or the kind of failure.
        """
        if self._model is None:
            return Result.failure(ErrorKind.NOT_CONFIGURED, "Gemini API key not configured")

        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Gemini request timed out after {self.timeout}s")
            return Result.failure(ErrorKind.TIMEOUT, "Text generation timed out")
        except google_exceptions.GoogleAPIError as exc:
            logger.warning(f"Gemini API error: {exc}")
            return Result.failure(ErrorKind.UPSTREAM_STATUS, str(exc))
        except Exception as exc:
            logger.error(f"Unexpected Gemini failure: {exc}")
            return Result.failure(ErrorKind.UNEXPECTED, str(exc))

        try:
            text = response.text
        except ValueError as exc:
            # Raised when the candidate was blocked or has no text parts
            logger.warning(f"Gemini returned no text: {exc}")
            return Result.failure(ErrorKind.EMPTY, str(exc))

        if not text or not text.strip():
            return Result.failure(ErrorKind.EMPTY, "Empty response from text model")
        return Result.success(text)
