"""Generative model contract and the Gemini implementation.

The generation pipeline depends only on the GenerativeModel protocol:
one async ``generate`` call taking a prompt (and optionally an inline image)
and returning raw text. Tests inject stubs; production uses GeminiModel.
"""

import asyncio
from typing import Optional, Protocol, runtime_checkable

from google import genai
from google.genai import types

from pantry_chef.models.models import InlineImage
from pantry_chef.utils.config import GenerationSettings, config
from pantry_chef.utils.logger import logger


@runtime_checkable
class GenerativeModel(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def generate(self, prompt: str, image: Optional[InlineImage] = None) -> str:
        """Return the model's raw text response.

        Raises:
            Exception: Any transport, quota or model error. Callers decide retry policy.
        """
        ...


class GeminiModel:
    """GenerativeModel backed by the google-genai SDK.

    The SDK client is synchronous, so each call runs in a worker thread via
    asyncio.to_thread to keep the event loop free for sibling variations.
    No timeout is imposed here beyond the SDK's own.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model id used for every call.
            temperature: Sampling temperature.
            max_output_tokens: Response length cap.

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: GenerationSettings, vision: bool = False) -> "GeminiModel":
        """Build a client from configuration (vision=True selects IMAGE_DETECTION_MODEL)."""
        return cls(
            api_key=config.GEMINI_API_KEY,
            model=settings.image_model if vision else settings.model,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    async def generate(self, prompt: str, image: Optional[InlineImage] = None) -> str:
        """Call Gemini once (no retries) and return the response text.

        Args:
            prompt: Full prompt text.
            image: Optional inline image sent after the prompt.

        Returns:
            Raw response text.

        Raises:
            ValueError: If Gemini returns no text (e.g. blocked by safety filters).
            Exception: Any SDK/transport error, unchanged.
        """
        contents: list = [prompt]
        if image is not None:
            contents.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))

        response = await asyncio.to_thread(
            self._client.models.generate_content,
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            ),
        )

        text = response.text
        if not text:
            logger.warning(f"Gemini model {self.model} returned an empty response")
            raise ValueError("Empty response from Gemini")
        return text
