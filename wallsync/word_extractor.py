"""
Keyword and OCR extraction using the OpenAI Vision API.

Sends one image with a fixed instruction and turns the free-text reply
into a clean keyword list (see word_filter).
"""

import base64
import logging

from openai import OpenAI

from wallsync.word_filter import parse_words

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

WORDS_PROMPT = """Analyze this image and provide:
1. Any text visible in the image (OCR)
2. Keywords describing what's in the image (objects, scenery, mood, style, colors)

Return ONLY a comma-separated list of single words or short phrases (2-3 words max).
Do not include sentences, explanations, or categories.
Example output: mountain, sunset, orange sky, peaceful, landscape, snow peak, clouds

Words:"""


class WordExtractionError(Exception):
    """Exception raised when the vision model call fails."""
    pass


class WordExtractor:
    """
    Descriptive word extraction with an OpenAI vision model.

    The client is created on first use, so a missing OPENAI_API_KEY only
    fails word extraction, not the whole run.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        detail: str = "high",
        max_tokens: int = 300,
        client: OpenAI | None = None
    ):
        """
        Initialize word extractor.

        Args:
            model: OpenAI model to use (gpt-4o-mini, gpt-4o, etc.)
            detail: Image detail level for API ("low", "high", "auto").
            max_tokens: Upper bound on the reply length.
            client: Preconfigured OpenAI client (uses OPENAI_API_KEY if None).
        """
        self.model = model
        self.detail = detail
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI()
        return self._client

    def extract(self, data: bytes, mime_type: str) -> list[str]:
        """
        Extract keywords and visible text from an image.

        Args:
            data: Raw image bytes.
            mime_type: MIME type of the data (image/jpeg, image/png, ...).

        Returns:
            Filtered list of lowercase keywords.

        Raises:
            WordExtractionError: If the API call fails.
        """
        data_url = f"data:{mime_type};base64," + base64.b64encode(data).decode()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.2,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": WORDS_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {"url": data_url, "detail": self.detail},
                            },
                        ],
                    },
                ],
            )
        except Exception as e:
            raise WordExtractionError(f"Failed to generate words: {e}") from e

        if not response.choices:
            return []

        raw = response.choices[0].message.content or ""
        words = parse_words(raw)
        logger.debug(f"Generated {len(words)} words")
        return words
