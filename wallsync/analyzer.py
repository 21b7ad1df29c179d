"""
Image analysis for the metadata index.

Combines three steps of very different reliability:
- Dimensions (Pillow, local): the only step allowed to fail the analysis
- Dominant colors (k-means, local): degrades to an empty list
- Descriptive words (vision model, remote): degrades to an empty list
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from wallsync.color_extractor import ColorExtractor
from wallsync.naming import mime_type_for

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Exception raised when an image cannot be decoded."""
    pass


class WordSource(Protocol):
    """Anything that turns image bytes into keywords."""

    def extract(self, data: bytes, mime_type: str) -> list[str]: ...


@dataclass
class ImageAnalysis:
    """Result of analyzing one image."""
    width: int
    height: int
    file_format: str
    colors: list[str] = field(default_factory=list)
    words: list[str] = field(default_factory=list)

    @property
    def pixel_density(self) -> float:
        """Megapixels."""
        return (self.width * self.height) / 1_000_000.0


class ImageAnalyzer:
    """
    Derives dimensions, colors and words from raw image bytes.

    Attributes:
        color_extractor: Local color clustering.
        word_extractor: A WordSource such as WordExtractor,
            or None to skip word extraction.
    """

    def __init__(
        self,
        color_extractor: ColorExtractor | None = None,
        word_extractor: WordSource | None = None
    ):
        self.color_extractor = color_extractor or ColorExtractor()
        self.word_extractor = word_extractor

    def analyze(self, data: bytes, format_hint: str) -> ImageAnalysis:
        """
        Perform full analysis on an image.

        Args:
            data: Raw image bytes.
            format_hint: File format derived from the filename (jpeg, png, ...).

        Returns:
            ImageAnalysis with dimensions, colors and words.

        Raises:
            AnalysisError: If the image dimensions cannot be read.
        """
        width, height = self.get_resolution(data)
        analysis = ImageAnalysis(width=width, height=height, file_format=format_hint)

        try:
            analysis.colors = self.color_extractor.extract(data)
        except Exception as e:
            # Colors are nice to have
            logger.warning(f"Failed to extract colors: {e}")
            analysis.colors = []

        if self.word_extractor is not None:
            try:
                analysis.words = self.word_extractor.extract(data, mime_type_for(format_hint))
            except Exception as e:
                # We can still index without words
                logger.warning(f"Failed to extract words: {e}")
                analysis.words = []

        return analysis

    @staticmethod
    def get_resolution(data: bytes) -> tuple[int, int]:
        """Read image dimensions without decoding the pixel data."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                return img.size
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise AnalysisError(f"Failed to get resolution: {e}") from e
