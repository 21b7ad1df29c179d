"""
Dominant color extraction.

Clusters the pixels of a down-sampled copy of the image with k-means and
reports cluster centers as hex strings, largest cluster first.
"""

import io
import logging

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans

logger = logging.getLogger(__name__)

DEFAULT_COLOR_COUNT = 3
SAMPLE_SIZE = 200  # longest side, in pixels, used for clustering


class ColorExtractionError(Exception):
    """Exception raised when colors cannot be extracted."""
    pass


class ColorExtractor:
    """Extracts the most prominent colors of an image."""

    def __init__(self, color_count: int = DEFAULT_COLOR_COUNT, sample_size: int = SAMPLE_SIZE):
        self.color_count = color_count
        self.sample_size = sample_size

    def extract(self, data: bytes) -> list[str]:
        """
        Extract dominant colors from raw image bytes.

        Args:
            data: Encoded image (any format Pillow reads).

        Returns:
            Up to color_count "#rrggbb" strings ordered by prominence.

        Raises:
            ColorExtractionError: If the image cannot be decoded or clustered.
        """
        try:
            pixels = self._load_pixels(data)
            return self._cluster(pixels)
        except ColorExtractionError:
            raise
        except Exception as e:
            raise ColorExtractionError(f"Failed to extract colors: {e}") from e

    def _load_pixels(self, data: bytes) -> np.ndarray:
        with Image.open(io.BytesIO(data)) as img:
            img = img.convert("RGB")
            # Resize for clustering speed
            img.thumbnail((self.sample_size, self.sample_size))
            pixels = np.asarray(img, dtype=np.float64).reshape(-1, 3)

        if len(pixels) == 0:
            raise ColorExtractionError("Image has no pixels")
        return pixels

    def _cluster(self, pixels: np.ndarray) -> list[str]:
        # KMeans needs at least as many distinct points as clusters
        distinct = len(np.unique(pixels, axis=0))
        n_clusters = min(self.color_count, distinct)

        km = KMeans(n_clusters=n_clusters, n_init=3, max_iter=100, random_state=42)
        km.fit(pixels)

        # Sort by cluster size (largest first)
        _, counts = np.unique(km.labels_, return_counts=True)
        order = np.argsort(-counts, kind="stable")

        colors = []
        for cluster_idx in order:
            r, g, b = (int(round(v)) for v in np.clip(km.cluster_centers_[cluster_idx], 0, 255))
            colors.append(f"#{r:02x}{g:02x}{b:02x}")

        logger.debug(f"Extracted colors: {', '.join(colors)}")
        return colors
