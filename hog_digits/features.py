"""
HOG Feature Extraction
Converts grayscale digit images into fixed-length HOG feature vectors.
"""

import cv2
import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple

from hog_digits.errors import NumericsError


@dataclass(frozen=True)
class HogParams:
    """HOG window layout; every size is in pixels (width, height)."""
    win_size: Tuple[int, int] = (28, 28)
    block_size: Tuple[int, int] = (8, 8)
    block_stride: Tuple[int, int] = (4, 4)
    cell_size: Tuple[int, int] = (4, 4)
    nbins: int = 9


class HogFeatureExtractor:
    def __init__(self, params: HogParams = HogParams()):
        self.params = params
        self.hog = cv2.HOGDescriptor(
            params.win_size,
            params.block_size,
            params.block_stride,
            params.cell_size,
            params.nbins,
        )

    @property
    def descriptor_size(self) -> int:
        return int(self.hog.getDescriptorSize())

    def extract(self, image: np.ndarray) -> np.ndarray:
        """
        Compute the HOG descriptor for a single image

        The image is resized to the HOG window first, so any input size
        produces a vector of descriptor_size values.
        """
        # HOG only works on 8-bit single channel images
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        if image.dtype != np.uint8:
            # Floating point images in [0, 1] are scaled to the 8-bit range
            if np.issubdtype(image.dtype, np.floating) and image.size and image.max() <= 1.0:
                image = image * 255.0
            image = np.clip(image, 0, 255).astype(np.uint8)

        # Resize input image to match HOG window size
        hog_image = cv2.resize(image, self.params.win_size)

        try:
            descriptors = self.hog.compute(hog_image)
        except cv2.error as e:
            raise NumericsError(f"HOG computation failed: {e}") from e

        features = np.asarray(descriptors, dtype=np.float32).reshape(-1)
        if features.size != self.descriptor_size:
            raise NumericsError(
                f"HOG descriptor has {features.size} values, expected {self.descriptor_size}"
            )
        return features

    def extract_many(self, images: Sequence[np.ndarray]) -> np.ndarray:
        """Extract features for each image, one row per image in input order"""
        if len(images) == 0:
            return np.empty((0, self.descriptor_size), dtype=np.float32)
        return np.vstack([self.extract(image) for image in images])
