"""
Frame Segmentation
Finds candidate digit regions in a camera frame. Assumes the digits are
written in a dark colour on a light (preferably white) background.
"""

import cv2
import numpy as np
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class BoundingRegion:
    x: int
    y: int
    width: int
    height: int

    @property
    def top_left(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return (self.x + self.width, self.y + self.height)


@dataclass
class Candidate:
    region: BoundingRegion
    image: np.ndarray


@dataclass
class Segmentation:
    binary: np.ndarray
    roi: BoundingRegion
    candidates: List[Candidate] = field(default_factory=list)


@dataclass(frozen=True)
class SegmenterConfig:
    blur_size: Tuple[int, int] = (5, 5)
    threshold: int = 110
    # Fraction of the frame width and height kept around the centre
    roi_size: float = 0.75
    close_kernel: Tuple[int, int] = (3, 3)
    # MNIST digits are padded with 4 pixels on each side of a 20 pixel image (4/20 = 0.2)
    padding: float = 0.2


class FrameSegmenter:
    def __init__(self, config: SegmenterConfig = SegmenterConfig()):
        self.config = config
        self.close_kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, config.close_kernel)

    def preprocess_frame(self, frame: np.ndarray) -> np.ndarray:
        """Convert to grayscale, smooth, and binary threshold the frame"""
        if frame.ndim == 3:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        else:
            gray = frame.copy()

        blurred = cv2.blur(gray, self.config.blur_size)
        _, binary = cv2.threshold(blurred, self.config.threshold, 255, cv2.THRESH_BINARY_INV)
        return binary

    def region_of_interest(self, frame_shape) -> BoundingRegion:
        """Centred rectangle covering roi_size of the frame; everything outside is ignored"""
        rows, cols = frame_shape[:2]
        # The region never extends past the frame
        size = min(max(self.config.roi_size, 0.0), 1.0)
        return BoundingRegion(
            x=int(cols * (1 - size) / 2.0),
            y=int(rows * (1 - size) / 2.0),
            width=int(cols * size),
            height=int(rows * size),
        )

    def clear_edges(self, binary: np.ndarray, roi: BoundingRegion):
        """Flood fill from the ROI corners to remove noise reaching in from the frame edges"""
        rows, cols = binary.shape[:2]
        left = min(max(roi.x, 0), cols - 1)
        top = min(max(roi.y, 0), rows - 1)
        right = min(max(roi.x + roi.width, 0), cols - 1)
        bottom = min(max(roi.y + roi.height, 0), rows - 1)

        for seed in ((left, top), (left, bottom), (right, bottom), (right, top)):
            cv2.floodFill(binary, None, seed, 0)

    def pad_candidate(self, image: np.ndarray) -> np.ndarray:
        """Add a black border so the digit sits in the image like an MNIST digit"""
        height, width = image.shape[:2]
        hpad = int(height * self.config.padding)
        wpad = int(width * self.config.padding)
        return cv2.copyMakeBorder(image, hpad, hpad, wpad, wpad, cv2.BORDER_CONSTANT, value=0)

    def segment(self, frame: np.ndarray) -> Segmentation:
        """
        Find the candidate digit images in a frame

        Returns:
            Segmentation with the processed binary frame, the region of
            interest and one padded candidate per external contour
        """
        binary = self.preprocess_frame(frame)
        roi = self.region_of_interest(binary.shape)

        self.clear_edges(binary, roi)

        # Close any holes so broken strokes form one contour
        binary = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, self.close_kernel)

        # Find the contours in the roi
        roi_image = binary[roi.y:roi.y + roi.height, roi.x:roi.x + roi.width].copy()
        contours, _ = cv2.findContours(roi_image, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        segmentation = Segmentation(binary=binary, roi=roi)
        for contour in contours:
            x, y, w, h = cv2.boundingRect(contour)
            region = BoundingRegion(x + roi.x, y + roi.y, w, h)

            # Get the image contained in the bounding rectangle
            image = binary[region.y:region.y + h, region.x:region.x + w].copy()
            segmentation.candidates.append(Candidate(region, self.pad_candidate(image)))

        return segmentation
