"""
Realtime Annotation
Runs the detector then the classifier on every candidate region of a frame
and draws the predicted digits on a copy of the frame.
"""

import cv2
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from hog_digits.segmenter import BoundingRegion, FrameSegmenter, Segmentation

ROI_COLOR = (0, 0, 255)
TEXT_COLOR = (0, 0, 0)


@dataclass(frozen=True)
class Detection:
    region: BoundingRegion
    label: int


@dataclass
class Annotation:
    display: np.ndarray
    segmentation: Segmentation
    detections: List[Detection] = field(default_factory=list)

    @property
    def binary(self) -> np.ndarray:
        return self.segmentation.binary


class RealtimeAnnotator:
    def __init__(self, classifier, detector, segmenter: Optional[FrameSegmenter] = None,
                 color_seed: int = 0):
        """
        classifier and detector only need a predict(image) method returning
        an int label; the detector reports 1 for a digit and 0 otherwise.
        """
        self.classifier = classifier
        self.detector = detector
        self.segmenter = segmenter or FrameSegmenter()
        self.color_seed = color_seed

    def detect(self, segmentation: Segmentation) -> List[Detection]:
        """Classify every candidate the detector accepts as a digit"""
        detections = []
        for candidate in segmentation.candidates:
            # Does the image contain a digit?
            if self.detector.predict(candidate.image) > 0:
                label = int(self.classifier.predict(candidate.image))
                detections.append(Detection(candidate.region, label))
        return detections

    def annotate(self, frame: np.ndarray) -> Annotation:
        segmentation = self.segmenter.segment(frame)
        detections = self.detect(segmentation)

        display = frame.copy()
        if display.ndim == 2:
            display = cv2.cvtColor(display, cv2.COLOR_GRAY2BGR)
        self.draw(display, segmentation.roi, detections)

        return Annotation(display=display, segmentation=segmentation, detections=detections)

    def draw(self, display: np.ndarray, roi: BoundingRegion, detections: List[Detection]):
        """Draw the region of interest and a labelled box per detection"""
        cv2.rectangle(display, roi.top_left, roi.bottom_right, ROI_COLOR)

        # Same colour sequence every frame so boxes do not flicker
        rng = np.random.default_rng(self.color_seed)
        for detection in detections:
            color = tuple(int(c) for c in rng.integers(0, 255, size=3))
            cv2.rectangle(display, detection.region.top_left, detection.region.bottom_right, color, 2)

            x, y = detection.region.top_left
            cv2.putText(display, str(detection.label), (x, y - 5),
                        cv2.FONT_HERSHEY_PLAIN, 1.4, TEXT_COLOR)
