#!/usr/bin/env python3
"""
Realtime Digit Classifier
Classifies handwritten digits viewed from a camera in real time and displays
the predicted value on the image. Assumes the digits are written in a dark
colour on a light (preferably white) background.
"""

import argparse
import os
import sys

import cv2

from hog_digits.annotator import RealtimeAnnotator
from hog_digits.errors import DeviceUnavailableError, NumericsError, ResourceMissingError
from hog_digits.hog_svm import HogSvm
from hog_digits.segmenter import FrameSegmenter, SegmenterConfig

CLASSIFIER_FILENAME = "mnistSvm.xml"
DETECTOR_FILENAME = "svmDigitDetector.xml"

WIN_DISPLAY = "Display"
WIN_TEST = "Test"


def load_model(filename: str, description: str) -> HogSvm:
    """Load a trained HogSvm, raising ResourceMissingError on failure"""
    model = HogSvm()
    if not os.path.isfile(filename):
        raise ResourceMissingError(f"{description} model file not found: {filename}")
    if not model.load(filename):
        raise ResourceMissingError(f"Failed to load {description} model file: {filename}")
    return model


class RealtimeDigitCamera:
    def __init__(self, annotator: RealtimeAnnotator, device=0, wait_ms: int = 50):
        self.annotator = annotator
        self.device = device
        self.wait_ms = wait_ms
        self.cap = None
        self.frame_count = 0

    def open(self):
        """Open the capture device and create the display windows"""
        self.cap = cv2.VideoCapture(self.device)
        if not self.cap.isOpened():
            raise DeviceUnavailableError(f"Could not open video capture device {self.device}")

        # Get resolution of device
        width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        print(f"Frame resolution: Width = {width} Height = {height}")

        cv2.namedWindow(WIN_DISPLAY, cv2.WINDOW_AUTOSIZE)
        cv2.moveWindow(WIN_DISPLAY, 0, 0)
        cv2.namedWindow(WIN_TEST, cv2.WINDOW_AUTOSIZE)
        cv2.moveWindow(WIN_TEST, width, 0)

    def close(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        cv2.destroyAllWindows()

    def process_frame(self, frame):
        annotation = self.annotator.annotate(frame)
        cv2.imshow(WIN_DISPLAY, annotation.display)
        cv2.imshow(WIN_TEST, annotation.binary)
        return annotation

    def loop(self):
        """Process frames until 'q' is pressed or the device stops delivering frames"""
        while True:
            ret, frame = self.cap.read()
            if not ret or frame is None or frame.size == 0:
                print("Failed to capture frame")
                break

            self.frame_count += 1
            self.process_frame(frame)

            # Wait for key press or timeout
            key = cv2.waitKey(self.wait_ms) & 0xFF
            if key in (ord('q'), ord('Q')):
                print("Exiting")
                break

    def run(self) -> int:
        try:
            self.open()
        except DeviceUnavailableError as e:
            print(e)
            self.close()
            return 1

        try:
            self.loop()
        except NumericsError as e:
            print(f"OpenCV Exception: {e}")
            return 1
        finally:
            self.close()

        return 0


def roi_fraction(value: str) -> float:
    """argparse type for the region of interest fraction, which must be in (0, 1]"""
    try:
        fraction = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid float value: {value!r}")
    if not 0.0 < fraction <= 1.0:
        raise argparse.ArgumentTypeError(f"must be greater than 0 and at most 1, got {value}")
    return fraction


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Classify handwritten digits from a camera in real time')
    parser.add_argument('--classifier', default=CLASSIFIER_FILENAME,
                        help='Digit classifier model file')
    parser.add_argument('--detector', default=DETECTOR_FILENAME,
                        help='Digit detector model file')
    parser.add_argument('--device', type=int, default=0,
                        help='Video capture device index')
    parser.add_argument('--roi', type=roi_fraction, default=SegmenterConfig.roi_size,
                        help='Fraction of the frame searched for digits')
    parser.add_argument('--threshold', type=int, default=SegmenterConfig.threshold,
                        help='Binary threshold separating ink from paper')
    parser.add_argument('--wait-ms', type=int, default=50,
                        help='Key poll timeout between frames')
    args = parser.parse_args(argv)

    try:
        classifier = load_model(args.classifier, "classifier")
        detector = load_model(args.detector, "detector")
    except ResourceMissingError as e:
        print(e)
        return 1

    segmenter = FrameSegmenter(SegmenterConfig(roi_size=args.roi, threshold=args.threshold))
    annotator = RealtimeAnnotator(classifier, detector, segmenter)

    camera = RealtimeDigitCamera(annotator, device=args.device, wait_ms=args.wait_ms)
    return camera.run()


if __name__ == "__main__":
    sys.exit(main())
