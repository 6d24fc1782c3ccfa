#!/usr/bin/env python3
"""
SVM Training Workflow
Trains the HOG digit classifier on MNIST, then trains the digit / non-digit
detector on MNIST digits plus non-digit example images, and saves both models.
"""

import argparse
import os
import sys
import time
from dataclasses import dataclass
from typing import Dict, Optional

import cv2

from hog_digits.errors import NumericsError, ResourceMissingError
from hog_digits.hog_svm import HogSvm, digit_classifier, digit_detector
from hog_digits.training import datasets
from hog_digits.training.reporting import plot_label_distribution, sample_strip


@dataclass
class TrainingPaths:
    data_dir: str = os.path.join(".", "data", "MNIST")
    not_digits_dir: str = os.path.join(".", "data", "NotDigits")
    output_dir: str = "."
    train_images: str = "train-images.idx3-ubyte"
    train_labels: str = "train-labels.idx1-ubyte"
    test_images: str = "t10k-images.idx3-ubyte"
    test_labels: str = "t10k-labels.idx1-ubyte"
    classifier_model: str = "mnistSvm.xml"
    detector_model: str = "svmDigitDetector.xml"

    def mnist(self, name: str) -> str:
        return os.path.join(self.data_dir, name)

    def not_digits(self, split: str) -> str:
        return os.path.join(self.not_digits_dir, split)

    def model(self, name: str) -> str:
        return os.path.join(self.output_dir, name)


class TrainingWorkflow:
    def __init__(self, paths: Optional[TrainingPaths] = None, train_negatives: int = 30000,
                 test_negatives: int = 10000, auto_tune: bool = False):
        self.paths = paths or TrainingPaths()
        self.train_negatives = train_negatives
        self.test_negatives = test_negatives
        self.auto_tune = auto_tune

        self.train_images = []
        self.train_labels = None
        self.test_images = []
        self.test_labels = None

        # Percent error per trained model
        self.results: Dict[str, float] = {}

    def load_mnist_data(self) -> bool:
        """Load the MNIST training and test images/labels"""
        splits = [
            ("training", self.paths.train_images, self.paths.train_labels),
            ("test", self.paths.test_images, self.paths.test_labels),
        ]
        loaded = []
        for description, image_file, label_file in splits:
            try:
                loaded.append(datasets.load_mnist_split(
                    self.paths.mnist(image_file), self.paths.mnist(label_file)))
            except ResourceMissingError as e:
                print(e)
                print(f"✗ Failed to load {description} data")
                return False

        (self.train_images, self.train_labels), (self.test_images, self.test_labels) = loaded
        print(f"✓ Loaded {len(self.train_images)} training and {len(self.test_images)} test digits")
        return True

    def report(self, plot_file: Optional[str] = None, show_samples: int = 0):
        """Show sample training images and/or plot the training label distribution"""
        if show_samples > 0 and self.train_images:
            cv2.namedWindow("Sample Images", cv2.WINDOW_AUTOSIZE)
            cv2.imshow("Sample Images", sample_strip(self.train_images, show_samples))
            cv2.waitKey(1)

        if plot_file:
            counts = plot_label_distribution(self.train_labels, plot_file)
            print(f"Distribution plot saved to: {plot_file} ({len(counts)} classes)")

    def _train_and_test(self, name: str, model: HogSvm, train_images, train_labels,
                        test_images, test_labels, model_file: str, auto: bool = False) -> bool:
        print(f"Training {name} SVM (this will take several minutes)...")
        start = time.time()
        if auto:
            trained = model.train_auto(train_images, train_labels)
        else:
            trained = model.train(train_images, train_labels)
        if not trained:
            print(f"✗ {name.capitalize()} SVM training failed")
            return False
        print(f"{name.capitalize()} SVM training complete ({time.time() - start:.1f} seconds)")

        print(f"Testing {name} SVM...")
        try:
            percent_error = model.test(test_images, test_labels)
        except ValueError as e:
            print(f"✗ {name.capitalize()} SVM testing failed: {e}")
            return False
        self.results[name] = percent_error
        print(f"{name.capitalize()} SVM testing completed. Percent error: {percent_error}%")

        if not model.save(model_file):
            print(f"✗ Failed to save {name} model: {model_file}")
            return False
        print(f"✓ {name.capitalize()} model saved to: {model_file}")
        return True

    def train_classifier(self) -> bool:
        """Train a classifier for handwritten digits"""
        return self._train_and_test(
            "classification", digit_classifier(),
            self.train_images, self.train_labels,
            self.test_images, self.test_labels,
            self.paths.model(self.paths.classifier_model),
            auto=self.auto_tune,
        )

    def train_detector(self) -> bool:
        """Train a detector to determine if an image has a digit or not"""
        try:
            train_non_digits = datasets.load_non_digit_images(
                self.paths.not_digits("train"), self.train_negatives)
            test_non_digits = datasets.load_non_digit_images(
                self.paths.not_digits("test"), self.test_negatives)
        except ResourceMissingError as e:
            print(e)
            print("✗ Failed to load non-digit images")
            return False

        train_images, train_labels, test_images, test_labels = datasets.create_detector_data(
            self.train_images, self.train_labels, self.test_images, self.test_labels,
            train_non_digits, test_non_digits,
        )
        return self._train_and_test(
            "detector", digit_detector(),
            train_images, train_labels, test_images, test_labels,
            self.paths.model(self.paths.detector_model),
        )

    def run(self, skip_classifier: bool = False, skip_detector: bool = False,
            plot_file: Optional[str] = None, show_samples: int = 0) -> bool:
        print("\n" + "=" * 60)
        print("STARTING SVM TRAINING")
        print("=" * 60)
        workflow_start = time.time()

        if not self.load_mnist_data():
            return False
        self.report(plot_file, show_samples)

        try:
            if not skip_classifier:
                print("\n[STEP 1] Digit Classifier")
                print("-" * 30)
                if not self.train_classifier():
                    return False
            else:
                print("\n[STEP 1] Digit Classifier - SKIPPED")

            if not skip_detector:
                print("\n[STEP 2] Digit Detector")
                print("-" * 30)
                if not self.train_detector():
                    return False
            else:
                print("\n[STEP 2] Digit Detector - SKIPPED")
        except NumericsError as e:
            print(f"OpenCV Exception: {e}")
            return False

        print("\n" + "=" * 60)
        print("TRAINING COMPLETE!")
        print(f"Total duration: {time.time() - workflow_start:.1f} seconds")
        print("=" * 60)
        return True


def main(argv=None) -> int:
    defaults = TrainingPaths()
    parser = argparse.ArgumentParser(description='Train the HOG SVM digit classifier and digit detector')
    parser.add_argument('--data-dir', default=defaults.data_dir,
                        help='Directory holding the MNIST idx files')
    parser.add_argument('--not-digits-dir', default=defaults.not_digits_dir,
                        help='Directory holding train/ and test/ non-digit bitmaps')
    parser.add_argument('--output-dir', default=defaults.output_dir,
                        help='Directory the model files are written to')
    parser.add_argument('--train-negatives', type=int, default=30000,
                        help='Number of non-digit training images')
    parser.add_argument('--test-negatives', type=int, default=10000,
                        help='Number of non-digit test images')
    parser.add_argument('--skip-classifier', action='store_true',
                        help='Skip training the digit classifier')
    parser.add_argument('--skip-detector', action='store_true',
                        help='Skip training the digit detector')
    parser.add_argument('--auto-tune', action='store_true',
                        help='Cross validate C and gamma for the digit classifier')
    parser.add_argument('--plot-distribution', metavar='PATH',
                        help='Save a plot of the training label distribution')
    parser.add_argument('--show-samples', type=int, default=0, metavar='N',
                        help='Show the first N training images')
    args = parser.parse_args(argv)

    paths = TrainingPaths(
        data_dir=args.data_dir,
        not_digits_dir=args.not_digits_dir,
        output_dir=args.output_dir,
    )
    workflow = TrainingWorkflow(
        paths,
        train_negatives=args.train_negatives,
        test_negatives=args.test_negatives,
        auto_tune=args.auto_tune,
    )

    success = workflow.run(
        skip_classifier=args.skip_classifier,
        skip_detector=args.skip_detector,
        plot_file=args.plot_distribution,
        show_samples=args.show_samples,
    )
    if not success:
        print("\nTraining failed!")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
