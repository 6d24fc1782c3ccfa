"""
HOG + SVM
An SVM that classifies images by their histogram of oriented gradients.
The digit classifier and the digit detector are both HogSvm instances that
differ only in their SvmConfig and training data.
"""

from typing import Optional, Sequence

import numpy as np

from hog_digits.features import HogFeatureExtractor
from hog_digits.svm import Svm, SvmConfig, SvmKernel, SvmType

# Multi-class digit value 0-9
DIGIT_CLASSIFIER_CONFIG = SvmConfig(
    svm_type=SvmType.C_SVC,
    kernel=SvmKernel.POLY,
    gamma=0.1,
    degree=2,
    c=0.1,
)

# Binary digit (1) / not a digit (0)
DIGIT_DETECTOR_CONFIG = SvmConfig(
    svm_type=SvmType.C_SVC,
    kernel=SvmKernel.LINEAR,
    c=0.1,
)


class HogSvm:
    def __init__(self, config: Optional[SvmConfig] = None,
                 extractor: Optional[HogFeatureExtractor] = None,
                 svm: Optional[Svm] = None):
        self.extractor = extractor or HogFeatureExtractor()
        self.svm = svm or Svm()
        if config is not None:
            self.svm.configure(config)

    def train(self, images: Sequence[np.ndarray], labels: np.ndarray) -> bool:
        """Extract features from the images and train the SVM on them"""
        features = self.extractor.extract_many(images)
        return self.svm.train(features, labels)

    def train_auto(self, images: Sequence[np.ndarray], labels: np.ndarray, **grid_options) -> bool:
        features = self.extractor.extract_many(images)
        return self.svm.train_auto(features, labels, **grid_options)

    def test(self, images: Sequence[np.ndarray], labels: np.ndarray) -> float:
        """Percent error of classification for the supplied images and labels"""
        features = self.extractor.extract_many(images)
        return self.svm.test(features, labels)

    def predict(self, image: np.ndarray) -> int:
        return self.svm.predict(self.extractor.extract(image))

    def save(self, filename: str) -> bool:
        return self.svm.save(filename)

    def load(self, filename: str) -> bool:
        return self.svm.load(filename)

    @property
    def is_trained(self) -> bool:
        return self.svm.is_trained


def digit_classifier() -> HogSvm:
    """Untrained HogSvm configured to predict the digit value"""
    return HogSvm(DIGIT_CLASSIFIER_CONFIG)


def digit_detector() -> HogSvm:
    """Untrained HogSvm configured to predict whether an image is a digit"""
    return HogSvm(DIGIT_DETECTOR_CONFIG)
