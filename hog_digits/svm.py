"""
SVM Classifier
Training, testing, prediction and persistence of an OpenCV SVM model.

Hyperparameter setters are forwarded to OpenCV without validation. Invalid
combinations (for example a polynomial kernel with degree 0) are only
reported when the model is trained.
"""

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import cv2
import numpy as np

from hog_digits.errors import ModelNotTrainedError, NumericsError


class SvmType(IntEnum):
    C_SVC = cv2.ml.SVM_C_SVC
    NU_SVC = cv2.ml.SVM_NU_SVC
    ONE_CLASS = cv2.ml.SVM_ONE_CLASS
    EPS_SVR = cv2.ml.SVM_EPS_SVR
    NU_SVR = cv2.ml.SVM_NU_SVR


class SvmKernel(IntEnum):
    LINEAR = cv2.ml.SVM_LINEAR
    POLY = cv2.ml.SVM_POLY
    RBF = cv2.ml.SVM_RBF
    SIGMOID = cv2.ml.SVM_SIGMOID
    CHI2 = cv2.ml.SVM_CHI2
    INTER = cv2.ml.SVM_INTER


# (type, max iterations, epsilon) as accepted by cv2
TermCriteria = Tuple[int, int, float]


@dataclass(frozen=True)
class SvmConfig:
    """
    SVM hyperparameters

    Fields left as None keep the OpenCV default for that parameter.
    """
    svm_type: SvmType = SvmType.C_SVC
    kernel: SvmKernel = SvmKernel.RBF
    c: Optional[float] = None
    gamma: Optional[float] = None
    degree: Optional[float] = None
    coef0: Optional[float] = None
    nu: Optional[float] = None
    p: Optional[float] = None
    term_criteria: Optional[TermCriteria] = None


class Svm:
    def __init__(self, config: Optional[SvmConfig] = None):
        # Create an SVM model
        self._svm = cv2.ml.SVM_create()
        if config is not None:
            self.configure(config)

    # Hyperparameters

    def configure(self, config: SvmConfig):
        """Apply every parameter set in the config"""
        self.set_type(config.svm_type)
        self.set_kernel(config.kernel)
        if config.c is not None:
            self.set_c(config.c)
        if config.gamma is not None:
            self.set_gamma(config.gamma)
        if config.degree is not None:
            self.set_degree(config.degree)
        if config.coef0 is not None:
            self.set_coef0(config.coef0)
        if config.nu is not None:
            self.set_nu(config.nu)
        if config.p is not None:
            self.set_p(config.p)
        if config.term_criteria is not None:
            self.set_term_criteria(config.term_criteria)

    def set_type(self, svm_type: SvmType):
        self._svm.setType(int(svm_type))

    def set_kernel(self, kernel: SvmKernel):
        self._svm.setKernel(int(kernel))

    def set_term_criteria(self, term_criteria: TermCriteria):
        self._svm.setTermCriteria(term_criteria)

    def set_gamma(self, gamma: float):
        self._svm.setGamma(gamma)

    def set_c(self, c: float):
        self._svm.setC(c)

    def set_degree(self, degree: float):
        self._svm.setDegree(degree)

    def set_coef0(self, coef0: float):
        self._svm.setCoef0(coef0)

    def set_nu(self, nu: float):
        self._svm.setNu(nu)

    def set_p(self, p: float):
        self._svm.setP(p)

    # Model state

    @property
    def is_trained(self) -> bool:
        return bool(self._svm.isTrained())

    @property
    def var_count(self) -> int:
        """Feature dimension the model was trained on (0 when untrained)"""
        return int(self._svm.getVarCount())

    @property
    def kernel(self) -> int:
        return int(self._svm.getKernelType())

    # Training and inference

    def train(self, features: np.ndarray, labels: np.ndarray) -> bool:
        """
        Train the SVM using the supplied features and labels

        Args:
            features: feature matrix (one sample per row)
            labels: one integer label per row

        Returns:
            True if the SVM trained successfully
        """
        samples, responses = self._prepare(features, labels)
        if samples.shape[0] != responses.shape[0]:
            return False

        try:
            return bool(self._svm.train(samples, cv2.ml.ROW_SAMPLE, responses))
        except cv2.error as e:
            raise NumericsError(f"SVM training failed: {e}") from e

    def train_auto(self, features: np.ndarray, labels: np.ndarray, k_fold: int = 10,
                   c_grid: Tuple[float, float, float] = (10, 20, 1.1),
                   gamma_grid: Tuple[float, float, float] = (0.5, 2, 1.1),
                   balanced: bool = False) -> bool:
        """
        Train with k-fold cross validation over C and gamma

        Grids are (min, max, log step). The best parameters found are kept
        on the model; p, nu, coef0 and degree keep their configured values.
        """
        samples, responses = self._prepare(features, labels)
        if samples.shape[0] != responses.shape[0]:
            return False

        # A log step of 1 or less keeps the current parameter value
        fixed = cv2.ml.ParamGrid_create(0, 0, 0)
        try:
            return bool(self._svm.trainAuto(
                samples,
                cv2.ml.ROW_SAMPLE,
                responses,
                kFold=k_fold,
                Cgrid=cv2.ml.ParamGrid_create(*c_grid),
                gammaGrid=cv2.ml.ParamGrid_create(*gamma_grid),
                pGrid=fixed,
                nuGrid=fixed,
                coeffGrid=fixed,
                degreeGrid=fixed,
                balanced=balanced,
            ))
        except cv2.error as e:
            raise NumericsError(f"SVM auto training failed: {e}") from e

    def predict(self, features: np.ndarray) -> int:
        """Predict the class of a single feature vector"""
        return int(self.predict_many(np.asarray(features).reshape(1, -1))[0])

    def predict_many(self, features: np.ndarray) -> np.ndarray:
        """Predict the class of every row of a feature matrix"""
        if not self.is_trained:
            raise ModelNotTrainedError("SVM model must be trained or loaded before prediction")

        samples = np.asarray(features, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(1, -1)

        try:
            _, results = self._svm.predict(samples)
        except cv2.error as e:
            raise NumericsError(f"SVM prediction failed: {e}") from e
        return results.reshape(-1).astype(np.int32)

    def test(self, features: np.ndarray, labels: np.ndarray) -> float:
        """
        Test the current model against known labels

        Returns:
            Percent error of classification for the supplied data
        """
        samples, responses = self._prepare(features, labels)
        if samples.shape[0] != responses.shape[0]:
            raise ValueError(
                f"{samples.shape[0]} feature rows but {responses.shape[0]} labels"
            )
        if samples.shape[0] == 0:
            raise ValueError("Cannot test an SVM on an empty data set")

        # Predict each example and compare prediction to actual label
        predictions = self.predict_many(samples)
        errors = int(np.count_nonzero(predictions != responses.reshape(-1)))

        return 100.0 * errors / responses.shape[0]

    # Persistence

    def save(self, filename: str) -> bool:
        """Save the current model to a file; the extension selects XML or YAML"""
        if not filename or not self.is_trained:
            return False

        directory = os.path.dirname(filename)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._svm.save(filename)
        except (OSError, cv2.error):
            return False
        return True

    def load(self, filename: str) -> bool:
        """
        Load a model file

        Returns False if the file is missing, cannot be parsed or holds no
        trained model. The current model is only replaced on success.
        """
        if not filename or not os.path.isfile(filename):
            return False

        try:
            loaded = cv2.ml.SVM_load(filename)
        except cv2.error:
            return False

        if loaded is None or not loaded.isTrained():
            return False

        self._svm = loaded
        return True

    @staticmethod
    def _prepare(features, labels):
        # Convert data to format required by SVM
        samples = np.asarray(features, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(1, -1)
        responses = np.asarray(labels, dtype=np.int32).reshape(-1, 1)
        return samples, responses
