"""Errors raised by the digit recognition package."""


class DigitRecognitionError(Exception):
    """Base error for known digit recognition failures."""


class ResourceMissingError(DigitRecognitionError):
    """Raised when a dataset, bitmap or model file is missing or unreadable."""


class DeviceUnavailableError(DigitRecognitionError):
    """Raised when the capture device cannot be opened."""


class NumericsError(DigitRecognitionError):
    """Raised when OpenCV fails while computing features or running the SVM."""


class ModelNotTrainedError(DigitRecognitionError):
    """Raised when a model is used for prediction before it is trained."""
