"""Handwritten digit detection and classification with HOG features and SVMs."""

__version__ = "0.1.0"
