"""
Training Data
Loads MNIST idx files and non-digit bitmaps, and assembles the digit /
non-digit data set used to train the detector.
"""

import os
import struct
from typing import List, Optional, Tuple

import cv2
import numpy as np

from hog_digits.errors import ResourceMissingError

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049
BINARY_THRESHOLD = 90


def binarize(image: np.ndarray, threshold: int = BINARY_THRESHOLD) -> np.ndarray:
    """Convert to binary (pixels above threshold become 255)"""
    _, binary = cv2.threshold(image, threshold, 255, cv2.THRESH_BINARY)
    return binary


def _read_file(filename: str) -> bytes:
    try:
        with open(filename, 'rb') as f:
            return f.read()
    except OSError as e:
        raise ResourceMissingError(f"Failed to open file: {filename}") from e


def _read_header(data: bytes, filename: str, magic: int, fields: int) -> Tuple[int, ...]:
    header_size = 4 * fields
    if len(data) < header_size:
        raise ResourceMissingError(f"Truncated header in {filename}")

    # Header integers are stored big endian
    header = struct.unpack(f'>{fields}I', data[:header_size])
    if header[0] != magic:
        raise ResourceMissingError(
            f"Unexpected magic number {header[0]} in {filename} (expected {magic})"
        )
    return header


def read_mnist_images(filename: str, threshold: Optional[int] = BINARY_THRESHOLD) -> List[np.ndarray]:
    """
    Read every image from an MNIST idx3 file

    Each image is binarized at threshold so it matches the camera crops.
    Pass threshold=None to keep the raw grayscale values.
    """
    data = _read_file(filename)
    _, num_items, num_rows, num_columns = _read_header(data, filename, IMAGE_MAGIC, 4)

    image_size = num_rows * num_columns
    expected = 16 + num_items * image_size
    if len(data) < expected:
        raise ResourceMissingError(
            f"{filename} holds {len(data)} bytes, expected {expected} for {num_items} images"
        )

    pixels = np.frombuffer(data, dtype=np.uint8, count=num_items * image_size, offset=16)
    pixels = pixels.reshape(num_items, num_rows, num_columns)

    images = []
    for image in pixels:
        image = image.copy()
        if threshold is not None:
            image = binarize(image, threshold)
        images.append(image)
    return images


def read_mnist_labels(filename: str) -> np.ndarray:
    """Read every label from an MNIST idx1 file (one byte per label)"""
    data = _read_file(filename)
    _, num_items = _read_header(data, filename, LABEL_MAGIC, 2)

    if len(data) < 8 + num_items:
        raise ResourceMissingError(
            f"{filename} holds {len(data) - 8} labels, expected {num_items}"
        )
    return np.frombuffer(data, dtype=np.uint8, count=num_items, offset=8).astype(np.int32)


def load_mnist_split(image_file: str, label_file: str,
                     threshold: int = BINARY_THRESHOLD) -> Tuple[List[np.ndarray], np.ndarray]:
    images = read_mnist_images(image_file, threshold)
    labels = read_mnist_labels(label_file)
    if len(images) != len(labels):
        raise ResourceMissingError(
            f"{image_file} has {len(images)} images but {label_file} has {len(labels)} labels"
        )
    return images, labels


def load_non_digit_images(directory: str, count: int,
                          threshold: int = BINARY_THRESHOLD) -> List[np.ndarray]:
    """Read image0.bmp .. image<count-1>.bmp from directory as binarized grayscale images"""
    images = []
    for i in range(count):
        filename = os.path.join(directory, f"image{i}.bmp")
        image = cv2.imread(filename, cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise ResourceMissingError(f"Non-digit image not found: {filename}")
        images.append(binarize(image, threshold))
    return images


def add_non_digits(images: List[np.ndarray], labels: np.ndarray,
                   non_digits: List[np.ndarray]) -> Tuple[List[np.ndarray], np.ndarray]:
    """Label every digit image 1 and append the non-digit images labelled 0"""
    detector_images = list(images) + list(non_digits)
    detector_labels = np.concatenate([
        np.ones(len(labels), dtype=np.int32),
        np.zeros(len(non_digits), dtype=np.int32),
    ])
    return detector_images, detector_labels


def create_detector_data(train_images, train_labels, test_images, test_labels,
                         train_non_digits, test_non_digits):
    """
    Convert the digit training and test sets into digit / non-digit sets

    The inputs are not modified.

    Returns:
        (train_images, train_labels, test_images, test_labels)
    """
    train_images, train_labels = add_non_digits(train_images, train_labels, train_non_digits)
    test_images, test_labels = add_non_digits(test_images, test_labels, test_non_digits)
    return train_images, train_labels, test_images, test_labels
