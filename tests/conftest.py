import struct
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Sequence

import matplotlib

matplotlib.use("Agg")

import cv2
import numpy as np
import pytest

STROKE_OFFSETS = range(8, 20, 2)


def draw_stroke(kind: str, offset: int, size: int = 28) -> np.ndarray:
    """White line on black, like a binarized MNIST digit"""
    image = np.zeros((size, size), dtype=np.uint8)
    if kind == "vertical":
        cv2.line(image, (offset, 4), (offset, 23), 255, 2)
    elif kind == "horizontal":
        cv2.line(image, (4, offset), (23, offset), 255, 2)
    elif kind == "diagonal":
        shift = offset - 8
        cv2.line(image, (4, 4 + shift), (23 - shift, 23), 255, 2)
    elif kind == "blob":
        cv2.circle(image, (offset, 14), 6, 255, -1)
    else:
        raise ValueError(kind)
    return image


def stroke_set(labelled_kinds: Dict[str, int]):
    images: List[np.ndarray] = []
    labels: List[int] = []
    for kind, label in labelled_kinds.items():
        for offset in STROKE_OFFSETS:
            images.append(draw_stroke(kind, offset))
            labels.append(label)
    return images, np.array(labels, dtype=np.int32)


def write_idx_images(path: Path, images: Sequence[np.ndarray], magic: int = 2051):
    rows, cols = images[0].shape
    with open(path, "wb") as f:
        f.write(struct.pack(">4I", magic, len(images), rows, cols))
        for image in images:
            f.write(image.astype(np.uint8).tobytes())


def write_idx_labels(path: Path, labels: Sequence[int], magic: int = 2049):
    with open(path, "wb") as f:
        f.write(struct.pack(">2I", magic, len(labels)))
        f.write(bytes(int(label) for label in labels))


@pytest.fixture
def clusters():
    """Two well separated 2-D clusters labelled 0 and 1"""
    rng = np.random.default_rng(0)
    near = rng.normal(0.0, 0.5, size=(10, 2))
    far = rng.normal(10.0, 0.5, size=(10, 2))
    features = np.vstack([near, far]).astype(np.float32)
    labels = np.array([0] * 10 + [1] * 10, dtype=np.int32)
    return features, labels


@pytest.fixture
def white_frame():
    def make(height: int = 200, width: int = 200, channels: int = 3) -> np.ndarray:
        shape = (height, width, channels) if channels > 1 else (height, width)
        return np.full(shape, 255, dtype=np.uint8)
    return make


@pytest.fixture
def training_data(tmp_path: Path):
    """MNIST style idx files and non-digit bitmaps laid out like ./data"""
    mnist_dir = tmp_path / "data" / "MNIST"
    mnist_dir.mkdir(parents=True)

    digits = {"vertical": 1, "horizontal": 4, "diagonal": 7}
    train_images, train_labels = stroke_set(digits)
    test_images, test_labels = stroke_set(digits)

    write_idx_images(mnist_dir / "train-images.idx3-ubyte", train_images)
    write_idx_labels(mnist_dir / "train-labels.idx1-ubyte", train_labels)
    write_idx_images(mnist_dir / "t10k-images.idx3-ubyte", test_images)
    write_idx_labels(mnist_dir / "t10k-labels.idx1-ubyte", test_labels)

    not_digits_dir = tmp_path / "data" / "NotDigits"
    for split, count in (("train", 4), ("test", 2)):
        split_dir = not_digits_dir / split
        split_dir.mkdir(parents=True)
        for i in range(count):
            cv2.imwrite(str(split_dir / f"image{i}.bmp"), draw_stroke("blob", 8 + 3 * i))

    return tmp_path


@pytest.fixture
def strokes():
    return SimpleNamespace(draw=draw_stroke, labelled=stroke_set)


@pytest.fixture
def idx_files():
    return SimpleNamespace(images=write_idx_images, labels=write_idx_labels)
