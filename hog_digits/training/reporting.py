"""
Training Data Reports
Sample image strips and label distribution plots for checking a data set
before training.
"""

from collections import Counter
from typing import Dict, Sequence

import cv2
import matplotlib.pyplot as plt
import numpy as np


def sample_strip(images: Sequence[np.ndarray], count: int = 10) -> np.ndarray:
    """Place the first count images side by side in a single image"""
    if count <= 0 or len(images) == 0:
        raise ValueError("sample_strip needs at least one image")
    return cv2.hconcat(list(images[:count]))


def plot_label_distribution(labels: Sequence[int], plot_file: str,
                            title: str = 'Distribution of Training Labels') -> Dict[int, int]:
    """
    Save a bar chart with the number of samples per label

    Returns:
        Mapping of label to sample count
    """
    counts = Counter(int(label) for label in labels)
    classes = sorted(counts)
    values = [counts[c] for c in classes]

    fig = plt.figure(figsize=(10, 6))
    bars = plt.bar(classes, values, color='skyblue', edgecolor='navy', alpha=0.7)

    # Add value labels on bars
    for bar, count in zip(bars, values):
        plt.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + 0.5,
                 str(count), ha='center', va='bottom')

    plt.xlabel('Label')
    plt.ylabel('Number of Samples')
    plt.title(title)
    plt.xticks(classes)
    plt.grid(axis='y', alpha=0.3)

    plt.savefig(plot_file, dpi=150, bbox_inches='tight')
    plt.close(fig)

    return dict(counts)
