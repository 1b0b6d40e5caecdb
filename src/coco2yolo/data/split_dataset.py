"""
Dataset Splitter — Train/Val
----------------------------
Randomly partitions the parsed images into train/val subsets.

Usage Example:
    rng = random.Random(42)
    train, val = split_images(images, 0.8, rng)

The generator is passed in explicitly so a fixed seed reproduces the
same split. No stratification by category is done.
"""

import logging
import math
import random
from typing import List, Sequence, Tuple

from .schema import UnifiedImage

logger = logging.getLogger(__name__)

SPLITS = ("train", "val")


def split_index(total: int, train_ratio: float) -> int:
    """floor(total * train_ratio), bounded to [0, total]."""
    n_train = math.floor(total * train_ratio)
    return max(0, min(total, n_train))


def split_images(images: Sequence[UnifiedImage],
                 train_ratio: float,
                 rng: random.Random) -> Tuple[List[UnifiedImage], List[UnifiedImage]]:

    if not 0.0 <= train_ratio <= 1.0:
        logger.warning(f"train_split={train_ratio} is outside [0, 1]; split index will be clamped")

    shuffled = list(images)
    rng.shuffle(shuffled)

    n_train = split_index(len(shuffled), train_ratio)
    return shuffled[:n_train], shuffled[n_train:]
