"""Random partitioning of an interaction dataset."""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.exceptions import InvalidRatioError

# Configure module logger
logger = logging.getLogger(__name__)

RATIO_TOLERANCE = 1e-6
DEFAULT_SPLIT_RATIOS = (0.8, 0.2)


def validate_ratios(ratios: Sequence[float]) -> None:
    """Raise InvalidRatioError unless ratios are positive and sum to 1."""
    if len(ratios) == 0:
        raise InvalidRatioError(ratios, "at least one ratio is required")
    for ratio in ratios:
        if not math.isfinite(ratio) or ratio <= 0:
            raise InvalidRatioError(ratios, "every ratio must be positive")
    total = math.fsum(ratios)
    if abs(total - 1.0) > RATIO_TOLERANCE:
        raise InvalidRatioError(ratios, f"ratios sum to {total}, expected 1.0")


def random_split(
    dataset: InteractionDataset,
    ratios: Sequence[float] = DEFAULT_SPLIT_RATIOS,
    seed: Optional[int] = None,
) -> List[InteractionDataset]:
    """Split a dataset into disjoint subsets by independent random draws.

    Each record lands in bucket ``j`` with probability ``ratios[j]``, so
    subset sizes only approximate the requested proportions. Records keep
    their relative order within each subset.

    Args:
        dataset: Records to partition.
        ratios: Bucket probabilities, positive and summing to 1.0.
        seed: Random seed. None draws fresh entropy on every call.

    Returns:
        One InteractionDataset per ratio, in ratio order.

    Raises:
        InvalidRatioError: If ratios are empty, non-positive, or do not sum
            to 1.0 within RATIO_TOLERANCE.

    Example:
        >>> training, test = random_split(dataset, [0.8, 0.2], seed=7)
    """
    validate_ratios(ratios)

    rng = np.random.default_rng(seed)
    probabilities = np.asarray(ratios, dtype=np.float64)
    probabilities = probabilities / probabilities.sum()
    assignments = rng.choice(len(ratios), size=len(dataset), p=probabilities)

    buckets: List[list] = [[] for _ in ratios]
    for record, bucket in zip(dataset, assignments):
        buckets[bucket].append(record)

    subsets = [InteractionDataset(bucket) for bucket in buckets]
    logger.info(
        "Split dataset",
        extra={
            "n_records": len(dataset),
            "subset_sizes": [len(subset) for subset in subsets],
        },
    )
    return subsets
