"""Immutable collection of interaction records with columnar accessors."""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Union, overload

import numpy as np
import pandas as pd

from recomengine.recommender.records import (
    DEFAULT_DELIMITER,
    Interaction,
    read_interactions,
)

# Configure module logger
logger = logging.getLogger(__name__)

COLUMNS = ("user_id", "item_id", "rating", "timestamp")


class InteractionDataset:
    """Ordered, read-only sequence of Interaction records.

    The constructor consumes any iterable (typically a lazy parser) once and
    keeps the records in a tuple, so the dataset can be iterated repeatedly
    without touching the source text again.
    """

    def __init__(self, records: Iterable[Interaction] = ()):
        self._records = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Interaction]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> Interaction: ...

    @overload
    def __getitem__(self, index: slice) -> "InteractionDataset": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return InteractionDataset(self._records[index])
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InteractionDataset):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"InteractionDataset(n_records={len(self)})"

    @property
    def records(self) -> tuple:
        return self._records

    def user_ids(self) -> np.ndarray:
        return np.fromiter((r.user_id for r in self._records), dtype=np.int64, count=len(self))

    def item_ids(self) -> np.ndarray:
        return np.fromiter((r.item_id for r in self._records), dtype=np.int64, count=len(self))

    def ratings(self) -> np.ndarray:
        return np.fromiter((r.rating for r in self._records), dtype=np.float64, count=len(self))

    def timestamps(self) -> np.ndarray:
        return np.fromiter((r.timestamp for r in self._records), dtype=np.int64, count=len(self))

    def distinct_users(self) -> np.ndarray:
        return np.unique(self.user_ids())

    def distinct_items(self) -> np.ndarray:
        return np.unique(self.item_ids())

    def mean_rating(self) -> float:
        """Mean rating, or NaN for an empty dataset."""
        if not self._records:
            return float("nan")
        return float(self.ratings().mean())

    def to_frame(self) -> pd.DataFrame:
        """Return the records as a DataFrame with typed columns."""
        return pd.DataFrame(
            {
                "user_id": self.user_ids(),
                "item_id": self.item_ids(),
                "rating": self.ratings(),
                "timestamp": self.timestamps(),
            },
            columns=list(COLUMNS),
        )


def load_interactions(
    path: Union[str, Path],
    strict: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
) -> InteractionDataset:
    """Parse a rating file (or directory of part files) into a dataset.

    Args:
        path: File or directory containing ``user,item,rating,timestamp`` lines.
        strict: If True, the first malformed line aborts loading.
        delimiter: Field separator.

    Returns:
        InteractionDataset with every well-formed record, in file order.

    Raises:
        FileNotFoundError: If the path does not exist.
        MalformedRecordError: In strict mode, on the first bad line.

    Example:
        >>> dataset = load_interactions("data/ratings.csv")
        >>> print(f"Loaded {len(dataset)} ratings")
    """
    dataset = InteractionDataset(
        read_interactions(path, strict=strict, delimiter=delimiter)
    )
    logger.info(f"Loaded {len(dataset)} interaction records")
    return dataset
