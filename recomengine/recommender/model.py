"""Latent factor model produced by ALS training.

Holds one factor vector per user and per item seen during training, plus the
hyperparameters needed to score new pairs without retraining.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np


class ColdStartPolicy(str, Enum):
    """How predictions behave for ids without a factor vector."""

    DROP = "drop"
    DEFAULT_VALUE = "default_value"


def _frozen_array(values: Any, dtype) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class LatentFactorModel:
    """Trained user and item factors.

    Attributes:
        user_ids: Sorted user ids, one per row of ``user_factors``.
        user_factors: Array of shape (n_users, k).
        item_ids: Sorted item ids, one per row of ``item_factors``.
        item_factors: Array of shape (n_items, k).
        k: Number of latent factors.
        regularization: Regularization strength used for training.
        cold_start_policy: Behavior for unknown ids.
        default_value: Fallback rating under DEFAULT_VALUE, usually the mean
            training rating.
    """

    user_ids: np.ndarray
    user_factors: np.ndarray
    item_ids: np.ndarray
    item_factors: np.ndarray
    k: int
    regularization: float
    cold_start_policy: ColdStartPolicy = ColdStartPolicy.DROP
    default_value: float = float("nan")
    _user_index: Dict[int, int] = field(init=False, repr=False, compare=False)
    _item_index: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "user_ids", _frozen_array(self.user_ids, np.int64))
        object.__setattr__(self, "item_ids", _frozen_array(self.item_ids, np.int64))
        object.__setattr__(
            self, "user_factors", _frozen_array(self.user_factors, np.float64)
        )
        object.__setattr__(
            self, "item_factors", _frozen_array(self.item_factors, np.float64)
        )
        object.__setattr__(
            self, "cold_start_policy", ColdStartPolicy(self.cold_start_policy)
        )
        object.__setattr__(self, "default_value", float(self.default_value))
        object.__setattr__(self, "k", int(self.k))
        object.__setattr__(self, "regularization", float(self.regularization))

        for name, ids, factors in (
            ("user", self.user_ids, self.user_factors),
            ("item", self.item_ids, self.item_factors),
        ):
            if factors.ndim != 2 or factors.shape != (len(ids), self.k):
                raise ValueError(
                    f"{name} factors have shape {factors.shape}, "
                    f"expected ({len(ids)}, {self.k})"
                )

        object.__setattr__(
            self, "_user_index", {int(uid): idx for idx, uid in enumerate(self.user_ids)}
        )
        object.__setattr__(
            self, "_item_index", {int(iid): idx for idx, iid in enumerate(self.item_ids)}
        )

    @property
    def n_users(self) -> int:
        return len(self.user_ids)

    @property
    def n_items(self) -> int:
        return len(self.item_ids)

    @property
    def user_index(self) -> Dict[int, int]:
        """Mapping from user id to row of ``user_factors``."""
        return self._user_index

    @property
    def item_index(self) -> Dict[int, int]:
        """Mapping from item id to row of ``item_factors``."""
        return self._item_index

    def user_vector(self, user_id: int) -> Optional[np.ndarray]:
        idx = self._user_index.get(user_id)
        return None if idx is None else self.user_factors[idx]

    def item_vector(self, item_id: int) -> Optional[np.ndarray]:
        idx = self._item_index.get(item_id)
        return None if idx is None else self.item_factors[idx]

    def with_cold_start_policy(
        self,
        policy: ColdStartPolicy,
        default_value: Optional[float] = None,
    ) -> "LatentFactorModel":
        """Return a copy of this model using a different cold-start policy.

        Args:
            policy: New cold-start policy.
            default_value: Fallback rating; keeps the current value if None.
        """
        return dataclasses.replace(
            self,
            cold_start_policy=ColdStartPolicy(policy),
            default_value=(
                self.default_value if default_value is None else default_value
            ),
        )

    def get_model_info(self) -> Dict[str, Any]:
        """Model metadata and statistics."""
        return {
            "algorithm": "Alternating Least Squares",
            "k": self.k,
            "regularization": self.regularization,
            "cold_start_policy": self.cold_start_policy.value,
            "default_value": self.default_value,
            "n_users": self.n_users,
            "n_items": self.n_items,
        }
