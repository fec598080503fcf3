"""Rating prediction for (user, item) pairs.

A prediction is the dot product of the user and item factor vectors. When
either id was not seen in training, the model's cold-start policy decides
the outcome: DROP yields no prediction (``None`` for single pairs, ``NaN``
in batch results) and DEFAULT_VALUE yields the model's fallback rating.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel

# Configure module logger
logger = logging.getLogger(__name__)

IdArray = Union[Sequence[int], np.ndarray]


def predict(model: LatentFactorModel, user_id: int, item_id: int) -> Optional[float]:
    """Predict the rating a user would give an item.

    Args:
        model: Trained latent factor model.
        user_id: User identifier.
        item_id: Item identifier.

    Returns:
        The predicted rating, or None when the pair cannot be scored under
        the DROP policy.

    Example:
        >>> predict(model, 1, 1)
        4.93...
        >>> predict(model, 3, 1) is None  # user 3 unseen in training
        True
    """
    user_vector = model.user_vector(user_id)
    item_vector = model.item_vector(item_id)

    if user_vector is None or item_vector is None:
        logger.debug(
            "Cold-start pair",
            extra={
                "user_id": user_id,
                "item_id": item_id,
                "strategy": model.cold_start_policy.value,
            },
        )
        if model.cold_start_policy is ColdStartPolicy.DROP:
            return None
        return model.default_value

    return float(np.dot(user_vector, item_vector))


def predict_batch(
    model: LatentFactorModel, user_ids: IdArray, item_ids: IdArray
) -> np.ndarray:
    """Vectorized predict over aligned id arrays.

    Returns:
        Float array of predictions. Under DROP, unscorable pairs are NaN.

    Raises:
        ValueError: If the id arrays differ in length.
    """
    users = pd.Series(np.asarray(user_ids, dtype=np.int64))
    items = pd.Series(np.asarray(item_ids, dtype=np.int64))
    if len(users) != len(items):
        raise ValueError(
            f"user_ids and item_ids differ in length: {len(users)} != {len(items)}"
        )

    # Map ids to factor rows; unknown ids become NaN
    user_indices = users.map(model.user_index)
    item_indices = items.map(model.item_index)
    valid = (user_indices.notna() & item_indices.notna()).to_numpy()

    fallback = np.nan
    if model.cold_start_policy is ColdStartPolicy.DEFAULT_VALUE:
        fallback = model.default_value
    predictions = np.full(len(users), fallback, dtype=np.float64)

    if valid.any():
        user_rows = user_indices[valid].to_numpy(dtype=np.int64)
        item_rows = item_indices[valid].to_numpy(dtype=np.int64)
        predictions[valid] = np.einsum(
            "ij,ij->i",
            model.user_factors[user_rows],
            model.item_factors[item_rows],
        )

    return predictions
