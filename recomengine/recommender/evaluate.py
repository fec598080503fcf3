"""Held-out evaluation of a trained model.

RMSE = sqrt(mean((predicted - actual)^2)) over the test records the model can
score. Records whose prediction is absent (cold-start pairs under the DROP
policy) are left out of both the sum and the count.
"""

import logging
from typing import NamedTuple

import numpy as np
from sklearn.metrics import mean_squared_error

from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.exceptions import NoScorableRecordsError
from recomengine.recommender.model import LatentFactorModel
from recomengine.recommender.predict import predict_batch

# Configure module logger
logger = logging.getLogger(__name__)


class EvaluationResult(NamedTuple):
    rmse: float
    n_scored: int
    n_dropped: int


def evaluate_detailed(
    model: LatentFactorModel, test: InteractionDataset
) -> EvaluationResult:
    """Compute RMSE along with scored/dropped record counts.

    Raises:
        NoScorableRecordsError: If no test record can be scored.
    """
    predictions = predict_batch(model, test.user_ids(), test.item_ids())
    scorable = ~np.isnan(predictions)
    n_scored = int(scorable.sum())

    if n_scored == 0:
        raise NoScorableRecordsError(len(test))

    mse = mean_squared_error(test.ratings()[scorable], predictions[scorable])
    result = EvaluationResult(
        rmse=float(np.sqrt(mse)),
        n_scored=n_scored,
        n_dropped=len(test) - n_scored,
    )

    logger.info(
        f"Evaluated {n_scored} test records, RMSE: {result.rmse:.4f}",
        extra={"n_scored": result.n_scored, "n_dropped": result.n_dropped},
    )
    if result.n_dropped:
        logger.info(f"Dropped {result.n_dropped} cold-start test records")

    return result


def evaluate(model: LatentFactorModel, test: InteractionDataset) -> float:
    """Root mean square error of the model on a test subset.

    Example:
        >>> rmse = evaluate(model, test)
        >>> print(f"RMSE: {rmse:.4f}")
    """
    return evaluate_detailed(model, test).rmse
