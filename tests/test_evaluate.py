"""Tests for held-out RMSE evaluation."""

import math

import numpy as np
import pytest

from recomengine.recommender.als import train_als
from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.evaluate import evaluate, evaluate_detailed
from recomengine.recommender.exceptions import NoScorableRecordsError
from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel
from recomengine.recommender.records import Interaction
from recomengine.recommender.split import random_split


@pytest.fixture
def mixed_test_set() -> InteractionDataset:
    """Two scorable records and one record by an unseen user."""
    return InteractionDataset(
        [
            Interaction(1, 10, 4.0, 0),
            Interaction(2, 10, 3.0, 1),
            Interaction(5, 10, 1.0, 2),
        ]
    )


def test_evaluate_drop_excludes_absent_records(
    hand_built_model: LatentFactorModel, mixed_test_set: InteractionDataset
) -> None:
    """Test that dropped records are left out of the RMSE denominator."""
    result = evaluate_detailed(hand_built_model, mixed_test_set)

    # Errors are 2.0 and 0.0 on the two scorable records.
    assert result.rmse == pytest.approx(math.sqrt(2.0))
    assert result.n_scored == 2
    assert result.n_dropped == 1


def test_evaluate_default_value_scores_every_record(
    hand_built_model: LatentFactorModel, mixed_test_set: InteractionDataset
) -> None:
    """Test that DEFAULT_VALUE scores cold-start records with the fallback."""
    model = hand_built_model.with_cold_start_policy(ColdStartPolicy.DEFAULT_VALUE)

    result = evaluate_detailed(model, mixed_test_set)

    assert result.rmse == pytest.approx(math.sqrt(8.0 / 3.0))
    assert result.n_dropped == 0


def test_evaluate_all_unseen_raises(hand_built_model: LatentFactorModel) -> None:
    """Test that a test set of unseen users cannot be scored under DROP."""
    test = InteractionDataset(
        [Interaction(7, 10, 4.0, 0), Interaction(8, 10, 2.0, 1)]
    )

    with pytest.raises(NoScorableRecordsError) as exc_info:
        evaluate(hand_built_model, test)

    assert exc_info.value.stage == "evaluate"
    assert exc_info.value.details["n_records"] == 2


def test_evaluate_empty_test_set_raises(hand_built_model: LatentFactorModel) -> None:
    """Test that an empty test subset is reported, not scored as zero."""
    with pytest.raises(NoScorableRecordsError):
        evaluate(hand_built_model, InteractionDataset())


def test_evaluate_trained_model_on_held_out_data(
    low_rank_ratings: InteractionDataset,
) -> None:
    """Test that held-out RMSE is finite and non-negative."""
    training, test = random_split(low_rank_ratings, [0.8, 0.2], seed=21)
    model = train_als(training, k=3, max_iterations=10, regularization=0.1, seed=21)

    rmse = evaluate(model, test)

    assert np.isfinite(rmse)
    assert rmse >= 0.0


def test_evaluate_trained_model_unseen_test_users(
    tiny_training_set: InteractionDataset,
) -> None:
    """Test the cold-start scenario with a trained model."""
    model = train_als(tiny_training_set, k=2, max_iterations=5, regularization=0.1)
    test = InteractionDataset([Interaction(3, 1, 2.0, 200)])

    with pytest.raises(NoScorableRecordsError):
        evaluate(model, test)
