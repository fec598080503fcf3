"""Shared fixtures for the RecomEngine test suite."""

from pathlib import Path

import numpy as np
import pytest

from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.model import LatentFactorModel
from recomengine.recommender.records import Interaction, format_interaction


def make_low_rank_ratings(
    num_users: int = 30,
    num_items: int = 40,
    num_ratings: int = 600,
    seed: int = 42,
) -> InteractionDataset:
    """Ratings drawn from a hidden rank-2 model with a little noise."""
    rng = np.random.default_rng(seed)
    user_taste = rng.normal(0, 1, (num_users, 2))
    item_traits = rng.normal(0, 1, (num_items, 2))

    records = []
    for position in range(num_ratings):
        user = int(rng.integers(0, num_users))
        item = int(rng.integers(0, num_items))
        rating = 3.0 + float(user_taste[user] @ item_traits[item])
        rating += float(rng.normal(0, 0.1))
        records.append(Interaction(user + 1, item + 1, round(rating, 3), 1_000_000 + position))
    return InteractionDataset(records)


def write_rating_file(path: Path, dataset: InteractionDataset) -> Path:
    """Write a dataset in the input line format."""
    path.write_text("".join(format_interaction(r) + "\n" for r in dataset))
    return path


@pytest.fixture
def low_rank_ratings() -> InteractionDataset:
    return make_low_rank_ratings()


@pytest.fixture
def rating_file(tmp_path: Path, low_rank_ratings: InteractionDataset) -> Path:
    """Path to a rating file with the low-rank synthetic ratings."""
    return write_rating_file(tmp_path / "ratings.csv", low_rank_ratings)


@pytest.fixture
def tiny_training_set() -> InteractionDataset:
    """Three ratings by two users of two items."""
    return InteractionDataset(
        [
            Interaction(1, 1, 5.0, 100),
            Interaction(1, 2, 4.0, 101),
            Interaction(2, 1, 1.0, 102),
        ]
    )


@pytest.fixture
def hand_built_model() -> LatentFactorModel:
    """Model with known factors: predict(1, 10) == 2.0, predict(2, 10) == 3.0."""
    return LatentFactorModel(
        user_ids=[1, 2],
        user_factors=[[1.0, 0.0], [0.0, 1.0]],
        item_ids=[10],
        item_factors=[[2.0, 3.0]],
        k=2,
        regularization=0.1,
        default_value=3.0,
    )
