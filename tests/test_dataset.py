"""Tests for the interaction dataset."""

from pathlib import Path

import numpy as np
import pytest

from recomengine.recommender.dataset import InteractionDataset, load_interactions
from recomengine.recommender.exceptions import MalformedRecordError
from recomengine.recommender.records import Interaction


def test_dataset_consumes_generator_once(tiny_training_set: InteractionDataset) -> None:
    """Test that a dataset built from a generator can be iterated repeatedly."""
    dataset = InteractionDataset(record for record in tiny_training_set)

    assert len(dataset) == 3
    assert list(dataset) == list(dataset)
    assert dataset == tiny_training_set


def test_dataset_column_projections(tiny_training_set: InteractionDataset) -> None:
    """Test the columnar accessors."""
    np.testing.assert_array_equal(tiny_training_set.user_ids(), [1, 1, 2])
    np.testing.assert_array_equal(tiny_training_set.item_ids(), [1, 2, 1])
    np.testing.assert_allclose(tiny_training_set.ratings(), [5.0, 4.0, 1.0])
    np.testing.assert_array_equal(tiny_training_set.timestamps(), [100, 101, 102])
    np.testing.assert_array_equal(tiny_training_set.distinct_users(), [1, 2])
    assert tiny_training_set.mean_rating() == pytest.approx(10.0 / 3)


def test_dataset_to_frame(tiny_training_set: InteractionDataset) -> None:
    """Test conversion to a DataFrame."""
    df = tiny_training_set.to_frame()

    assert list(df.columns) == ["user_id", "item_id", "rating", "timestamp"]
    assert len(df) == 3
    assert df["rating"].sum() == pytest.approx(10.0)


def test_empty_dataset() -> None:
    """Test that an empty dataset is well behaved."""
    dataset = InteractionDataset()

    assert len(dataset) == 0
    assert dataset.user_ids().shape == (0,)
    assert np.isnan(dataset.mean_rating())
    assert dataset.to_frame().empty


def test_dataset_slicing_returns_dataset(tiny_training_set: InteractionDataset) -> None:
    """Test that slices stay datasets and indexing returns records."""
    assert isinstance(tiny_training_set[:2], InteractionDataset)
    assert len(tiny_training_set[:2]) == 2
    assert tiny_training_set[2] == Interaction(2, 1, 1.0, 102)


def test_load_interactions_lenient(tmp_path: Path) -> None:
    """Test that loading skips malformed lines by default."""
    path = tmp_path / "ratings.csv"
    path.write_text("1,1,5.0,100\nnot,a,record\n2,1,1.0,102\n")

    dataset = load_interactions(path)

    assert len(dataset) == 2


def test_load_interactions_lenient_skips_unrepresentable_lines(tmp_path: Path) -> None:
    """Test that oversized ids and undecodable bytes only drop their line."""
    path = tmp_path / "ratings.csv"
    path.write_bytes(
        b"1,1,5.0,100\n"
        b"99999999999999999999,1,3.0,100\n"
        b"\xff\xfe,1,3.0,100\n"
        b"2,1,1.0,102\n"
    )

    dataset = load_interactions(path)

    assert len(dataset) == 2
    np.testing.assert_array_equal(dataset.user_ids(), [1, 2])
    assert list(dataset.to_frame()["user_id"]) == [1, 2]


def test_load_interactions_strict(tmp_path: Path) -> None:
    """Test that strict loading aborts on a malformed line."""
    path = tmp_path / "ratings.csv"
    path.write_text("1,1,5.0,100\nnot,a,record\n")

    with pytest.raises(MalformedRecordError):
        load_interactions(path, strict=True)


def test_load_interactions_missing_file(tmp_path: Path) -> None:
    """Test that a missing input raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_interactions(tmp_path / "nope.csv")
