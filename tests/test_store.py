"""Tests for saving and loading trained models."""

from pathlib import Path

import joblib
import numpy as np
import pytest

from recomengine.recommender.als import train_als
from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.exceptions import StorageReadError, StorageWriteError
from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel
from recomengine.recommender.predict import predict
from recomengine.recommender.store import (
    ITEM_FACTORS_FILENAME,
    METADATA_FILENAME,
    USER_FACTORS_FILENAME,
    check_model_exists,
    load_model,
    save_model,
)


@pytest.fixture
def trained_model(low_rank_ratings: InteractionDataset) -> LatentFactorModel:
    return train_als(low_rank_ratings, k=4, max_iterations=3, seed=42)


def test_save_then_load_reproduces_model(
    trained_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that a loaded model matches the saved one."""
    model_dir = tmp_path / "model"

    save_model(trained_model, model_dir)
    loaded = load_model(model_dir)

    assert check_model_exists(model_dir)
    np.testing.assert_array_equal(loaded.user_ids, trained_model.user_ids)
    np.testing.assert_array_equal(loaded.item_ids, trained_model.item_ids)
    np.testing.assert_allclose(loaded.user_factors, trained_model.user_factors)
    np.testing.assert_allclose(loaded.item_factors, trained_model.item_factors)
    assert loaded.k == trained_model.k
    assert loaded.regularization == trained_model.regularization
    assert loaded.cold_start_policy is trained_model.cold_start_policy
    assert loaded.default_value == pytest.approx(trained_model.default_value)
    assert predict(loaded, 1, 1) == predict(trained_model, 1, 1)


def test_save_keeps_cold_start_policy(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that the cold-start policy and fallback survive a round trip."""
    model = hand_built_model.with_cold_start_policy(
        ColdStartPolicy.DEFAULT_VALUE, default_value=2.5
    )

    save_model(model, tmp_path / "model")
    loaded = load_model(tmp_path / "model")

    assert loaded.cold_start_policy is ColdStartPolicy.DEFAULT_VALUE
    assert predict(loaded, 99, 10) == pytest.approx(2.5)


def test_save_overwrites_existing_directory(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that saving replaces old content instead of merging."""
    model_dir = tmp_path / "model"
    model_dir.mkdir()
    (model_dir / "stale.txt").write_text("old model")

    save_model(hand_built_model, model_dir)

    assert sorted(path.name for path in model_dir.iterdir()) == sorted(
        [USER_FACTORS_FILENAME, ITEM_FACTORS_FILENAME, METADATA_FILENAME]
    )


def test_save_overwrites_existing_file(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that a plain file at the destination is replaced."""
    destination = tmp_path / "model"
    destination.write_text("not a model")

    save_model(hand_built_model, destination)

    assert check_model_exists(destination)


def test_save_unwritable_destination_raises(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that I/O failures surface as StorageWriteError with the cause."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(StorageWriteError) as exc_info:
        save_model(hand_built_model, blocker / "model")

    assert exc_info.value.stage == "save"
    assert isinstance(exc_info.value.__cause__, OSError)


def test_load_missing_directory_raises(tmp_path: Path) -> None:
    """Test that loading from a missing path raises StorageReadError."""
    with pytest.raises(StorageReadError):
        load_model(tmp_path / "missing")


def test_load_missing_artifact_raises(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that a partially deleted model cannot be loaded."""
    save_model(hand_built_model, tmp_path / "model")
    (tmp_path / "model" / ITEM_FACTORS_FILENAME).unlink()

    assert not check_model_exists(tmp_path / "model")
    with pytest.raises(StorageReadError, match=ITEM_FACTORS_FILENAME):
        load_model(tmp_path / "model")


def test_load_version_mismatch_raises(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that a model written by another format version is rejected."""
    model_dir = tmp_path / "model"
    save_model(hand_built_model, model_dir)
    metadata = joblib.load(model_dir / METADATA_FILENAME)
    metadata["format_version"] = 99
    joblib.dump(metadata, model_dir / METADATA_FILENAME)

    with pytest.raises(StorageReadError, match="format version"):
        load_model(model_dir)


def test_load_corrupt_artifact_raises(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that garbage bytes in an artifact raise StorageReadError."""
    model_dir = tmp_path / "model"
    save_model(hand_built_model, model_dir)
    (model_dir / USER_FACTORS_FILENAME).write_bytes(b"not a joblib file")

    with pytest.raises(StorageReadError):
        load_model(model_dir)


def test_load_inconsistent_k_raises(
    hand_built_model: LatentFactorModel, tmp_path: Path
) -> None:
    """Test that factors whose width disagrees with k are rejected."""
    model_dir = tmp_path / "model"
    save_model(hand_built_model, model_dir)
    metadata = joblib.load(model_dir / METADATA_FILENAME)
    metadata["k"] = 5
    joblib.dump(metadata, model_dir / METADATA_FILENAME)

    with pytest.raises(StorageReadError, match="inconsistent"):
        load_model(model_dir)
