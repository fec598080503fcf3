"""Saving and loading of trained models.

A saved model is a directory holding three joblib files: the user factors
with their ids, the item factors with their ids, and a metadata dict with the
hyperparameters needed to rebuild a predictor without retraining.
"""

import logging
import shutil
from pathlib import Path
from typing import Tuple, Union

import joblib
import numpy as np

from recomengine.recommender.exceptions import StorageReadError, StorageWriteError
from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel

# Configure module logger
logger = logging.getLogger(__name__)

# Model artifact filenames
USER_FACTORS_FILENAME = "user_factors.joblib"
ITEM_FACTORS_FILENAME = "item_factors.joblib"
METADATA_FILENAME = "metadata.joblib"

MODEL_FORMAT_VERSION = 1


def get_model_paths(model_dir: Union[str, Path]) -> Tuple[Path, Path, Path]:
    """Get file paths for model artifacts without loading them.

    Returns:
        Paths of the user factors, item factors and metadata files.
    """
    model_path = Path(model_dir)
    return (
        model_path / USER_FACTORS_FILENAME,
        model_path / ITEM_FACTORS_FILENAME,
        model_path / METADATA_FILENAME,
    )


def check_model_exists(model_dir: Union[str, Path]) -> bool:
    """Check if all required model artifacts exist."""
    return all(path.is_file() for path in get_model_paths(model_dir))


def _clear_destination(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def save_model(model: LatentFactorModel, destination: Union[str, Path]) -> None:
    """Save a trained model to a directory.

    Anything already present at ``destination`` is removed first, so the
    directory only ever holds one model.

    Args:
        model: Trained model.
        destination: Target directory path.

    Raises:
        StorageWriteError: If the directory cannot be cleared, created or
            written.

    Example:
        >>> save_model(model, "models/latest")
    """
    output_path = Path(destination)
    user_path, item_path, metadata_path = get_model_paths(output_path)

    logger.info(f"Saving model artifacts to {output_path}")
    try:
        _clear_destination(output_path)
        output_path.mkdir(parents=True)

        joblib.dump(
            {"ids": np.asarray(model.user_ids), "factors": np.asarray(model.user_factors)},
            user_path,
        )
        joblib.dump(
            {"ids": np.asarray(model.item_ids), "factors": np.asarray(model.item_factors)},
            item_path,
        )
        joblib.dump(
            {
                "format_version": MODEL_FORMAT_VERSION,
                "k": model.k,
                "regularization": model.regularization,
                "cold_start_policy": model.cold_start_policy.value,
                "default_value": model.default_value,
            },
            metadata_path,
        )
    except Exception as e:
        logger.error(f"Failed to save model to {output_path}: {e}")
        raise StorageWriteError(str(output_path), e) from e

    logger.info(
        f"Saved model with {model.n_users} users and {model.n_items} items "
        f"to {output_path}"
    )


def _load_artifact(path: Path, model_dir: Path):
    if not path.is_file():
        raise StorageReadError(str(model_dir), f"missing artifact {path.name}")
    try:
        return joblib.load(path)
    except Exception as e:
        raise StorageReadError(str(model_dir), f"unreadable artifact {path.name}: {e}") from e


def _factor_table(artifact, name: str, model_dir: Path) -> Tuple[np.ndarray, np.ndarray]:
    if not isinstance(artifact, dict) or not {"ids", "factors"} <= artifact.keys():
        raise StorageReadError(str(model_dir), f"{name} factors artifact is malformed")
    return np.asarray(artifact["ids"]), np.asarray(artifact["factors"])


def load_model(source: Union[str, Path]) -> LatentFactorModel:
    """Load a model saved with save_model.

    Args:
        source: Directory written by save_model.

    Returns:
        The reconstructed LatentFactorModel.

    Raises:
        StorageReadError: If the directory or an artifact is missing or
            unreadable, the format version differs, or the artifacts are
            inconsistent with each other.

    Example:
        >>> model = load_model("models/latest")
        >>> print(f"Model has {model.k} factors")
    """
    model_path = Path(source)
    if not model_path.is_dir():
        raise StorageReadError(str(model_path), "model directory does not exist")

    logger.info(f"Loading model artifacts from {model_path}")
    user_path, item_path, metadata_path = get_model_paths(model_path)

    metadata = _load_artifact(metadata_path, model_path)
    if not isinstance(metadata, dict):
        raise StorageReadError(str(model_path), "metadata artifact is malformed")
    version = metadata.get("format_version")
    if version != MODEL_FORMAT_VERSION:
        raise StorageReadError(
            str(model_path),
            f"format version {version!r} does not match {MODEL_FORMAT_VERSION}",
        )

    user_ids, user_factors = _factor_table(
        _load_artifact(user_path, model_path), "user", model_path
    )
    item_ids, item_factors = _factor_table(
        _load_artifact(item_path, model_path), "item", model_path
    )

    try:
        model = LatentFactorModel(
            user_ids=user_ids,
            user_factors=user_factors,
            item_ids=item_ids,
            item_factors=item_factors,
            k=int(metadata["k"]),
            regularization=float(metadata["regularization"]),
            cold_start_policy=ColdStartPolicy(metadata["cold_start_policy"]),
            default_value=float(metadata["default_value"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageReadError(str(model_path), f"inconsistent artifacts: {e}") from e

    logger.info(f"Loaded model with {model.n_users} users and {model.n_items} items")
    return model
