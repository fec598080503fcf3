"""Collaborative filtering model training pipeline.

This module wires the pipeline stages together: load rating records, split
them into training and test subsets, train an ALS model on the training
subset, save it, and report its RMSE on the test subset.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from recomengine.recommender.als import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_N_JOBS,
    DEFAULT_RANK,
    DEFAULT_REGULARIZATION,
    train_als,
    validate_hyperparameters,
)
from recomengine.recommender.dataset import load_interactions
from recomengine.recommender.evaluate import evaluate_detailed
from recomengine.recommender.exceptions import InvalidRatioError
from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel
from recomengine.recommender.split import (
    DEFAULT_SPLIT_RATIOS,
    random_split,
    validate_ratios,
)
from recomengine.recommender.store import save_model

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class TrainingConfig:
    """Settings for one training run.

    Attributes:
        input_path: Rating file or directory of part files.
        output_dir: Directory the trained model is written to (replaced).
        k: Number of latent factors.
        max_iterations: Number of ALS iterations.
        regularization: Regularization strength.
        split_ratios: Training and test proportions.
        seed: Seed for both the split and factor initialization.
        n_jobs: Worker threads for ALS solves.
        tol: Optional early-stopping threshold.
        strict: Abort on the first malformed input line.
        cold_start_policy: Policy stored on the trained model.
    """

    input_path: str
    output_dir: str
    k: int = DEFAULT_RANK
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    regularization: float = DEFAULT_REGULARIZATION
    split_ratios: Tuple[float, ...] = DEFAULT_SPLIT_RATIOS
    seed: Optional[int] = None
    n_jobs: int = DEFAULT_N_JOBS
    tol: Optional[float] = None
    strict: bool = False
    cold_start_policy: ColdStartPolicy = ColdStartPolicy.DROP

    def validate(self) -> None:
        """Check split ratios and hyperparameters before any work starts.

        Raises:
            InvalidRatioError: If split_ratios is not a valid two-way split.
            InvalidHyperparameterError: If a hyperparameter is out of range.
        """
        validate_ratios(self.split_ratios)
        if len(self.split_ratios) != 2:
            raise InvalidRatioError(
                self.split_ratios, "expected exactly two ratios (training, test)"
            )
        validate_hyperparameters(
            self.k, self.max_iterations, self.regularization, self.n_jobs, self.tol
        )


@dataclass
class TrainingResult:
    model: LatentFactorModel
    rmse: float
    n_training: int
    n_test: int
    n_scored: int
    n_dropped: int


def train_with_config(config: TrainingConfig) -> TrainingResult:
    """Run the full training pipeline.

    The model is saved before it is evaluated, so a run that fails
    evaluation (for example because every test user is unseen) still leaves
    a usable model behind.

    Args:
        config: Training run settings.

    Returns:
        TrainingResult with the trained model and its held-out RMSE.

    Raises:
        FileNotFoundError: If the input path does not exist.
        RecomEngineError: Any pipeline stage failure; the error's ``stage``
            attribute names the failing stage.

    Example:
        >>> result = train_with_config(
        ...     TrainingConfig(input_path="data/ratings.csv", output_dir="models")
        ... )
        >>> print(f"RMSE: {result.rmse:.4f}")
    """
    logger.info("=" * 60)
    logger.info("Starting collaborative filtering model training")
    logger.info("=" * 60)

    config.validate()

    try:
        # Step 1: Parse rating records
        dataset = load_interactions(config.input_path, strict=config.strict)

        # Step 2: Split into training and test subsets
        training, test = random_split(dataset, config.split_ratios, seed=config.seed)
        logger.info(f"Training records: {len(training)}, test records: {len(test)}")

        # Step 3: Train ALS model
        model = train_als(
            training,
            k=config.k,
            max_iterations=config.max_iterations,
            regularization=config.regularization,
            seed=config.seed,
            n_jobs=config.n_jobs,
            tol=config.tol,
            cold_start_policy=config.cold_start_policy,
        )

        # Step 4: Save model artifacts
        save_model(model, config.output_dir)

        # Step 5: Evaluate on the held-out subset
        evaluation = evaluate_detailed(model, test)

    except Exception as e:
        logger.error(f"Training failed: {e}")
        raise

    logger.info("=" * 60)
    logger.info("Training completed successfully!")
    logger.info("=" * 60)

    return TrainingResult(
        model=model,
        rmse=evaluation.rmse,
        n_training=len(training),
        n_test=len(test),
        n_scored=evaluation.n_scored,
        n_dropped=evaluation.n_dropped,
    )
