"""Alternating least squares training for explicit ratings.

This module factorizes the sparse user-item rating matrix into user and item
factor matrices. Each iteration first solves a regularized least-squares
problem for every user with the item factors fixed, then for every item with
the freshly updated user factors fixed.
"""

import logging
import math
import numbers
from typing import Optional, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from scipy import linalg
from scipy.sparse import csr_matrix

from recomengine.recommender.dataset import InteractionDataset
from recomengine.recommender.exceptions import (
    EmptyTrainingSetError,
    InvalidHyperparameterError,
)
from recomengine.recommender.model import ColdStartPolicy, LatentFactorModel

# Configure module logger
logger = logging.getLogger(__name__)

# Model configuration constants
DEFAULT_RANK = 10
DEFAULT_MAX_ITERATIONS = 5
DEFAULT_REGULARIZATION = 0.1
DEFAULT_N_JOBS = 1


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_hyperparameters(
    k: int,
    max_iterations: int,
    regularization: float,
    n_jobs: int = DEFAULT_N_JOBS,
    tol: Optional[float] = None,
) -> None:
    """Raise InvalidHyperparameterError for any out-of-range value."""
    if not _is_int(k) or k <= 0:
        raise InvalidHyperparameterError("k", k, "must be a positive integer")
    if not _is_int(max_iterations) or max_iterations <= 0:
        raise InvalidHyperparameterError(
            "max_iterations", max_iterations, "must be a positive integer"
        )
    if (
        not isinstance(regularization, numbers.Real)
        or not math.isfinite(regularization)
        or regularization < 0
    ):
        raise InvalidHyperparameterError(
            "regularization", regularization, "must be a finite number >= 0"
        )
    if not _is_int(n_jobs) or n_jobs == 0:
        raise InvalidHyperparameterError(
            "n_jobs", n_jobs, "must be a non-zero integer"
        )
    if tol is not None and (
        not isinstance(tol, numbers.Real) or not math.isfinite(tol) or tol <= 0
    ):
        raise InvalidHyperparameterError("tol", tol, "must be a positive number")


def build_rating_matrix(
    dataset: InteractionDataset,
) -> Tuple[csr_matrix, np.ndarray, np.ndarray]:
    """Build a sparse user-item rating matrix from a dataset.

    Rows follow the sorted distinct user ids and columns the sorted distinct
    item ids. When a user rated the same item more than once, the last
    rating in dataset order wins.

    Returns:
        A tuple containing:
            - CSR matrix of shape (n_users, n_items) with ratings
            - Sorted user ids (row labels)
            - Sorted item ids (column labels)
    """
    df = dataset.to_frame().drop_duplicates(
        subset=["user_id", "item_id"], keep="last"
    )

    user_ids = np.sort(df["user_id"].unique())
    item_ids = np.sort(df["item_id"].unique())
    user_id_to_idx = {user_id: idx for idx, user_id in enumerate(user_ids)}
    item_id_to_idx = {item_id: idx for idx, item_id in enumerate(item_ids)}

    row_indices = df["user_id"].map(user_id_to_idx).to_numpy()
    col_indices = df["item_id"].map(item_id_to_idx).to_numpy()

    # Explicit zeros stay in the matrix: a 0.0 rating is still an observation.
    matrix = csr_matrix(
        (df["rating"].to_numpy(dtype=np.float64), (row_indices, col_indices)),
        shape=(len(user_ids), len(item_ids)),
        dtype=np.float64,
    )

    logger.info(f"Rating matrix shape: {matrix.shape}, ratings: {matrix.nnz}")
    logger.debug(
        f"Rating matrix density: {matrix.nnz / (matrix.shape[0] * matrix.shape[1]):.4%}"
    )
    return matrix, user_ids, item_ids


def initialize_factors(n_rows: int, k: int, rng: np.random.Generator) -> np.ndarray:
    """Small non-negative random factors, each row scaled to unit length."""
    factors = np.abs(rng.standard_normal((n_rows, k)))
    norms = np.linalg.norm(factors, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return factors / norms


def _solve(gram: np.ndarray, rhs: np.ndarray, regularization: float) -> np.ndarray:
    if regularization > 0:
        return linalg.solve(gram, rhs, assume_a="pos")
    # Without the penalty the system may be singular; take the minimum-norm solution.
    return linalg.lstsq(gram, rhs)[0]


def _solve_block(
    indptr: np.ndarray,
    indices: np.ndarray,
    data: np.ndarray,
    fixed_factors: np.ndarray,
    regularization: float,
    rows: np.ndarray,
) -> np.ndarray:
    """Solve the least-squares system of every row in ``rows``.

    For a row with ratings ``r`` against fixed factors ``F`` the update is
    ``(F^T F + regularization * n * I)^-1 F^T r`` where ``n`` is its rating
    count.
    """
    k = fixed_factors.shape[1]
    identity = np.eye(k)
    solved = np.empty((len(rows), k))

    for pos, row in enumerate(rows):
        start, end = indptr[row], indptr[row + 1]
        factors = fixed_factors[indices[start:end]]
        ratings = data[start:end]
        gram = factors.T @ factors + regularization * (end - start) * identity
        solved[pos] = _solve(gram, factors.T @ ratings, regularization)

    return solved


def _update_factors(
    parallel: Parallel,
    compressed,
    fixed_factors: np.ndarray,
    regularization: float,
    n_blocks: int,
) -> np.ndarray:
    """Recompute every row factor of one side of the factorization.

    ``compressed`` is a CSR view (rows are users) or a CSC view (columns are
    items) of the rating matrix. Blocks are solved concurrently and written
    to disjoint slices; the call returns once every block is done.
    """
    n_rows = len(compressed.indptr) - 1
    blocks = [
        block
        for block in np.array_split(np.arange(n_rows), min(n_blocks, n_rows))
        if len(block)
    ]
    results = parallel(
        delayed(_solve_block)(
            compressed.indptr,
            compressed.indices,
            compressed.data,
            fixed_factors,
            regularization,
            block,
        )
        for block in blocks
    )

    updated = np.empty((n_rows, fixed_factors.shape[1]))
    for block, solved in zip(blocks, results):
        updated[block] = solved
    return updated


def training_rmse(
    matrix: csr_matrix, user_factors: np.ndarray, item_factors: np.ndarray
) -> float:
    """RMSE of the current factorization over the observed ratings."""
    coo = matrix.tocoo()
    predictions = np.einsum(
        "ij,ij->i", user_factors[coo.row], item_factors[coo.col]
    )
    return float(np.sqrt(np.mean((predictions - coo.data) ** 2)))


def train_als(
    training: InteractionDataset,
    k: int = DEFAULT_RANK,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    regularization: float = DEFAULT_REGULARIZATION,
    seed: Optional[int] = None,
    n_jobs: int = DEFAULT_N_JOBS,
    tol: Optional[float] = None,
    cold_start_policy: ColdStartPolicy = ColdStartPolicy.DROP,
) -> LatentFactorModel:
    """Train a latent factor model with alternating least squares.

    Runs exactly ``max_iterations`` iterations unless ``tol`` is given, in
    which case training also stops once the relative improvement of the
    training RMSE drops below ``tol``.

    Args:
        training: Training subset of the interactions.
        k: Number of latent factors.
        max_iterations: Number of alternating iterations.
        regularization: Weight of the squared-norm penalty on each factor
            vector, scaled by the vector's rating count.
        seed: Random seed for item factor initialization. None draws fresh
            entropy, so repeated runs give different factorizations.
        n_jobs: Worker threads for the per-entity solves (joblib semantics,
            -1 uses every core).
        tol: Optional relative-improvement threshold for early stopping.
        cold_start_policy: Policy stored on the returned model.

    Returns:
        Trained LatentFactorModel whose default value is the mean training
        rating.

    Raises:
        InvalidHyperparameterError: If a hyperparameter is out of range.
        EmptyTrainingSetError: If ``training`` holds no records.

    Example:
        >>> model = train_als(training, k=10, max_iterations=5, seed=42)
        >>> print(model.n_users, model.n_items)
    """
    validate_hyperparameters(k, max_iterations, regularization, n_jobs, tol)
    if len(training) == 0:
        raise EmptyTrainingSetError(details={"subset": "training", "n_records": 0})

    logger.info(
        f"Training ALS model with k={k}, max_iterations={max_iterations}, "
        f"regularization={regularization}"
    )

    matrix, user_ids, item_ids = build_rating_matrix(training)
    by_user = matrix
    by_item = matrix.tocsc()

    rng = np.random.default_rng(seed)
    item_factors = initialize_factors(len(item_ids), k, rng)
    user_factors = np.zeros((len(user_ids), k))

    n_blocks = effective_n_jobs(n_jobs)
    previous_rmse = math.inf
    with Parallel(n_jobs=n_jobs, prefer="threads") as parallel:
        for iteration in range(1, max_iterations + 1):
            user_factors = _update_factors(
                parallel, by_user, item_factors, regularization, n_blocks
            )
            item_factors = _update_factors(
                parallel, by_item, user_factors, regularization, n_blocks
            )

            rmse = training_rmse(matrix, user_factors, item_factors)
            logger.debug(f"Iteration {iteration}/{max_iterations}: training RMSE {rmse:.6f}")

            if tol is not None and math.isfinite(previous_rmse):
                improvement = (previous_rmse - rmse) / max(previous_rmse, 1e-12)
                if improvement < tol:
                    logger.info(
                        f"Stopping after {iteration} iterations, "
                        f"relative improvement {improvement:.2e} < tol {tol}"
                    )
                    break
            previous_rmse = rmse

    logger.info(f"Model training completed, training RMSE: {rmse:.4f}")

    return LatentFactorModel(
        user_ids=user_ids,
        user_factors=user_factors,
        item_ids=item_ids,
        item_factors=item_factors,
        k=k,
        regularization=float(regularization),
        cold_start_policy=cold_start_policy,
        default_value=training.mean_rating(),
    )
