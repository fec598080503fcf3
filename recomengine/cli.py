"""Command-line interface for training the collaborative filtering model.

Example:
    Train a model with default settings:
        $ recomengine-train data/ratings.csv models/latest

    Train with custom parameters:
        $ recomengine-train data/ratings/ models/latest \\
            --rank 20 \\
            --max-iter 10 \\
            --reg-param 0.05
"""

import argparse
import logging
import sys
from typing import List, Optional

from recomengine.recommender.als import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_N_JOBS,
    DEFAULT_RANK,
    DEFAULT_REGULARIZATION,
)
from recomengine.recommender.exceptions import RecomEngineError
from recomengine.recommender.train import TrainingConfig, train_with_config

USAGE_MESSAGE = "Expected arguments: <review-path> <model-path>"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the command line.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recomengine-train",
        description="Train an ALS recommendation model from rating data.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input lines have the form user_id,item_id,rating,timestamp (no header).

Examples:
  # Train with default settings
  recomengine-train data/ratings.csv models/latest

  # Reproducible run with verbose logging
  recomengine-train data/ratings.csv models/latest --seed 42 --verbose
        """,
    )

    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="<review-path> <model-path>: rating file or directory, and the "
        "directory the model is written to (existing content is replaced)",
    )
    parser.add_argument(
        "--rank",
        type=int,
        default=DEFAULT_RANK,
        help=f"Number of latent factors (default: {DEFAULT_RANK})",
    )
    parser.add_argument(
        "--max-iter",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help=f"Number of ALS iterations (default: {DEFAULT_MAX_ITERATIONS})",
    )
    parser.add_argument(
        "--reg-param",
        type=float,
        default=DEFAULT_REGULARIZATION,
        help=f"Regularization strength (default: {DEFAULT_REGULARIZATION})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the split and initialization (default: random)",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=DEFAULT_N_JOBS,
        help=f"Worker threads for ALS solves, -1 for all cores (default: {DEFAULT_N_JOBS})",
    )
    parser.add_argument(
        "--tol",
        type=float,
        default=None,
        help="Stop early when training RMSE improves by less than this fraction",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first malformed input line instead of skipping it",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the training command.

    Returns:
        Exit code: 0 on success or on a usage error, 1 on pipeline failure.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.paths) != 2:
        print(USAGE_MESSAGE)
        parser.print_usage()
        return 0

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)
    review_path, model_path = args.paths

    config = TrainingConfig(
        input_path=review_path,
        output_dir=model_path,
        k=args.rank,
        max_iterations=args.max_iter,
        regularization=args.reg_param,
        seed=args.seed,
        n_jobs=args.n_jobs,
        tol=args.tol,
        strict=args.strict,
    )

    try:
        result = train_with_config(config)
    except RecomEngineError as e:
        logger.error(f"{e.stage} failed: {e.message}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"parse failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Training interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1

    logger.info(f"Users: {result.model.n_users}, items: {result.model.n_items}")
    logger.info(
        f"Scored {result.n_scored} of {result.n_test} test records "
        f"({result.n_dropped} cold-start records dropped)"
    )
    print(f"Root mean square error = {result.rmse}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
