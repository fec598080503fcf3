"""CLI script for scoring (user, item) pairs with a saved model.

Useful for checking a trained model by hand.

Example:
    $ python scripts/predict_cli.py 42 7 --model-dir models
    $ python scripts/predict_cli.py 42 7 --cold-start default_value
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from recomengine.recommender.exceptions import RecomEngineError
from recomengine.recommender.model import ColdStartPolicy
from recomengine.recommender.predict import predict
from recomengine.recommender.store import load_model

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Predict the rating a user would give an item."
    )
    parser.add_argument("user_id", type=int, help="User ID")
    parser.add_argument("item_id", type=int, help="Item ID")
    parser.add_argument(
        "--model-dir",
        type=str,
        default="models",
        help="Directory with model files (default: models)",
    )
    parser.add_argument(
        "--cold-start",
        choices=[policy.value for policy in ColdStartPolicy],
        default=None,
        help="Override the model's cold-start policy",
    )
    parser.add_argument(
        "--default-value",
        type=float,
        default=None,
        help="Fallback rating for the default_value policy "
        "(default: the model's mean training rating)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_arguments()

    try:
        model = load_model(args.model_dir)
    except RecomEngineError as e:
        logger.error(f"{e.stage} failed: {e.message}")
        return 1

    if args.cold_start is not None:
        model = model.with_cold_start_policy(
            ColdStartPolicy(args.cold_start), args.default_value
        )

    prediction = predict(model, args.user_id, args.item_id)
    if prediction is None:
        print(
            f"User {args.user_id} / item {args.item_id}: not scorable "
            "(not seen in training)"
        )
    else:
        print(f"User {args.user_id} / item {args.item_id}: {prediction:.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
