"""Generate fake rating data for testing and development.

Writes synthetic ``user_id,item_id,rating,timestamp`` lines (no header) in
the format the training pipeline reads. Ratings come from a hidden low-rank
taste model plus noise, so a trained model has real structure to recover.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_ratings
        df = generate_fake_ratings(num_users=100, num_items=200)
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from recomengine.recommender.records import Interaction, format_interaction

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_ITEMS = 100
DEFAULT_NUM_RATINGS = 1000
DEFAULT_DAYS_BACK = 90
DEFAULT_HIDDEN_RANK = 3
SECONDS_PER_DAY = 86400


def generate_fake_ratings(
    num_users: int = DEFAULT_NUM_USERS,
    num_items: int = DEFAULT_NUM_ITEMS,
    num_ratings: int = DEFAULT_NUM_RATINGS,
    end_date: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate synthetic ratings on a 1-5 scale.

    Args:
        num_users: Number of unique users to simulate. Must be positive.
        num_items: Number of unique items available. Must be positive.
        num_ratings: Total number of rating records. Must be positive.
        end_date: Latest timestamp; defaults to now. Timestamps spread over
            the preceding 90 days.
        seed: Random seed for reproducibility.

    Returns:
        DataFrame with columns user_id, item_id, rating, timestamp (unix
        seconds), sorted by timestamp.

    Raises:
        ValueError: If any count is non-positive.
    """
    if num_users <= 0 or num_items <= 0 or num_ratings <= 0:
        raise ValueError("num_users, num_items, and num_ratings must be positive")

    rng = np.random.default_rng(seed)
    end_date = end_date or datetime.now()
    start_ts = int((end_date - timedelta(days=DEFAULT_DAYS_BACK)).timestamp())

    user_taste = rng.normal(0, 1, (num_users, DEFAULT_HIDDEN_RANK))
    item_traits = rng.normal(0, 1, (num_items, DEFAULT_HIDDEN_RANK))

    users = rng.integers(0, num_users, size=num_ratings)
    items = rng.integers(0, num_items, size=num_ratings)
    affinity = np.einsum("ij,ij->i", user_taste[users], item_traits[items])
    noise = rng.normal(0, 0.5, num_ratings)
    ratings = np.clip(np.round(3.0 + affinity + noise), 1, 5)
    timestamps = start_ts + rng.integers(0, DEFAULT_DAYS_BACK * SECONDS_PER_DAY, size=num_ratings)

    df = pd.DataFrame(
        {
            "user_id": users + 1,
            "item_id": items + 1,
            "rating": ratings,
            "timestamp": timestamps,
        }
    )
    return df.sort_values("timestamp").reset_index(drop=True)


def write_ratings(df: pd.DataFrame, output_path: Path) -> None:
    """Write ratings in the pipeline's input line format."""
    with open(output_path, "w", encoding="utf-8") as f:
        for row in df.itertuples(index=False):
            record = Interaction(
                int(row.user_id), int(row.item_id), float(row.rating), int(row.timestamp)
            )
            f.write(format_interaction(record) + "\n")


def main() -> None:
    """Generate default fake ratings into data/fake_ratings.csv."""
    print(f"Generating {DEFAULT_NUM_RATINGS} fake ratings...")
    print(f"Users: {DEFAULT_NUM_USERS}, Items: {DEFAULT_NUM_ITEMS}")

    df = generate_fake_ratings()

    data_dir = project_root / "data"
    data_dir.mkdir(exist_ok=True)
    output_path = data_dir / "fake_ratings.csv"
    write_ratings(df, output_path)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_path}")
    print(f"\nData summary:")
    print(f"  Total ratings: {len(df)}")
    print(f"  Unique users: {df['user_id'].nunique()}")
    print(f"  Unique items: {df['item_id'].nunique()}")
    print(f"  Mean rating: {df['rating'].mean():.3f}")


if __name__ == "__main__":
    main()
