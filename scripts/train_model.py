"""Train an ALS model from a rating file.

Same as the ``recomengine-train`` console script, runnable from a checkout.

Example:
    $ python scripts/train_model.py data/fake_ratings.csv models --seed 42
"""

import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from recomengine.cli import main

if __name__ == "__main__":
    sys.exit(main())
