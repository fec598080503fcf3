"""RecomEngine: collaborative filtering rating prediction.

This package trains alternating least squares models from historical
user-item ratings and serves rating predictions from the saved models.

Modules:
    recommender: Parsing, splitting, ALS training, prediction, evaluation
        and model storage
    api: FastAPI application for scoring (user, item) pairs
    cli: Command-line training entry point
"""

__version__ = "0.1.0"
