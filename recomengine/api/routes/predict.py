"""Rating prediction endpoints for the RecomEngine API.

Scores (user, item) pairs with a model saved by the training pipeline.
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from recomengine.recommender.model import LatentFactorModel
from recomengine.recommender.predict import predict
from recomengine.recommender.store import check_model_exists, load_model

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/predict",
    tags=["predictions"],
)

MODEL_DIR_ENV = "RECOMENGINE_MODEL_DIR"


def default_model_dir() -> str:
    return os.getenv(MODEL_DIR_ENV, "models")


# Cache for the loaded model
_model_cache: Optional[Dict] = None


class PredictionResponse(BaseModel):
    """Response model for prediction requests.

    Attributes:
        user_id: User the prediction is for.
        item_id: Item the prediction is for.
        prediction: Predicted rating, or null when the pair is not scorable.
        scorable: False when the model has no factors for the user or item
            and its cold-start policy drops such pairs.
    """

    user_id: int = Field(..., description="User ID")
    item_id: int = Field(..., description="Item ID")
    prediction: Optional[float] = Field(
        None, description="Predicted rating, null for dropped cold-start pairs"
    )
    scorable: bool = Field(..., description="Whether the pair could be scored")


def load_model_if_needed(model_dir: Optional[str] = None) -> Dict:
    """Load the model from disk if it is not cached yet.

    Args:
        model_dir: Directory containing model artifacts. Defaults to the
            RECOMENGINE_MODEL_DIR environment variable, then "models".

    Returns:
        Dictionary with the model, its directory and its load time.

    Raises:
        HTTPException: 503 if no model exists in the directory. Broken
            artifacts surface as StorageReadError.
    """
    global _model_cache

    model_dir = model_dir or default_model_dir()
    if _model_cache is not None and _model_cache["model_dir"] == model_dir:
        logger.debug("Using cached model")
        return _model_cache

    if not check_model_exists(model_dir):
        logger.error(f"Model not found in {model_dir}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Model not found in {model_dir}. Please train a model first.",
        )

    model = load_model(model_dir)
    _model_cache = {
        "model": model,
        "model_dir": model_dir,
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("Model loaded successfully", extra={"model_dir": model_dir})
    return _model_cache


def get_cached_model() -> Optional[LatentFactorModel]:
    return None if _model_cache is None else _model_cache["model"]


def get_cache_info() -> Optional[Dict]:
    return _model_cache


def clear_model_cache() -> None:
    global _model_cache
    _model_cache = None


@router.get("/{user_id}/{item_id}", response_model=PredictionResponse)
def get_prediction(
    user_id: int,
    item_id: int,
    model_dir: Optional[str] = None,
) -> PredictionResponse:
    """Predict the rating a user would give an item.

    Example:
        GET /predict/42/7
        Returns the predicted rating of item 7 by user 42.
    """
    start_time = time.time()
    model = load_model_if_needed(model_dir)["model"]

    prediction = predict(model, user_id, item_id)

    logger.info(
        "Prediction served",
        extra={
            "user_id": user_id,
            "item_id": item_id,
            "scorable": prediction is not None,
            "total_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    return PredictionResponse(
        user_id=user_id,
        item_id=item_id,
        prediction=prediction,
        scorable=prediction is not None,
    )


@router.post("/reload-model")
def reload_model(model_dir: Optional[str] = None) -> Dict[str, str]:
    """Reload the model from disk.

    Clears the cache so a freshly trained model is picked up without
    restarting the server.
    """
    logger.info("Reloading model...")
    clear_model_cache()
    load_model_if_needed(model_dir)
    return {"status": "Model reloaded successfully"}
