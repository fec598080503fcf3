"""FastAPI application main module.

Defines the application instance, the health and status endpoints, and the
mapping of pipeline errors to JSON error responses.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from recomengine import __version__
from recomengine.api.logging_config import RequestLoggingMiddleware
from recomengine.api.routes import predict
from recomengine.recommender.exceptions import (
    RecomEngineError,
    StorageReadError,
)

# Create FastAPI application instance
app = FastAPI(
    title="RecomEngine API",
    description="Rating prediction service for ALS collaborative filtering models",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(predict.router)


@app.exception_handler(RecomEngineError)
async def recomengine_error_handler(
    request: Request, exc: RecomEngineError
) -> JSONResponse:
    """Render pipeline errors as JSON with the failing stage."""
    status_code = 500 if isinstance(exc, StorageReadError) else 400
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "stage": exc.stage,
            "details": {key: str(value) for key, value in exc.details.items()},
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def model_status() -> Dict[str, Any]:
    """Report whether a model is loaded and its size."""
    cache = predict.get_cache_info()
    model = predict.get_cached_model()
    return {
        "model_loaded": model is not None,
        "timestamp_last_loaded": cache["loaded_at"] if cache else None,
        "num_users": model.n_users if model else 0,
        "num_items": model.n_items if model else 0,
        "k": model.k if model else None,
        "cold_start_policy": model.cold_start_policy.value if model else None,
    }


if __name__ == "__main__":
    import uvicorn

    from recomengine.api.logging_config import setup_logging

    setup_logging()
    uvicorn.run(
        "recomengine.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
