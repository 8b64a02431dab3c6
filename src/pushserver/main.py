"""FastAPI process exposing storage liveness."""
import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from pushstore import ErrorCode, Storage, StorageError, create_storage

from .config import Config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Validate configuration
Config.validate()

app = FastAPI(title="Code Push Storage Service")


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    """Process-wide storage instance, created on first request."""
    try:
        return create_storage()
    except ValueError as e:
        raise StorageError(ErrorCode.CONNECTION_FAILED, f"Storage is not configured: {e}") from e


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.warning(f"Health check failed: {exc.code.value} - {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unhealthy", "error": exc.code.value, "message": exc.message},
    )


@app.get("/")
async def root():
    """Liveness endpoint."""
    return {"status": "healthy"}


@app.get("/health")
async def health(storage: Storage = Depends(get_storage)):
    """Check Firestore and Cloud Storage through their sentinels."""
    await storage.check_health()
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pushserver.main:app",
        host="0.0.0.0",
        port=Config.PORT,
        log_level="info",
        reload=Config.DEBUG
    )
