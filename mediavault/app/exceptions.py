# mediavault/app/exceptions.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from mediavault.core.errors import MediaVaultError, StorageError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(MediaVaultError)
    async def mediavault_error_handler(request: Request, exc: MediaVaultError):
        if isinstance(exc, StorageError):
            logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": "Storage error"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app
