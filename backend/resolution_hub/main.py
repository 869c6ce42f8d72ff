from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resolution_hub.api.auth import router as auth_router
from resolution_hub.api.cases import router as cases_router
from resolution_hub.api.chat import router as chat_router
from resolution_hub.api.hub import router as hub_router
from resolution_hub.api.tracking import router as tracking_router
from resolution_hub.core.config import settings
from resolution_hub.core.errors import (
    EmissionFailure,
    InvalidStateError,
    LookupFailure,
    ResolutionError,
    ValidationError,
)
from resolution_hub.storage.db_connection import init_db
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME} API...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.warning("API started but case storage is not available")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME} API...")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidStateError: status.HTTP_409_CONFLICT,
    LookupFailure: status.HTTP_404_NOT_FOUND,
    EmissionFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(ResolutionError)
async def resolution_error_handler(request: Request, exc: ResolutionError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc}")

    detail = exc.errors if isinstance(exc, ValidationError) else str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(chat_router)
app.include_router(cases_router)
app.include_router(auth_router)
app.include_router(hub_router)
app.include_router(tracking_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resolution_hub.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
