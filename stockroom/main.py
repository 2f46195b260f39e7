# stockroom/main.py

import logging
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockroom.core import logging_config  # noqa: F401  configures logging on import
from stockroom.core.config import get_settings
from stockroom.core.utils import validation_errors_to_fields
from stockroom.database import init_models
from stockroom.routes import auth, health, products

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    if settings.RUN_MIGRATIONS:
        logger.info("Running database migrations...")
        result = subprocess.run(['alembic', 'upgrade', 'head'], capture_output=True, text=True)
        if result.returncode == 0:
            logger.info("Migrations completed successfully")
        else:
            logger.error(f"Migration failed: {result.stderr}")
    else:
        await init_models()
        logger.info("Database tables ready")

    yield


app = FastAPI(
    title="Inventory Management API",
    lifespan=lifespan
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report body/query/path validation failures as 400 with one message per field"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": validation_errors_to_fields(exc.errors())},
    )


app.include_router(health.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(products.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Inventory Management API is running"}
