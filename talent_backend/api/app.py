"""
FastAPI application for the talent profile backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from talent_backend.api.routes.profiles import router as profiles_router
from talent_backend.database import create_tables
from talent_backend.infrastructure.config.settings import settings

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting with settings: {settings.get_settings_summary()}")
    if not create_tables():
        logger.error("Database tables could not be created; requests will fail")
    yield


app = FastAPI(
    title="Talent Profile API",
    description="""
    Profiles and questionnaire responses for the talent marketplace.

    Authentication:
    - All endpoints (except /health) require a development bearer token
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

app.include_router(profiles_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
