"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kyc_scorer.config import get_settings
from kyc_scorer.routers import schema_detection, scoring
from kyc_scorer.schemas.common import HealthStatus

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    logger.info(
        "kyc.startup model=%s concurrency_limit=%d api_key_loaded=%s",
        settings.openai_model,
        settings.scoring_concurrency_limit,
        "yes" if settings.openai_api_key else "no",
    )
    yield


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().frontend_urls,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(schema_detection.router, tags=["schema"])
app.include_router(scoring.router, tags=["scoring"])


@app.get("/health", response_model=HealthStatus)
def health() -> HealthStatus:
    """Simple health check endpoint."""

    return HealthStatus()
