"""FastAPI application exposing the EDINET extraction engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from edinet_engine.config import settings
from edinet_engine.edinet import edinet_client
from edinet_engine.errors import register_error_handlers
from edinet_engine.logging_config import setup_logging
from edinet_engine.routers import filings, stock

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    if not settings.EDINET_API_KEY:
        logger.warning("EDINET_API_KEY is not set; EDINET endpoints will answer 503")

    yield

    await edinet_client.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="EDINET 有報データ抽出",
    description="Annual report discovery, floating-share ratio and financial statements from EDINET XBRL",
    version="1.0.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(filings.router)
app.include_router(stock.router)


@app.get("/api/health")
async def health() -> dict:
    return {
        "status": "ok",
        "edinet_api_key_configured": bool(settings.EDINET_API_KEY),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "edinet_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )
