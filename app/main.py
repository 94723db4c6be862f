from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.models import *
from app.routes import api_router
from app.database import init_models, close_models
from app.utils.constants import CORS_ORIGINS, get_failure_policy
from app.utils.upstream_fetcher import UpstreamFetcher

import logging
import os


app = FastAPI(
    title="Media Library API",
    description="Media listing and Range-aware streaming proxy over object storage",
    version="1.0.0",
)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("uvicorn")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
)


def configure_streaming(fetcher: UpstreamFetcher = None, failure_policy: str = None) -> None:
    app.state.upstream_fetcher = fetcher or UpstreamFetcher()
    app.state.failure_policy = get_failure_policy(failure_policy)


@app.get("/health")
async def health():
    fetcher = getattr(app.state, "upstream_fetcher", None)
    return {
        "status": "ok" if fetcher else "initializing",
        "byteSource": fetcher.byte_source.name if fetcher else None,
        "failurePolicy": getattr(app.state, "failure_policy", None),
    }


app.include_router(api_router)
# Startup and shutdown events
@app.on_event("startup")
async def startup():
    try:
        logger.info("Initializing application...")
        await init_models(create_tables=os.getenv("DB_CREATE_TABLES", "false").lower() == "true")
        configure_streaming()
        logger.info(f"Streaming ready (byte source: {app.state.upstream_fetcher.byte_source.name}, failure policy: {app.state.failure_policy})")
        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        raise

@app.on_event("shutdown")
async def shutdown():
    try:
        logger.info("Shutting down application...")
        fetcher = getattr(app.state, "upstream_fetcher", None)
        if fetcher:
            await fetcher.aclose()
        await close_models()
        logger.info("Application shutdown completed successfully")

    except Exception as e:
        logger.error(f"Shutdown failed: {e}", exc_info=True)
        raise
