"""
BioCopilot Backend - FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import config, diff, network
from services.config_manager import ConfigManager
from services.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    config_manager = ConfigManager.get_instance()
    setup_logging(config_manager.get("logLevel", "INFO"))
    logger.info("Starting BioCopilot Backend...")

    diff_cfg = config_manager.get("diff", {})
    logger.info(
        "Diff engine: lookahead=%s, context=%s",
        diff_cfg.get("lookahead"),
        diff_cfg.get("contextLines"),
    )
    if not config_manager.get_scholar_config().get("apiKey"):
        logger.warning("Semantic Scholar API key not configured; /api/network/build is unavailable")

    yield
    logger.info("Shutting down BioCopilot Backend...")


app = FastAPI(
    title="BioCopilot Backend",
    description="Diff review and citation network analytics for the bioinformatics IDE",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for the browser IDE
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(diff.router, prefix="/api/diff", tags=["diff"])
app.include_router(network.router, prefix="/api/network", tags=["network"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "biocopilot-backend"}


if __name__ == "__main__":
    import uvicorn

    server = ConfigManager.get_instance().get("server", {})
    uvicorn.run(app, host=server.get("host", "0.0.0.0"), port=server.get("port", 8000))
