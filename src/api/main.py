import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.deps import get_settings
from src.app_shell.config import require_valid_settings
from src.components.subscriptions import MSG_CONFIGURATION, ConfigurationError
from src.rules.loader import load_rules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Validate configuration and rules on startup (fail-fast)
    try:
        settings = require_valid_settings(get_settings())
        load_rules(settings.rules_path)
        logger.info(
            "Configuration validated (env=%s, store=%s, rules=%s)",
            settings.environment,
            settings.store_backend,
            settings.rules_path,
        )
    except Exception as e:
        logger.critical("Startup configuration invalid: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="RegPulse Subscriptions API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import subscribe  # noqa: E402

app.include_router(subscribe.router, prefix="/api", tags=["Subscriptions"])


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": MSG_CONFIGURATION})


# CORS (Allow the marketing site)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    get_settings().site_url,
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["POST"],
    allow_headers=["Content-Type"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
