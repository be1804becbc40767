"""Standalone FastAPI server entry point.

Run with: python run.py
"""
import logging
import sys

import uvicorn

from fal_bridge import __version__
from fal_bridge.core.config import Settings, validate_settings
from fal_bridge.core.registry import all_models

# Configure logging to show debug info
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger("fal_bridge.run")


def log_banner(settings: Settings):
    logger.info(f"FAL Image Bridge v{__version__}")
    logger.info(f"Server running on http://{settings.host}:{settings.port}")
    logger.info(f"FAL_KEY: {'configured' if settings.fal_key else 'missing'}")
    logger.info(f"Lsky Pro: {'configured' if settings.lsky_enabled else 'disabled'}")
    logger.info(f"Record store: {settings.db_file}")
    for model in all_models():
        logger.info(
            f"Model {model.name} ({model.id}): {model.type.value}, "
            f"{len(model.aspect_ratios)} aspect ratio options"
        )


if __name__ == "__main__":
    settings = Settings.from_env()
    errors, warnings = validate_settings(settings)
    for warning in warnings:
        logger.warning(warning)
    if errors:
        for error in errors:
            logger.error(error)
        logger.error("Configuration invalid, please fix these errors before starting the server.")
        sys.exit(1)

    log_banner(settings)
    uvicorn.run(
        "fal_bridge.fastapi_app:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
