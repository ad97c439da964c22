"""
Structured logging configuration using loguru.
"""
import sys
from loguru import logger
from owlrsvp.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

logger.remove()

logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.LOG_LEVEL or ("DEBUG" if settings.ENVIRONMENT == "development" else "INFO"),
    colorize=settings.ENVIRONMENT != "test",
)

# Admission decisions and billing failures are kept on disk in production
if settings.ENVIRONMENT == "production":
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        compression="zip",
        format=LOG_FORMAT,
        level="INFO",
    )
    # Billed-but-not-saved RSVPs need reconciling; keep them longer and apart
    logger.add(
        settings.BILLING_LOG_FILE,
        rotation="50 MB",
        retention="90 days",
        format=LOG_FORMAT,
        level="ERROR",
        filter=lambda record: record["name"].startswith(("owlrsvp.billing", "owlrsvp.services.admission")),
    )

__all__ = ["logger"]
