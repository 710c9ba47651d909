from loguru import logger
import sys
from pathlib import Path
from typing import Optional
from app.config import Settings


def setup_logging(settings: Optional[Settings] = None):
    """
    Configure loguru logging.
    Console sink at the configured level, file sink at DEBUG.
    """
    level = settings.LOG_LEVEL if settings else "INFO"
    log_file = Path(settings.LOG_FILE if settings else "bot.log")

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="7 days",
        encoding="utf-8",
    )

    return logger
