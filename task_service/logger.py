import logging
import sys
from typing import Optional

from task_service.config import get_settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure application logging"""
    settings = get_settings()
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()
