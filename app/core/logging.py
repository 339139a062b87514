"""Logging configuration."""
import logging
import sys
from typing import Optional


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Set third-party loggers to WARNING
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def mask_secret(value: Optional[str]) -> str:
    """Shorten a secret for log output."""
    if not value:
        return "<none>"
    if len(value) <= 4:
        return "****"
    return f"{value[:4]}..."


logger = logging.getLogger(__name__)
