"""
Logging setup for the triage services.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

NOISY_LOGGERS = (
    'googleapiclient.discovery_cache',
    'aiohttp',
    'redis',
)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging with a console handler and an optional file handler."""
    handlers = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
