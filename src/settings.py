# settings.py
# Process-level configuration for the CLI and the HTTP API, read from the environment.

import logging
import os
from typing import Optional

# Environment configuration
LOG_LEVEL = os.getenv("TILE_GAME_LOG_LEVEL", "INFO")
RATE_LIMIT = os.getenv("TILE_GAME_RATE_LIMIT", "100/minute")
GRID_SIZE = int(os.getenv("TILE_GAME_GRID_SIZE", "4"))
WIN_TILE = int(os.getenv("TILE_GAME_WIN_TILE", "2048"))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configures root logging once for the process."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
