"""
Runtime configuration for courselearn.

Settings come from the environment, optionally seeded from PROJECT_ROOT/.env:
  COURSELEARN_DB               path to the sqlite database
  COURSELEARN_SECTION_WORKERS  threads used to fetch section contents (1 = sequential)
  COURSELEARN_LOG_LEVEL        logging level name
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_DB_PATH = Path(
    os.environ.get("COURSELEARN_DB", str(PROJECT_ROOT / "data" / "courselearn.db"))
)
SECTION_FETCH_WORKERS = max(1, int(os.environ.get("COURSELEARN_SECTION_WORKERS", "1")))
LOG_LEVEL = os.environ.get("COURSELEARN_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None):
    """Configure root logging for scripts and the learn app."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
