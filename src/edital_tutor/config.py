"""Paths, environment configuration and logging setup."""
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

DATA_DIR = Path(os.environ.get("EDITAL_TUTOR_HOME", str(Path.home() / ".edital_tutor")))
DEFAULT_DB_PATH = os.environ.get("EDITAL_TUTOR_DB", str(DATA_DIR / "tutor.db"))
LOG_PATH = DATA_DIR / "tutor.log"

GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

FREE_DAILY_QUESTION_LIMIT = 10


def get_api_key() -> str:
    return os.environ.get("GEMINI_API_KEY", "").strip()


def configure_logging(log_path: Path = LOG_PATH, verbose: bool = False) -> None:
    """Send log records to a file so they don't interleave with the console UI."""
    logger.remove()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(str(log_path), level="DEBUG", rotation="1 MB", retention=3)
    if verbose:
        logger.add(sys.stderr, level="INFO")
