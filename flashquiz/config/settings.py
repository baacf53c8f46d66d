"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ..utils.logger import setup_logger

# Load from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)

logger = setup_logger(__name__)


def _env_seconds(name: str, default: float = 0.0) -> float:
    """Read a number of seconds from the environment, falling back on bad input."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: expected float", name, raw)
        return default


@dataclass
class Config:
    """Application-wide configuration."""

    APP_NAME: str = "FlashQuiz"

    # Flip animation
    FLIP_DURATION_MS: int = 400
    FLIP_FRAME_MS: int = 16

    # Generation
    # GENERATION_TIMEOUT of 0 disables the per-request timeout
    GENERATION_TIMEOUT: float = _env_seconds("GENERATION_TIMEOUT")
    AI_TIMEOUT: int = 30

    # Cross-platform paths using pathlib
    # BASE_DIR is the project root (parent of flashquiz/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()

    DB_FILE: str = str(BASE_DIR / "data" / "flashquiz.db")
    EXPORT_FILE: str = str(BASE_DIR / "data" / "cards.csv")
    SETTINGS_FILE: str = str(BASE_DIR / "settings.json")
