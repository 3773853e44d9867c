"""Environment-driven settings for sheetcalc."""

from __future__ import annotations

import logging
import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value


class Settings:
    """Engine settings loaded from environment variables."""

    def __init__(self) -> None:
        # Sheet bounds (Excel's limits by default)
        self.MAX_ROWS = _int_env("SHEETCALC_MAX_ROWS", 1_048_576)
        self.MAX_COLS = _int_env("SHEETCALC_MAX_COLS", 16_384)

        # Logging
        self.LOG_LEVEL = os.getenv("SHEETCALC_LOG_LEVEL", "WARNING").upper()

    def in_bounds(self, row: int, col: int) -> bool:
        return 1 <= row <= self.MAX_ROWS and 1 <= col <= self.MAX_COLS

    def __repr__(self) -> str:
        return (
            f"<Settings max_rows={self.MAX_ROWS} max_cols={self.MAX_COLS} "
            f"log_level={self.LOG_LEVEL}>"
        )


def configure_logging(config: Settings | None = None) -> logging.Logger:
    """Apply the configured level to the ``sheetcalc`` logger.

    No handlers are installed; that is left to the application.
    """
    config = config or settings
    logger = logging.getLogger("sheetcalc")
    level = logging.getLevelName(config.LOG_LEVEL)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.LOG_LEVEL!r}")
    logger.setLevel(level)
    return logger


settings = Settings()
