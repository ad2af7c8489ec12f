"""Configuration helpers for the FlashMath runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

from flashmath.study.srs import MATURE_REPETITIONS


DEFAULT_APP_NAME = "FlashMath"


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    mature_repetitions: int

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", DEFAULT_APP_NAME)
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        try:
            mature_repetitions = int(os.getenv("SRS_MATURE_REPETITIONS", str(MATURE_REPETITIONS)))
        except ValueError as exc:
            raise RuntimeError("SRS_MATURE_REPETITIONS must be an integer.") from exc

        if mature_repetitions < 1:
            raise RuntimeError("SRS_MATURE_REPETITIONS must be a positive integer.")

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            mature_repetitions=mature_repetitions,
        )
