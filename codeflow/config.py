"""Environment configuration."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from loguru import logger


def _flag(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class Settings:
    store_path: str = "codeflow.json"  # "" keeps everything in memory
    log_level: str = "INFO"
    demo_login: bool = True
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store_path=os.getenv("CODEFLOW_STORE_PATH", "codeflow.json"),
            log_level=os.getenv("CODEFLOW_LOG_LEVEL", "INFO").upper(),
            demo_login=_flag(os.getenv("CODEFLOW_DEMO_LOGIN", "1")),
            host=os.getenv("CODEFLOW_HOST", "127.0.0.1"),
            port=int(os.getenv("CODEFLOW_PORT", "8000")),
        )


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)
