"""Logging setup shared by the API, the scheduler worker and scripts."""
from __future__ import annotations

import logging.config
from pathlib import Path

import yaml

DEFAULT_LOGGING_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def configure_logging(config_path: str | Path | None = None, *, level: int = logging.INFO) -> None:
    """Apply a YAML ``dictConfig`` file, falling back to ``basicConfig``.

    ``config_path`` defaults to ``configs/logging.yaml`` at the project root.
    """

    path = Path(config_path) if config_path else DEFAULT_LOGGING_CONFIG
    if not path.exists():
        logging.basicConfig(level=level)
        return

    with path.open("r", encoding="utf-8") as config_file:
        config = yaml.safe_load(config_file) or {}
    logging.config.dictConfig(config)
