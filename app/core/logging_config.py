from __future__ import annotations

import logging


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Базовая настройка логов, вызывается один раз при создании приложения."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("app")
