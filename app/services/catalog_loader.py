from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from app.models.catalog import Catalog, CatalogEntry


logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """Файл каталога не найден или это не json-массив."""
    pass


def build_catalog(records: List[Any]) -> Catalog:
    entries: List[CatalogEntry] = []
    skipped = 0
    for raw in records:
        try:
            entries.append(CatalogEntry.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            name = raw.get("name") if isinstance(raw, dict) else None
            logger.warning("Skipping invalid catalog record %r: %s", name, e.errors()[:1])

    catalog = Catalog(entries)
    logger.info(
        "Loaded %d curated games (%d invalid records, %d dropped by catalog checks)",
        len(catalog), skipped, len(entries) - len(catalog),
    )
    return catalog


def load_catalog(path: str | Path) -> Catalog:
    """Читаем курированный json (результат офлайн-скрипта) и строим Catalog."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogLoadError(f"Can't read catalog {path}: {e}") from e
    except ValueError as e:
        raise CatalogLoadError(f"Catalog {path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise CatalogLoadError(f"Catalog {path} must be a JSON array")

    return build_catalog(data)
