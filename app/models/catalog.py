from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, field_validator

from app.services.genres import genre_buckets, normalize_genres, parse_raw_list


logger = logging.getLogger(__name__)


class CatalogEntry(BaseModel):
    id: Union[int, str]
    name: str
    year: int
    rating: float
    genres: FrozenSet[str] = frozenset()
    screenshots: Tuple[str, ...] = ()

    # остальное из курированного json, в подборе не участвует
    release_date: Optional[str] = None
    cover_url: Optional[str] = None
    summary: Optional[str] = None
    developers: Optional[str] = None
    platforms: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("genres", mode="before")
    @classmethod
    def _normalize_genres(cls, v: Any) -> FrozenSet[str]:
        return normalize_genres(v)

    @field_validator("screenshots", mode="before")
    @classmethod
    def _parse_screenshots(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(u.strip() for u in parse_raw_list(v) if u.strip())
        return v

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @property
    def slug(self) -> str:
        return re.sub(r"[^a-z0-9]+", "-", self.name.lower())

    @property
    def buckets(self) -> FrozenSet[str]:
        return genre_buckets(self.genres)


class Catalog:
    """Неизменяемый набор игр, собирается один раз и передаётся явно."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        kept: List[CatalogEntry] = []
        seen_names: set[str] = set()
        seen_ids: set[Union[int, str]] = set()

        for entry in entries:
            if not entry.screenshots:
                logger.warning("Skipping %r: no screenshots", entry.name)
                continue
            if entry.name in seen_names:
                # имя это ответ, дубли ломают сравнение
                logger.warning("Skipping %r (id=%s): duplicate name", entry.name, entry.id)
                continue
            if entry.id in seen_ids:
                logger.warning("Skipping %r: duplicate id %s", entry.name, entry.id)
                continue
            seen_names.add(entry.name)
            seen_ids.add(entry.id)
            kept.append(entry)

        self._entries: Tuple[CatalogEntry, ...] = tuple(kept)
        self._by_id: Dict[Union[int, str], CatalogEntry] = {e.id: e for e in kept}
        self._by_year: Dict[int, List[CatalogEntry]] = {}
        for e in kept:
            self._by_year.setdefault(e.year, []).append(e)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def get(self, entry_id: Union[int, str]) -> Optional[CatalogEntry]:
        return self._by_id.get(entry_id)

    def by_year(self, year: int) -> List[CatalogEntry]:
        return list(self._by_year.get(year, ()))

    def with_min_rating(self, threshold: float) -> List[CatalogEntry]:
        return [e for e in self._entries if e.rating >= threshold]

    def stats(self) -> Dict[str, Any]:
        """Сводка по каталогу (для отладки и /api/game/stats)."""
        year_counts = Counter(e.year for e in self._entries)
        decade_counts = Counter(f"{(e.year // 10) * 10}s" for e in self._entries)
        total = len(self._entries)
        return {
            "total_games": total,
            "year_range": [min(year_counts), max(year_counts)] if total else [],
            "average_rating": (sum(e.rating for e in self._entries) / total) if total else 0.0,
            "year_counts": dict(sorted(year_counts.items())),
            "decade_counts": dict(sorted(decade_counts.items())),
        }
