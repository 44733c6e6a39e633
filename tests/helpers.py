from datetime import datetime, timedelta, timezone
from typing import Any

from app.models.catalog import Catalog, CatalogEntry


def make_entry(entry_id: int, name: str, year: int, rating: float = 85, genres: Any = (), **extra) -> CatalogEntry:
    data = {
        "id": entry_id,
        "name": name,
        "year": year,
        "rating": rating,
        "genres": list(genres),
        "screenshots": [f"https://img.example/{entry_id}/a.jpg", f"https://img.example/{entry_id}/b.jpg"],
    }
    data.update(extra)
    return CatalogEntry.model_validate(data)


def make_catalog() -> Catalog:
    """Небольшой каталог: несколько лет, жанров и рейтингов."""
    return Catalog([
        make_entry(1, "Doom", 1993, 88, ["Shooter"]),
        make_entry(2, "Myst", 1993, 80, ["Point-and-click", "Puzzle"]),
        make_entry(3, "Sonic CD", 1993, 83, ["Platform"]),
        make_entry(4, "Mortal Kombat II", 1993, 81, ["Fighting"]),
        make_entry(5, "Quake", 1996, 86, ["Shooter"]),
        make_entry(6, "Diablo", 1996, 85, ["Role-playing (RPG)"]),
        make_entry(7, "Final Fantasy VII", 1997, 92, ["Role-playing (RPG)"]),
        make_entry(8, "StarCraft", 1998, 90, ["Real Time Strategy (RTS)", "Strategy"]),
        make_entry(9, "Baldur's Gate", 1998, 89, ["Role-playing (RPG)"]),
        make_entry(10, "Gran Turismo", 1997, 84, ["Racing", "Simulator"]),
        make_entry(11, "Tetris", 1984, 90, ["Puzzle"]),
        make_entry(12, "Halo 3", 2007, 87, ["Shooter"]),
    ])


class FakeClock:
    """Каждый вызов на секунду позже предыдущего."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now
