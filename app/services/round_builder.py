from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from app.models.catalog import Catalog, CatalogEntry
from app.models.quiz import RoundContent


logger = logging.getLogger(__name__)


class EmptyCatalogError(Exception):
    """Ни одна игра не прошла даже самый мягкий фильтр."""
    pass


class NoScreenshotError(Exception):
    """У выбранной игры нет кадров: каталог собран с ошибкой."""
    pass


@dataclass(frozen=True)
class SelectionPolicy:
    year_from: int = 1980
    year_to: int = 2024
    high_rating: float = 82
    relaxed_rating: float = 80
    genre_window: int = 3
    bucket_window: int = 5
    year_window: int = 10


DecoyFilter = Callable[[CatalogEntry, CatalogEntry], bool]


def pick_screenshot(entry: CatalogEntry, rng: random.Random) -> str:
    if not entry.screenshots:
        raise NoScreenshotError(f"No screenshots available for {entry.name}")
    return rng.choice(entry.screenshots)


def build_options(
    correct: CatalogEntry,
    decoys: Sequence[CatalogEntry],
    rng: random.Random,
) -> List[str]:
    """Правильное название + отвлекающие, перемешанные."""
    options = [correct.name]
    for d in decoys:
        if d.name not in options:
            options.append(d.name)
    rng.shuffle(options)
    return options


class CatalogSelector:
    """Подбор игры для раунда и правдоподобных неправильных вариантов.

    Правильную игру берём из случайного года; если игр того года мало,
    из высокорейтинговых за все годы (сначала high_rating, потом relaxed_rating).

    Отвлекающие варианты ищем ярусами, пока не наберём нужное количество:
    1) общий жанр и год ±3
    2) та же грубая категория жанра и год ±5
    3) только год ±10
    4) любой год с рейтингом не ниже relaxed_rating
    5) fallback: весь каталог
    """

    def __init__(
        self,
        catalog: Catalog,
        policy: Optional[SelectionPolicy] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.policy = policy or SelectionPolicy()
        self.rng = rng or random.Random()

    def pick_correct_pool(self, option_count: int) -> Tuple[int, List[CatalogEntry]]:
        """Пул для правильного ответа: год, иначе рейтинг >= high, иначе >= relaxed.

        Каждый следующий ярус заменяет предыдущий. Последний ярус берём
        любого размера, даже пустой: тогда select_round бросит EmptyCatalogError.
        """
        p = self.policy
        target_year = self.rng.randint(p.year_from, p.year_to)
        logger.info("Fetching games from year %d", target_year)

        pool = self.catalog.by_year(target_year)
        logger.info("Tier year: %d games", len(pool))
        if len(pool) >= option_count:
            return target_year, pool

        logger.info("Not enough games from %d, trying rating >= %s", target_year, p.high_rating)
        pool = self.catalog.with_min_rating(p.high_rating)
        if len(pool) >= option_count:
            return target_year, pool

        logger.info("Not enough high-rated games, relaxing to rating >= %s", p.relaxed_rating)
        return target_year, self.catalog.with_min_rating(p.relaxed_rating)

    def choose_decoys(self, correct: CatalogEntry, *, need: int) -> List[CatalogEntry]:
        p = self.policy
        correct_buckets = correct.buckets

        def within(window: int) -> DecoyFilter:
            return lambda c, m: abs(m.year - c.year) <= window

        tiers: List[Tuple[str, DecoyFilter]] = [
            (
                "genre",
                lambda c, m: bool(c.genres & m.genres) and within(p.genre_window)(c, m),
            ),
            (
                "bucket",
                lambda c, m: bool(correct_buckets & m.buckets) and within(p.bucket_window)(c, m),
            ),
            ("year", within(p.year_window)),
            ("rating", lambda c, m: m.rating >= p.relaxed_rating),
            ("any", lambda c, m: True),
        ]

        seen_names = {correct.name}
        picked: List[CatalogEntry] = []

        for label, flt in tiers:
            if len(picked) >= need:
                break
            candidates = [
                m for m in self.catalog
                if m.name not in seen_names and flt(correct, m)
            ]
            self.rng.shuffle(candidates)
            taken = candidates[: need - len(picked)]
            for m in taken:
                picked.append(m)
                seen_names.add(m.name)
            logger.debug("Decoy tier %s: %d candidates, took %d", label, len(candidates), len(taken))

        return picked

    def select_round(self, option_count: int = 4) -> RoundContent:
        if option_count < 1:
            raise ValueError("option_count must be positive")

        _, pool = self.pick_correct_pool(option_count)
        if not pool:
            raise EmptyCatalogError("No games found with the specified criteria")

        correct = self.rng.choice(pool)
        logger.info(
            "Selected correct game: %s (%d, rating: %s)",
            correct.name, correct.year, correct.rating,
        )

        screenshot = pick_screenshot(correct, self.rng)
        decoys = self.choose_decoys(correct, need=option_count - 1)
        options = build_options(correct, decoys, self.rng)

        if len(options) < option_count:
            logger.warning(
                "Only %d options available for %s (wanted %d)",
                len(options), correct.name, option_count,
            )
        logger.info("Generated options: %s", ", ".join(options))

        return RoundContent(
            correct_entry_id=correct.id,
            screenshot=screenshot,
            options=options,
            correct_answer=correct.name,
            cover_url=correct.cover_url,
        )
