from __future__ import annotations

import ast
import json
import logging
from typing import Any, Dict, FrozenSet, Iterable, List


logger = logging.getLogger(__name__)


# названия жанров IGDB -> короткие теги
GENRE_SYNONYMS: Dict[str, str] = {
    "role-playing (rpg)": "RPG",
    "role-playing": "RPG",
    "rpg": "RPG",
    "real time strategy (rts)": "RTS",
    "rts": "RTS",
    "turn-based strategy (tbs)": "TBS",
    "tbs": "TBS",
    "hack and slash/beat 'em up": "Hack and Slash",
    "hack and slash": "Hack and Slash",
    "beat 'em up": "Hack and Slash",
    "point-and-click": "Point-and-Click",
    "sport": "Sports",
    "sports": "Sports",
    "simulator": "Simulator",
    "simulation": "Simulator",
    "quiz/trivia": "Quiz/Trivia",
    "card & board game": "Card & Board Game",
    "visual novel": "Visual Novel",
    "moba": "MOBA",
    "platform": "Platform",
    "platformer": "Platform",
    "shooter": "Shooter",
    "fighting": "Fighting",
    "action": "Action",
    "arcade": "Arcade",
    "pinball": "Pinball",
    "adventure": "Adventure",
    "strategy": "Strategy",
    "tactical": "Tactical",
    "racing": "Racing",
    "puzzle": "Puzzle",
    "music": "Music",
    "indie": "Indie",
}

# грубые категории для второго яруса подбора отвлекающих вариантов
GENRE_BUCKETS: Dict[str, str] = {
    "Platform": "Action",
    "Shooter": "Action",
    "Fighting": "Action",
    "Action": "Action",
    "Arcade": "Action",
    "Hack and Slash": "Action",
    "Pinball": "Action",
    "RPG": "RPG",
    "Strategy": "Strategy",
    "RTS": "Strategy",
    "TBS": "Strategy",
    "Tactical": "Strategy",
    "MOBA": "Strategy",
    "Adventure": "Adventure",
    "Point-and-Click": "Adventure",
    "Visual Novel": "Adventure",
    "Sports": "Sports",
    "Racing": "Sports",
    "Puzzle": "Puzzle",
    "Quiz/Trivia": "Puzzle",
    "Card & Board Game": "Puzzle",
    "Simulator": "Simulation",
    "Music": "Music",
}


def parse_raw_list(raw: str) -> List[str]:
    """Разбираем строку вида "['Shooter', 'Arcade']" / JSON / "a, b"."""
    text = raw.strip()
    if not text:
        return []

    if text.startswith("["):
        # в CSV списки лежат как repr питоновского списка
        try:
            parsed = ast.literal_eval(text)
        except (ValueError, SyntaxError):
            try:
                parsed = json.loads(text)
            except ValueError:
                logger.debug("Can't parse genres %r, falling back to split", raw)
                parsed = [part.strip(" '\"") for part in text.strip("[]").split(",")]
        if isinstance(parsed, (list, tuple)):
            return [str(p) for p in parsed]
        return [str(parsed)]

    return [part for part in text.split(",")]


def normalize_genre(tag: str) -> str:
    cleaned = " ".join(tag.split())
    return GENRE_SYNONYMS.get(cleaned.lower(), cleaned)


def normalize_genres(raw: Any) -> FrozenSet[str]:
    """Сырые жанры (строка или список) -> множество нормализованных тегов."""
    if raw is None:
        return frozenset()

    if isinstance(raw, str):
        items: Iterable[Any] = parse_raw_list(raw)
    elif isinstance(raw, (list, tuple, set, frozenset)):
        items = raw
    else:
        raise ValueError(f"unsupported genres value: {type(raw).__name__}")

    tags = set()
    for item in items:
        tag = normalize_genre(str(item))
        if tag:
            tags.add(tag)
    return frozenset(tags)


def genre_buckets(genres: Iterable[str]) -> FrozenSet[str]:
    return frozenset(GENRE_BUCKETS[g] for g in genres if g in GENRE_BUCKETS)
