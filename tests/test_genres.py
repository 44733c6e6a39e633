"""Tests for genre parsing, synonyms and coarse buckets."""

from app.services.genres import genre_buckets, normalize_genres, parse_raw_list
from tests.helpers import make_entry


def test_repr_list_with_synonyms():
    assert normalize_genres("['Role-playing (RPG)', 'Adventure']") == {"RPG", "Adventure"}


def test_repr_list_with_embedded_apostrophe():
    raw = "['Shooter', \"Hack and slash/Beat 'em up\"]"
    assert normalize_genres(raw) == {"Shooter", "Hack and Slash"}


def test_json_list_string():
    assert normalize_genres('["Real Time Strategy (RTS)", "Tactical"]') == {"RTS", "Tactical"}


def test_plain_comma_separated_string():
    assert normalize_genres("Sport,  Racing") == {"Sports", "Racing"}


def test_broken_list_falls_back_to_split():
    assert parse_raw_list("['Shooter', 'Arcade'") == ["Shooter", "Arcade"]


def test_empty_values():
    assert normalize_genres(None) == frozenset()
    assert normalize_genres("") == frozenset()
    assert normalize_genres("[]") == frozenset()


def test_list_input_and_unknown_tags_are_kept():
    assert normalize_genres(["platform", "  Roguelike  "]) == {"Platform", "Roguelike"}


def test_buckets():
    assert genre_buckets({"Platform", "Shooter"}) == {"Action"}
    assert genre_buckets({"RPG", "Racing"}) == {"RPG", "Sports"}
    assert genre_buckets({"Indie"}) == frozenset()


def test_entry_normalizes_on_construction():
    entry = make_entry(1, "Fallout", 1997, genres=["Role-playing (RPG)", "Turn-based strategy (TBS)"])
    assert entry.genres == {"RPG", "TBS"}
    assert entry.buckets == {"RPG", "Strategy"}
