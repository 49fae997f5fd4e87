"""Favorite locations, kept as one ordered JSON list under favorites.cities."""

import logging
import sqlite3

from pydantic import TypeAdapter, ValidationError

from skyalert.models.location import Location
from skyalert.storage.kv_store import get_value, set_value

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favorites.cities"

_LOCATIONS = TypeAdapter(list[Location])


def load_favorites(conn: sqlite3.Connection) -> list[Location]:
    """Return favorites in insertion order. A malformed value reads as empty."""
    raw = get_value(conn, FAVORITES_KEY)
    if raw is None:
        return []
    try:
        return _LOCATIONS.validate_json(raw)
    except ValidationError:
        logger.warning("Discarding malformed favorites list")
        return []


def save_favorites(conn: sqlite3.Connection, favorites: list[Location]) -> None:
    set_value(conn, FAVORITES_KEY, _LOCATIONS.dump_json(favorites).decode())


def is_favorite(conn: sqlite3.Connection, location: Location) -> bool:
    return location in load_favorites(conn)


def toggle_favorite(conn: sqlite3.Connection, location: Location) -> bool:
    """Add the location if absent, remove it if present (matched by id).

    Returns True when the location is a favorite afterwards.
    """
    favorites = load_favorites(conn)
    if location in favorites:
        favorites = [f for f in favorites if f != location]
        added = False
    else:
        favorites.append(location)
        added = True
    save_favorites(conn, favorites)
    logger.debug(
        "Favorite %s (%s) %s", location.name, location.id, "added" if added else "removed"
    )
    return added
