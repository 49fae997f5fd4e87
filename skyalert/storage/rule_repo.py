"""Repository for notification rules, stored as JSON under notify.rule.<id>."""

import logging
import sqlite3

from pydantic import ValidationError

from skyalert.models.common import LocationId
from skyalert.models.rule import NotificationRule
from skyalert.storage.kv_store import delete_value, get_value, set_value

logger = logging.getLogger(__name__)


def rule_key(location_id: LocationId) -> str:
    return f"notify.rule.{location_id}"


def save_rule(conn: sqlite3.Connection, location_id: LocationId, rule: NotificationRule) -> None:
    """Save a rule, overwriting any previous one for the location."""
    set_value(conn, rule_key(location_id), rule.model_dump_json())


def load_rule(conn: sqlite3.Connection, location_id: LocationId) -> NotificationRule | None:
    """Load a rule. Returns None if absent or if the stored value is malformed."""
    raw = get_value(conn, rule_key(location_id))
    if raw is None:
        return None
    try:
        return NotificationRule.model_validate_json(raw)
    except ValidationError:
        logger.warning("Discarding malformed rule for location %s", location_id)
        return None


def delete_rule(conn: sqlite3.Connection, location_id: LocationId) -> None:
    delete_value(conn, rule_key(location_id))
