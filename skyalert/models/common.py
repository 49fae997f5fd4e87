"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from typing import TypeAlias

LocationId: TypeAlias = int | str

# Synthetic id for the device's current position.
CURRENT_LOCATION_ID: LocationId = -1


def utc_now() -> datetime:
    return datetime.now(UTC)


def local_now() -> datetime:
    return datetime.now().astimezone()
