"""Geographic location returned by search or position lookup."""

from dataclasses import dataclass, field

from skyalert.models.common import LocationId


@dataclass(frozen=True)
class Location:
    id: LocationId
    name: str = field(compare=False)
    latitude: float = field(compare=False)
    longitude: float = field(compare=False)
    admin1: str | None = field(default=None, compare=False)
    country_code: str | None = field(default=None, compare=False)
    country: str | None = field(default=None, compare=False)

    @property
    def subtitle(self) -> str:
        parts = [p for p in (self.admin1, self.country or self.country_code) if p]
        return " ".join(parts)
