"""Postal address value object."""

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class PostalAddress:
    """
    Postal address of a provider.

    Every part is optional; geocoding works on whatever parts are present.
    """

    country: str | None = None
    state: str | None = None
    city: str | None = None
    street: str | None = None
    zipcode: str | None = None

    def __post_init__(self):
        for part in fields(self):
            value = getattr(self, part.name)
            if value is not None:
                value = " ".join(str(value).split())
                object.__setattr__(self, part.name, value or None)

    @property
    def is_empty(self) -> bool:
        return not any(self.to_dict().values())

    def to_dict(self) -> dict[str, str | None]:
        return {part.name: getattr(self, part.name) for part in fields(self)}

    def to_location_query(self) -> str:
        """Single-line query, most general part first, as sent to the geocoder."""
        parts = (self.country, self.state, self.city, self.street, self.zipcode)
        return " ".join(part for part in parts if part)
