from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Address:
    """Location used for tax rate lookup and shipping zone matching."""

    country: str
    state: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None

    @classmethod
    def from_parts(cls, country, state=None, city=None, postcode=None) -> "Address":
        def clean(value):
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        return cls(
            country=clean(country) or "",
            state=clean(state),
            city=clean(city),
            postcode=clean(postcode),
        )
