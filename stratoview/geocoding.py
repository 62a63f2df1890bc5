"""Pluggable location resolution for ``search_location``.

The workspace never talks to a geocoding service itself. It accepts any object
with a ``resolve(text) -> Location`` method; :class:`PlaceholderGeocoder` is
the deterministic stand-in used by default and in tests.
"""

from __future__ import annotations

import hashlib
from typing import Mapping, Protocol, runtime_checkable

from .stratum_model import Location

KNOWN_PLACES: dict[str, tuple[float, float]] = {
    "new york": (-74.006, 40.7128),
    "seattle": (-122.3321, 47.6062),
    "chicago": (-87.6298, 41.8781),
    "los angeles": (-118.2437, 34.0522),
    "boston": (-71.0589, 42.3601),
    "san francisco": (-122.4194, 37.7749),
}


@runtime_checkable
class Geocoder(Protocol):
    """Anything that turns free text into a :class:`Location`, synchronously."""

    def resolve(self, text: str) -> Location:
        ...


class PlaceholderGeocoder:
    """Deterministic geocoder: a small gazetteer plus a hash-based fallback.

    Parameters
    ----------
    places : mapping, optional
        Extra ``name -> (lon, lat)`` entries; names match case-insensitively.
    spread_degrees : float, optional
        Half-width of the box around New York that unknown queries land in.

    Examples
    --------
    >>> PlaceholderGeocoder().resolve("Chicago").coordinates
    (-87.6298, 41.8781)
    """

    def __init__(
        self,
        places: Mapping[str, tuple[float, float]] | None = None,
        *,
        spread_degrees: float = 5.0,
    ) -> None:
        self._places = dict(KNOWN_PLACES)
        for name, coords in (places or {}).items():
            self._places[name.strip().lower()] = (float(coords[0]), float(coords[1]))
        self._spread = float(spread_degrees)

    def resolve(self, text: str) -> Location:
        name = text.strip()
        known = self._places.get(name.lower())
        if known is not None:
            return Location(name=name, coordinates=known)

        digest = hashlib.sha256(name.lower().encode("utf-8")).digest()
        # Two 32-bit fractions in [0, 1) give stable offsets per query.
        fx = int.from_bytes(digest[:4], "big") / 2**32
        fy = int.from_bytes(digest[4:8], "big") / 2**32
        base_lon, base_lat = KNOWN_PLACES["new york"]
        return Location(
            name=name,
            coordinates=(
                base_lon + (fx - 0.5) * 2 * self._spread,
                base_lat + (fy - 0.5) * 2 * self._spread,
            ),
        )
