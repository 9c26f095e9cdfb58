"""
Proximity filtering over an already-ordered result set.

Distance is planar Euclidean in the (lat, lon) number plane, in decimal
degrees. It is not geodesic: it stretches near the poles and at large radii,
but is adequate for the city-scale default radius of 0.2.
"""
import math
from typing import NamedTuple, Optional, Sequence

from app.errors import ParseError
from app.schemas import GeoTaggedEntry


class Origin(NamedTuple):
    """Query point. Any finite pair is accepted, in range or not."""
    lat: float
    lon: float


def filter_by_proximity(
    entries: Sequence[GeoTaggedEntry],
    origin: Origin,
    radius: float,
) -> list[GeoTaggedEntry]:
    """
    Keep entries strictly closer than `radius` to `origin`, preserving order.
    An entry exactly `radius` away is excluded; entries with no coordinate
    are skipped.
    """
    nearby: list[GeoTaggedEntry] = []
    for entry in entries:
        location = getattr(entry, "location", None)
        coordinate = getattr(location, "coordinate", None)
        if coordinate is None:
            continue
        distance = math.hypot(coordinate.lat - origin.lat, coordinate.lon - origin.lon)
        if distance < radius:
            nearby.append(entry)
    return nearby


def parse_origin(lat: Optional[str], lon: Optional[str]) -> Origin:
    """
    Turn raw query-string values into an Origin.

    Raises ParseError when either value is missing, non-numeric or not finite.
    """
    if lat is None or lon is None:
        raise ParseError("both lat and lon are required for a proximity query")
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"non-numeric coordinate ({lat!r}, {lon!r})") from exc
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise ParseError(f"non-finite coordinate ({lat!r}, {lon!r})")
    return Origin(lat=lat_f, lon=lon_f)
