"""GeoEncoder - pure transform between Coordinate and stored point geometry.

Invariants:
    - encode() always emits EWKT tagged with SRID 4326, longitude first
    - decode(encode(c)) == c for every finite coordinate, including lat=0 / lon=0
    - decode() never raises: malformed payloads yield None ("coordinates absent")
    - Presence is explicit (None vs Coordinate), never numeric truthiness

Design Decisions:
    - Text is formatted with repr() so floats round-trip exactly
    - Parsing delegated to shapely (GEOS) for WKT, hex WKB/EWKB and raw WKB
"""

import logging
import math
import re

import shapely
from shapely.errors import GEOSException
from shapely.geometry import Point

from app.core.domain_types import Coordinate
from app.core.errors import ParseError

logger = logging.getLogger(__name__)

SRID = 4326

_EWKT_PREFIX = re.compile(r"^\s*SRID=(\d+);(.*)$", re.IGNORECASE | re.DOTALL)
_HEX = re.compile(r"^[0-9a-fA-F]+$")


def encode(coord: Coordinate) -> str:
    """Coordinate -> 'SRID=4326;POINT(lon lat)'."""
    return f"SRID={SRID};POINT({coord.lon!r} {coord.lat!r})"


def decode(stored: str | bytes | bytearray | memoryview | None) -> Coordinate | None:
    """Stored geometry -> Coordinate, or None when absent or unparsable."""
    if stored is None:
        return None
    try:
        return _to_coordinate(_parse(stored))
    except ParseError as e:
        logger.warning("Geometry decode failed: %s", e.message)
        return None
    except (GEOSException, ValueError, TypeError) as e:
        logger.warning("Geometry decode failed: %s", e)
        return None


def _parse(stored) -> Point:
    if isinstance(stored, (bytes, bytearray, memoryview)):
        geom = shapely.from_wkb(bytes(stored))
        _check_srid(shapely.get_srid(geom))
        return geom

    text = stored.strip()
    if not text:
        raise ParseError("empty geometry payload", "geometry")

    match = _EWKT_PREFIX.match(text)
    if match:
        _check_srid(int(match.group(1)))
        return shapely.from_wkt(match.group(2))
    if _HEX.match(text):
        geom = shapely.from_wkb(text)
        _check_srid(shapely.get_srid(geom))
        return geom
    return shapely.from_wkt(text)


def _check_srid(srid: int) -> None:
    # 0 means "untagged" WKB/WKT, accepted as WGS84
    if srid not in (0, SRID):
        raise ParseError(f"unexpected SRID {srid}", "geometry")


def _to_coordinate(geom) -> Coordinate:
    if not isinstance(geom, Point):
        raise ParseError(f"expected POINT, got {geom.geom_type}", "geometry")
    if geom.is_empty:
        raise ParseError("empty POINT", "geometry")
    lon, lat = geom.x, geom.y
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise ParseError("non-finite coordinate", "geometry")
    return Coordinate(lat=lat, lon=lon)
