"""Latitude/longitude parsing for search terms.

Supported formats, all latitude first:

    8 tokens   D M S [N|S] D M S [E|W]   44 57 53.2728 N 93 14 27.4812 W
    6 tokens   [-]D M S [-]D M S         44 57 53 93 14 27          (W assumed)
    4 tokens   DD.DD [N|S] DDD.D [E|W]   30.123456789 S 90.123456789 E
    2 tokens   [-]DD.DD [-]DDD.D         30.123456789 90.123456789  (W assumed)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Sequence


_NUMBER_RE = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)$")

NORTH_SOUTH = {"N": 1.0, "S": -1.0}
EAST_WEST = {"E": 1.0, "W": -1.0}


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> tuple:
        return (self.latitude, self.longitude)


def _number(token: str) -> float:
    if not _NUMBER_RE.match(token):
        raise ValueError(f"not a number: {token!r}")
    return float(token)


def dms_to_decimal(degrees: str, minutes: str, seconds: str) -> float:
    d = _number(degrees)
    return math.copysign(1.0, d) * (abs(d) + _number(minutes) / 60 + _number(seconds) / 3600)


def _hemisphere(table: dict, token: str) -> float:
    if token not in table:
        raise ValueError(f"unrecognized hemisphere: {token!r}")
    return table[token]


def _decode(parts: Sequence[str]) -> Optional[tuple]:
    n = len(parts)
    if n == 8:
        lat = _hemisphere(NORTH_SOUTH, parts[3]) * abs(dms_to_decimal(*parts[0:3]))
        lon = _hemisphere(EAST_WEST, parts[7]) * abs(dms_to_decimal(*parts[4:7]))
    elif n == 6:
        lat = dms_to_decimal(*parts[0:3])
        lon = -abs(dms_to_decimal(*parts[3:6]))
    elif n == 4:
        lat = _hemisphere(NORTH_SOUTH, parts[1]) * abs(_number(parts[0]))
        lon = _hemisphere(EAST_WEST, parts[3]) * abs(_number(parts[2]))
    elif n == 2:
        lat = _number(parts[0])
        lon = -abs(_number(parts[1]))
    else:
        return None
    return lat, lon


def parse(tokens: Sequence[str], decimals: int = 6) -> Optional[Coordinate]:
    """Decode normalized (upper-case) term tokens into a Coordinate.

    Returns None for anything that is not one of the supported formats, so the
    caller can fall through to a text search.
    """
    parts = [str(t).strip().upper() for t in tokens if str(t).strip()]
    try:
        decoded = _decode(parts)
    except ValueError:
        return None
    if decoded is None:
        return None
    lat, lon = (round(v, decimals) for v in decoded)
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    # avoid "-0.0" in labels
    return Coordinate(latitude=lat + 0.0, longitude=lon + 0.0)
