from __future__ import annotations

import re
from typing import FrozenSet, Optional


ALL = "ALL"

LOWER_48 = (
    "AL AZ AR CA CO CT DE FL GA ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE "
    "NV NH NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY"
).split()

# Territories and freely associated states, in addition to the 50 states + DC.
TERRITORIES = ["GU", "PR", "VI", "AS", "FM", "MH", "MP", "PW", "UM"]

ALL_CODES: FrozenSet[str] = frozenset(LOWER_48 + ["AK", "HI", "DC"] + TERRITORIES)

SHORTCUTS = {
    "48": frozenset(LOWER_48 + ["DC"]),
    "50": frozenset(LOWER_48 + ["AK", "HI", "DC"]),
    "USGS": frozenset(LOWER_48 + ["AK", "HI", "DC", "GU", "PR", "VI"]),
    "ALL": ALL_CODES,
}

LONG_TO_ABBR = {
    "ALABAMA": "AL",
    "ALASKA": "AK",
    "AMERICAN SAMOA": "AS",
    "ARIZONA": "AZ",
    "ARKANSAS": "AR",
    "CALIFORNIA": "CA",
    "COLORADO": "CO",
    "CONNECTICUT": "CT",
    "DELAWARE": "DE",
    "DISTRICT OF COLUMBIA": "DC",
    "WASHINGTON, D.C.": "DC",
    "FLORIDA": "FL",
    "GEORGIA": "GA",
    "GUAM": "GU",
    "HAWAII": "HI",
    "IDAHO": "ID",
    "ILLINOIS": "IL",
    "INDIANA": "IN",
    "IOWA": "IA",
    "KANSAS": "KS",
    "KENTUCKY": "KY",
    "LOUISIANA": "LA",
    "MAINE": "ME",
    "MARYLAND": "MD",
    "MASSACHUSETTS": "MA",
    "MICHIGAN": "MI",
    "MINNESOTA": "MN",
    "MISSISSIPPI": "MS",
    "MISSOURI": "MO",
    "MONTANA": "MT",
    "NEBRASKA": "NE",
    "NEVADA": "NV",
    "NEW HAMPSHIRE": "NH",
    "NEW JERSEY": "NJ",
    "NEW MEXICO": "NM",
    "NEW YORK": "NY",
    "NORTH CAROLINA": "NC",
    "NORTH DAKOTA": "ND",
    "NORTHERN MARIANA ISLANDS": "MP",
    "OHIO": "OH",
    "OKLAHOMA": "OK",
    "OREGON": "OR",
    "PENNSYLVANIA": "PA",
    "PUERTO RICO": "PR",
    "RHODE ISLAND": "RI",
    "SOUTH CAROLINA": "SC",
    "SOUTH DAKOTA": "SD",
    "TENNESSEE": "TN",
    "TEXAS": "TX",
    "UTAH": "UT",
    "VERMONT": "VT",
    "VIRGIN ISLANDS": "VI",
    "VIRGINIA": "VA",
    "WASHINGTON": "WA",
    "WEST VIRGINIA": "WV",
    "WISCONSIN": "WI",
    "WYOMING": "WY",
}

_SPLIT_RE = re.compile(r"[\s,]+")


def split_codes(value: Optional[str]) -> list:
    if not value:
        return []
    return [part for part in _SPLIT_RE.split(str(value).strip().upper()) if part]


def expand_states(value: Optional[str]) -> FrozenSet[str]:
    """Resolve a states option (codes or a shortcut) to a set of codes.

    Unset resolves to every recognized code. Unknown codes raise ValueError.
    """
    parts = split_codes(value)
    if not parts:
        return ALL_CODES
    if len(parts) == 1 and parts[0] in SHORTCUTS:
        return SHORTCUTS[parts[0]]
    unknown = [p for p in parts if p not in ALL_CODES]
    if unknown:
        raise ValueError(f"Unrecognized state code(s): {', '.join(unknown)}")
    return frozenset(parts)


def is_unrestricted(value: Optional[str]) -> bool:
    parts = split_codes(value)
    return not parts or parts == [ALL]


def abbreviate(name: Optional[str]) -> str:
    """Map a state code or long state name to its 2-letter code ("" if unknown)."""
    if not name:
        return ""
    key = str(name).strip().upper()
    if key in ALL_CODES:
        return key
    return LONG_TO_ABBR.get(key, "")
