"""Secondary suggestions from the ArcGIS World geocoder (findAddressCandidates).

Reference: https://developers.arcgis.com/rest/geocode/api-reference/geocoding-find-address-candidates.htm
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from ..http_client import AsyncJsonClient
from ..normalize import QueryDescriptor
from ..options import EngineOptions
from ..states import abbreviate
from .base import ProviderError


logger = logging.getLogger("lsg.providers.arcgis")

DEFAULT_SERVICE_URL = (
    "https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer/findAddressCandidates"
)

# Level 1, level 2 and level 3 categories, closest to the gazetteer's place classes.
CATEGORIES = [
    "Address",
    "Postal",
    "Populated Place",
    "Arts and Entertainment",
    "Education",
    "Land Features",
    "Parks and Outdoors",
    "Residence",
    "Water Features",
    "Airport",
    "Bus Station",
    "Train Station",
]

OUT_FIELDS = [
    "Type",
    "Match_addr",
    "ShortLabel",
    "Subregion",
    "RegionAbbr",
    "Y",
    "X",
    "Ymin",
    "Ymax",
    "Xmin",
    "Xmax",
    "Score",
    "Loc_name",
]

ADDRESS_TYPE = "Addresses and Other Suggestions"


def build_params(query: QueryDescriptor, options: EngineOptions) -> Dict[str, Any]:
    lat_min, lon_min, lat_max, lon_max = options.geo_bounds
    return {
        "f": "json",
        "singleLine": query.term,
        "sourceCountry": "USA",
        "searchExtent": ",".join(str(v) for v in (lon_min, lat_min, lon_max, lat_max)),
        "category": ",".join(CATEGORIES),
        "maxLocations": options.max_suggestions,
        "outFields": ",".join(OUT_FIELDS),
    }


def map_candidate(candidate: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map one geocoder candidate to Candidate fields, or None to skip it."""
    attrs = candidate.get("attributes")
    if not isinstance(attrs, dict):
        return None
    place_type = str(attrs.get("Type") or "").strip()
    if place_type == "Country":
        # nonsense terms sometimes match whole countries
        return None
    state = abbreviate(attrs.get("RegionAbbr")) or abbreviate(attrs.get("Region"))
    if not state:
        return None
    match_addr = attrs.get("Match_addr") or candidate.get("address")
    loc_name = str(attrs.get("Loc_name") or "").strip().lower()
    return {
        "type": place_type or ADDRESS_TYPE,
        "label": match_addr,
        # street addresses have no type and no useful short label
        "name": attrs.get("ShortLabel") if place_type else match_addr,
        "county": attrs.get("Subregion"),
        "state": state,
        "latitude": attrs.get("Y"),
        "longitude": attrs.get("X"),
        "lat_min": attrs.get("Ymin"),
        "lat_max": attrs.get("Ymax"),
        "lon_min": attrs.get("Xmin"),
        "lon_max": attrs.get("Xmax"),
        "score": attrs.get("Score", candidate.get("score")),
        "source": f"esri-{loc_name}" if loc_name else None,
    }


def parse_response(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ProviderError("unexpected response (not an object)")
    if payload.get("error"):
        error = payload["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise ProviderError(f"service error: {message}")
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list):
        raise ProviderError("unexpected response (candidates not an array)")
    records = []
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        record = map_candidate(candidate)
        if record is not None:
            records.append(record)
    return records


class ArcGISGeocoderProvider:
    name = "arcgis"

    def __init__(self, service_url: Optional[str] = None, client: Optional[AsyncJsonClient] = None):
        self.service_url = (
            service_url or os.getenv("LSG_SECONDARY_URL") or DEFAULT_SERVICE_URL
        ).rstrip("/")
        self.client = client or AsyncJsonClient()

    async def suggest(self, query: QueryDescriptor, options: EngineOptions) -> List[Dict[str, Any]]:
        payload = await self.client.get_json(self.service_url, params=build_params(query, options))
        records = parse_response(payload)
        logger.debug("geocoder returned %d usable candidates for %r", len(records), query.term)
        return records

    async def aclose(self) -> None:
        await self.client.aclose()
