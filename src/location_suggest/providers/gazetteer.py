from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from ..http_client import AsyncJsonClient
from ..normalize import QueryDescriptor
from ..options import EngineOptions
from ..states import ALL
from .base import ProviderError


logger = logging.getLogger("lsg.providers.gazetteer")

DEFAULT_SERVICE_URL = "https://dashboard.waterdata.usgs.gov/service/geocoder/get/location/1.0"

# service property name -> Candidate field
FIELD_MAP = {
    "Type": "type",
    "Name": "name",
    "Label": "label",
    "County": "county",
    "State": "state",
    "Latitude": "latitude",
    "Longitude": "longitude",
    "LatitudeMin": "lat_min",
    "LatitudeMax": "lat_max",
    "LongitudeMin": "lon_min",
    "LongitudeMax": "lon_max",
    "Score": "score",
    "Source": "source",
}


def build_params(query: QueryDescriptor, options: EngineOptions) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "term": query.term,
        "include": ",".join(options.include_tokens),
        "maxSuggestions": options.max_suggestions,
    }
    if query.state_filter != ALL:
        params["states"] = query.states_key
    if options.bounds is not None:
        lat_min, lon_min, lat_max, lon_max = options.bounds
        params.update(
            {
                "latitudeMin": lat_min,
                "longitudeMin": lon_min,
                "latitudeMax": lat_max,
                "longitudeMax": lon_max,
            }
        )
    return params


def adapt_record(item: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in item.items():
        out[FIELD_MAP.get(key, key)] = value
    return out


def parse_response(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and payload.get("error"):
        raise ProviderError(f"service error: {payload['error']}")
    if not isinstance(payload, list):
        raise ProviderError("unexpected response (not an array)")
    records = []
    for item in payload:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object suggestion record: %r", item)
            continue
        records.append(adapt_record(item))
    return records


class GazetteerProvider:
    """Primary suggestion service: the structured place-name gazetteer."""

    name = "gazetteer"

    def __init__(self, service_url: Optional[str] = None, client: Optional[AsyncJsonClient] = None):
        self.service_url = (
            service_url or os.getenv("LSG_PRIMARY_URL") or DEFAULT_SERVICE_URL
        ).rstrip("/")
        self.client = client or AsyncJsonClient()

    async def suggest(self, query: QueryDescriptor, options: EngineOptions) -> List[Dict[str, Any]]:
        payload = await self.client.get_json(self.service_url, params=build_params(query, options))
        records = parse_response(payload)
        logger.debug("gazetteer returned %d records for %r", len(records), query.term)
        return records

    async def aclose(self) -> None:
        await self.client.aclose()
