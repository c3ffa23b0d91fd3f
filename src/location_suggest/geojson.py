from typing import Iterable, Optional

from .validate import Candidate


def _properties(candidate: Candidate) -> dict:
    properties = candidate.to_dict()
    properties["bounds"] = [
        [candidate.lat_min, candidate.lon_min],
        [candidate.lat_max, candidate.lon_max],
    ]
    return properties


def to_feature(candidate: Optional[Candidate]) -> Optional[dict]:
    if candidate is None:
        return None
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [candidate.longitude, candidate.latitude],
        },
        "properties": _properties(candidate),
    }


def to_featurecollection(candidates: Iterable[Candidate]) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [to_feature(c) for c in candidates or []],
    }
