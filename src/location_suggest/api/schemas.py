from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ControlCreate(BaseModel):
    control_id: str = Field(..., min_length=1)
    options: Dict[str, Any] = Field(default_factory=dict)


class SelectRequest(BaseModel):
    index: int


class ControlInfo(BaseModel):
    control_id: str
    bounds: Optional[List[float]] = None
    states: Optional[str] = None
    include: str
    max_suggestions: int
    min_characters: int
    debounce_ms: int
    timeout_ms: int
    min_score: float
    coordinate_decimals: int
    secondary: bool
