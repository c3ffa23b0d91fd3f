"""Package initializer for `location_suggest`."""

from .engine import ResolutionEngine
from .options import EngineOptions
from .registry import create, destroy, get
from .validate import Candidate

__all__ = ["Candidate", "EngineOptions", "ResolutionEngine", "create", "destroy", "get"]
