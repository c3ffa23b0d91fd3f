from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .engine import ResolutionEngine


logger = logging.getLogger("lsg.registry")

_CONTROLS: Dict[str, ResolutionEngine] = {}


def create(control_id: str, options: Any = None, **engine_kwargs: Any) -> Optional[ResolutionEngine]:
    key = str(control_id or "").strip()
    if not key:
        logger.warning("Control id is required; no engine created")
        return None
    if key in _CONTROLS:
        logger.warning("Control %r already exists; no engine created", key)
        return None
    engine = ResolutionEngine(key, options, **engine_kwargs)
    _CONTROLS[key] = engine
    return engine


def get(control_id: str) -> Optional[ResolutionEngine]:
    return _CONTROLS.get(str(control_id or "").strip())


def destroy(control_id: str) -> bool:
    engine = get(control_id)
    if engine is None:
        return False
    engine.destroy()
    return True


def control_ids() -> List[str]:
    return sorted(_CONTROLS)


def clear() -> None:
    """Test helper: destroy every registered engine."""
    for engine in list(_CONTROLS.values()):
        engine.destroy()
    _CONTROLS.clear()


def _unregister(control_id: str, engine: ResolutionEngine) -> None:
    if _CONTROLS.get(control_id) is engine:
        del _CONTROLS[control_id]
