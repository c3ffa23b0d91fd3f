import logging

from fastapi import FastAPI, HTTPException

from location_suggest import registry
from location_suggest.api.schemas import ControlCreate, ControlInfo, SelectRequest
from location_suggest.engine import ResolutionEngine


logger = logging.getLogger("lsg.api")


def health():
    return {"status": "ok"}


def _describe(engine: ResolutionEngine) -> ControlInfo:
    o = engine.options
    return ControlInfo(
        control_id=engine.control_id,
        bounds=list(o.bounds) if o.bounds is not None else None,
        states=o.states,
        include=o.include,
        max_suggestions=o.max_suggestions,
        min_characters=o.min_characters,
        debounce_ms=o.debounce_ms,
        timeout_ms=o.timeout_ms,
        min_score=o.min_score,
        coordinate_decimals=o.coordinate_decimals,
        secondary=o.secondary,
    )


def _engine_or_404(control_id: str) -> ResolutionEngine:
    engine = registry.get(control_id)
    if engine is None:
        raise HTTPException(status_code=404, detail=f"unknown control: {control_id}")
    return engine


app = FastAPI()


if app:

    @app.get("/health")
    def health_route():
        return health()

    @app.post("/api/controls", status_code=201, response_model=ControlInfo)
    def create_control(payload: ControlCreate):
        engine = registry.create(payload.control_id, payload.options)
        if engine is None:
            raise HTTPException(status_code=409, detail=f"control already exists: {payload.control_id}")
        logger.info("created control %s", engine.control_id)
        return _describe(engine)

    @app.get("/api/controls/{control_id}", response_model=ControlInfo)
    def get_control(control_id: str):
        return _describe(_engine_or_404(control_id))

    @app.get("/api/controls/{control_id}/suggestions")
    async def suggestions(control_id: str, q: str = ""):
        engine = _engine_or_404(control_id)
        await engine.resolve(q)
        return engine.get_suggestions()

    @app.post("/api/controls/{control_id}/select")
    def select(control_id: str, payload: SelectRequest):
        engine = _engine_or_404(control_id)
        if engine.select(payload.index) is None:
            raise HTTPException(status_code=400, detail=f"no suggestion at index {payload.index}")
        return engine.get_selected()

    @app.get("/api/controls/{control_id}/selected")
    def selected(control_id: str):
        return {"feature": _engine_or_404(control_id).get_selected()}

    @app.delete("/api/controls/{control_id}")
    async def delete_control(control_id: str):
        engine = _engine_or_404(control_id)
        await engine.aclose()
        return {"deleted": control_id}

    @app.on_event("shutdown")
    async def _close_controls():
        for control_id in registry.control_ids():
            engine = registry.get(control_id)
            if engine is not None:
                await engine.aclose()
