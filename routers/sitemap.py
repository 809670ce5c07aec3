from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from utils.landmarks import MAP_BOUNDS, MAP_CENTER
from utils.visits import Visit, VisitRegistry, get_visit_registry


router = APIRouter(prefix="/sitemap", tags=["sitemap"])


class PositionIn(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


def _visit_or_404(visit_id: str, registry: VisitRegistry) -> Visit:
    visit = registry.get(visit_id)
    if not visit:
        raise HTTPException(404, "Visit not found")
    return visit


def _notification(event) -> dict:
    return {"ok": True, "notification": event.as_dict() if event else None}


@router.get("/landmarks")
def list_landmarks(registry: VisitRegistry = Depends(get_visit_registry)):
    return {
        "ok": True,
        "center": list(MAP_CENTER),
        "bounds": [list(corner) for corner in MAP_BOUNDS],
        "threshold_m": registry.threshold,
        "landmarks": [lm.as_dict() for lm in registry.landmarks],
    }


@router.post("/visits")
def start_visit(registry: VisitRegistry = Depends(get_visit_registry)):
    visit = registry.create()
    return {"ok": True, "visit_id": visit.id}


@router.post("/visits/{visit_id}/position")
def report_position(visit_id: str, payload: PositionIn, registry: VisitRegistry = Depends(get_visit_registry)):
    visit = _visit_or_404(visit_id, registry)
    event = visit.update(payload.latitude, payload.longitude, registry.now())
    return _notification(event)


@router.post("/visits/{visit_id}/simulate/{landmark_name}")
def simulate_position(visit_id: str, landmark_name: str, registry: VisitRegistry = Depends(get_visit_registry)):
    """Test mode: stand exactly on a landmark."""
    visit = _visit_or_404(visit_id, registry)
    landmark = visit.notifier.find(landmark_name)
    if not landmark:
        raise HTTPException(404, "Landmark not found")
    event = visit.update(landmark.latitude, landmark.longitude, registry.now())
    return _notification(event)


@router.post("/visits/{visit_id}/reset")
def reset_visit(visit_id: str, registry: VisitRegistry = Depends(get_visit_registry)):
    visit = _visit_or_404(visit_id, registry)
    visit.reset(registry.now())
    return {"ok": True}


@router.delete("/visits/{visit_id}")
def end_visit(visit_id: str, registry: VisitRegistry = Depends(get_visit_registry)):
    if not registry.drop(visit_id):
        raise HTTPException(404, "Visit not found")
    return {"ok": True}
