"""Admin endpoints: dashboard counters, invariant audit, export/import."""

from dataclasses import asdict

from fastapi import APIRouter, Body, Depends

from ticket_ai.dependencies import get_support_service
from ticket_ai.services.support_service import SupportService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
def dashboard_stats(service: SupportService = Depends(get_support_service)):
    return asdict(service.dashboard_stats())


@router.get("/invariants")
def invariants(service: SupportService = Depends(get_support_service)):
    violations = service.check_invariants()
    return {"ok": not violations, "violations": violations}


@router.get("/export")
def export_data(service: SupportService = Depends(get_support_service)):
    return service.export_data()


@router.post("/import")
def import_data(payload: dict = Body(...), service: SupportService = Depends(get_support_service)):
    service.import_data(payload)
    return {"success": True}
