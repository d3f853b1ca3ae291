"""Audit router."""

import logging

from fastapi import APIRouter, HTTPException, Request

from backend.models import AuditRequest, AuditResponse, ChecksResponse
from siteaudit.core.errors import TargetResolutionError
from siteaudit.orchestrator import AuditOrchestrator, build_descriptors, parse_check_ids
from siteaudit.reports.generator import ReportGenerator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["audit"])


def get_orchestrator(request: Request) -> AuditOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(503, "Orchestrator not initialized")
    return orchestrator


@router.get("/checks", response_model=ChecksResponse)
async def list_checks():
    """Доступные проверки в порядке выполнения."""
    return {
        "checks": [
            {"check_id": d.check_id.value, "label": d.label, "enabled": d.enabled}
            for d in build_descriptors()
        ]
    }


@router.post("/audit", response_model=AuditResponse)
async def run_audit(body: AuditRequest, request: Request):
    """Запустить аудит домена и вернуть отчёт."""
    orchestrator = get_orchestrator(request)

    try:
        enabled = parse_check_ids(body.checks) if body.checks is not None else None
        report = await orchestrator.run_audit(body.domain, enabled)
    except TargetResolutionError as e:
        raise HTTPException(422, f"Invalid domain: {e}")
    except ValueError as e:
        raise HTTPException(422, str(e))

    logger.info(f"Audit API: {report.target.domain} -> {report.overall_status.value}")

    payload = report.to_dict()
    payload["recommendations"] = ReportGenerator().generate_recommendations(report)
    return payload
