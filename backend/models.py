"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════
# Audit Models
# ═══════════════════════════════════════════════════════

class AuditRequest(BaseModel):
    """Audit request."""
    domain: str = Field(..., description="Domain or URL to audit")
    checks: Optional[List[str]] = Field(
        None, description="Checks to run in addition to topology (all when omitted)"
    )


class CheckDescriptorModel(BaseModel):
    """Available check."""
    check_id: str = Field(..., description="Check identifier")
    label: str = Field(..., description="Human-readable check name")
    enabled: bool = Field(..., description="Enabled by default")


class ChecksResponse(BaseModel):
    """List of available checks in execution order."""
    checks: List[CheckDescriptorModel] = Field(..., description="Checks in declaration order")


class AuditResponse(BaseModel):
    """Audit report (serialized AuditReport)."""
    domain: str = Field(..., description="Audited domain")
    summary_title: str = Field(..., description="Checklist title after the run")
    overall_status: str = Field(..., description="Worst terminal status")
    started_at: str = Field(..., description="Start timestamp (ISO format)")
    completed_at: str = Field(..., description="Completion timestamp (ISO format)")
    duration_seconds: float = Field(..., description="Run duration")
    counts: Dict[str, int] = Field(..., description="Result counts by status")
    results: List[Dict[str, Any]] = Field(..., description="Per-check results")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Run metadata")
    recommendations: List[Dict[str, Any]] = Field(default_factory=list, description="Prioritized fixes")


# ═══════════════════════════════════════════════════════
# Health Models
# ═══════════════════════════════════════════════════════

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: Optional[str] = Field(None, description="Engine version")
    checks: List[str] = Field(default_factory=list, description="Registered checks")
