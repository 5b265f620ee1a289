from __future__ import annotations

from fastapi import APIRouter, Depends

from notes_saas.core.metrics import request_metrics
from notes_saas.core.responses import ok
from notes_saas.deps import ADMIN_ONLY, require_role
from notes_saas.services.tenant_guard import TenantScope

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("/tenants")
def tenant_metrics(scope: TenantScope = Depends(require_role(ADMIN_ONLY))):
    # only the caller's own tenant; other tenants' traffic is not exposed
    return ok(
        "Metrics retrieved successfully",
        {"tenant_id": scope.tenant_id, "metrics": request_metrics.snapshot_for_tenant(str(scope.tenant_id))},
    )
