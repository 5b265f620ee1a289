from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from notes_saas.core import config
from notes_saas.core.errors import AlreadyOnPlanError
from notes_saas.models.tenant import PLAN_FREE, PLAN_PRO, UNLIMITED_NOTES, Tenant
from notes_saas.utils.clock import utcnow

logger = logging.getLogger(__name__)

MODE_UPGRADE = "upgrade"
MODE_TOGGLE = "toggle"


@dataclass(frozen=True)
class PlanChange:
    tenant: Tenant
    previous_plan: str
    message: str


def _set_plan(db: Session, tenant_id: int, *, from_plan: str, to_plan: str) -> bool:
    max_notes = UNLIMITED_NOTES if to_plan == PLAN_PRO else config.FREE_PLAN_MAX_NOTES
    changed = (
        db.query(Tenant)
        .filter(Tenant.id == tenant_id, Tenant.plan == from_plan)
        .update(
            {Tenant.plan: to_plan, Tenant.max_notes: max_notes, Tenant.updated_at: utcnow()},
            synchronize_session=False,
        )
    )
    return changed == 1


def upgrade_tenant(db: Session, tenant: Tenant) -> PlanChange:
    """free -> pro. Only the conditional update decides, so two racing upgrades yield one success."""
    if not _set_plan(db, tenant.id, from_plan=PLAN_FREE, to_plan=PLAN_PRO):
        db.rollback()
        raise AlreadyOnPlanError()
    db.commit()
    db.refresh(tenant)
    logger.info("tenant upgraded tenant_id=%s slug=%s", tenant.id, tenant.slug)
    return PlanChange(tenant=tenant, previous_plan=PLAN_FREE, message="Tenant upgraded to Pro successfully")


def toggle_tenant_plan(db: Session, tenant: Tenant) -> PlanChange:
    db.refresh(tenant)
    current = tenant.plan
    target = PLAN_FREE if current == PLAN_PRO else PLAN_PRO
    if not _set_plan(db, tenant.id, from_plan=current, to_plan=target):
        # someone else flipped it first
        db.rollback()
        raise AlreadyOnPlanError(f"Tenant plan changed concurrently; it is no longer on {current}")
    db.commit()
    db.refresh(tenant)
    logger.info("tenant plan toggled tenant_id=%s from=%s to=%s", tenant.id, current, target)
    if target == PLAN_PRO:
        message = "Tenant upgraded to Pro successfully"
    else:
        message = "Tenant downgraded to Free successfully"
    return PlanChange(tenant=tenant, previous_plan=current, message=message)


def change_plan(db: Session, tenant: Tenant) -> PlanChange:
    if config.PLAN_CHANGE_MODE == MODE_TOGGLE:
        return toggle_tenant_plan(db, tenant)
    return upgrade_tenant(db, tenant)
