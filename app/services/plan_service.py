import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.db.models.job import JOB_TIERS, TIER_FEATURED, TIER_NORMAL
from app.db.models.plan import Plan

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {"name": "Job Posting - 30 Days", "tier": TIER_NORMAL, "visibility_days": 30, "price": 9900, "credits": 1},
    {"name": "Featured Job - 30 Days", "tier": TIER_FEATURED, "visibility_days": 30, "price": 19900, "credits": 1},
]


def list_active_plans(db: Session) -> List[Plan]:
    return db.query(Plan).filter(Plan.is_active.is_(True)).order_by(Plan.price.asc(), Plan.id.asc()).all()


def get_plan(db: Session, plan_id: int) -> Plan:
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


def resolve_plan(db: Session, plan_id: Optional[int] = None, tier: Optional[str] = None) -> Plan:
    """
    The plan a checkout is for: an explicit active plan id, otherwise the first
    active plan of ``tier`` (featured when neither is given).
    """
    if plan_id is not None:
        plan = get_plan(db, plan_id)
        if not plan.is_active:
            raise ValidationError("Plan is not available")
        return plan

    tier = tier or TIER_FEATURED
    if tier not in JOB_TIERS:
        raise ValidationError(f"tier must be one of {', '.join(JOB_TIERS)}")
    plan = (
        db.query(Plan)
        .filter(Plan.tier == tier, Plan.is_active.is_(True))
        .order_by(Plan.id.asc())
        .first()
    )
    if not plan:
        raise NotFoundError(f"No active plan for tier '{tier}'")
    return plan


def seed_default_plans(db: Session) -> List[Plan]:
    """Deactivate the current catalogue and insert DEFAULT_PLANS."""
    try:
        db.query(Plan).filter(Plan.is_active.is_(True)).update({Plan.is_active: False}, synchronize_session=False)
        plans = [Plan(is_active=True, **values) for values in DEFAULT_PLANS]
        db.add_all(plans)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for plan in plans:
        logger.info(f"Plan seeded: plan_id={plan.id}, tier={plan.tier}, price={plan.price}")
    return plans
