# funnelhq/shared/me_api.py
from fastapi import APIRouter, Depends

from funnelhq.access.permissions import group_permissions_by_resource
from funnelhq.access.roles import SubscriptionPlan
from funnelhq.access.snapshot import AuthSnapshot
from funnelhq.plans.features import features_for
from funnelhq.shared.auth import get_snapshot
from funnelhq.shared.http import ok
from funnelhq.trial.status import (
    banner_urgency,
    format_trial_time_remaining,
    get_effective_subscription_plan,
    should_block_access,
    trial_badge_text,
    trial_banner_tier,
    trial_notice,
)

router = APIRouter(prefix="/me", tags=["Me"])

def _trial_view(snap: AuthSnapshot) -> dict:
    status = snap.trial_status()
    return {
        **status.model_dump(mode="json"),
        "time_remaining_text": format_trial_time_remaining(status),
        "badge_text": trial_badge_text(status) if status.is_on_trial else None,
        "urgency": banner_urgency(status),
        "banner_tier": trial_banner_tier(status),
        "notice": trial_notice(status),
        "blocked": should_block_access(status),
    }

@router.get("/access")
def my_access(snap: AuthSnapshot = Depends(get_snapshot)):
    held = snap.permission_strings()
    return ok({
        "user_id": snap.user_id,
        "current_role": snap.current_role.value,
        "organization_id": snap.organization_id,
        "permissions": held,
        "grouped": group_permissions_by_resource(held),
    })

@router.get("/trial")
def my_trial(snap: AuthSnapshot = Depends(get_snapshot)):
    return ok(_trial_view(snap))

@router.get("/plan")
def my_plan(snap: AuthSnapshot = Depends(get_snapshot)):
    status = snap.trial_status()
    return ok({
        "current_plan": snap.subscription_plan.value,
        "effective_plan": get_effective_subscription_plan(snap.subscription_plan, status),
        "features": features_for(snap.subscription_plan, status).model_dump(),
        "days_left_in_trial": status.days_left if snap.subscription_plan == SubscriptionPlan.pro_trial else None,
    })
