# funnelhq/shared/guard.py
from fastapi import Depends, Request

from funnelhq.access.guard import evaluate_access
from funnelhq.access.roles import Role
from funnelhq.access.snapshot import AuthSnapshot
from funnelhq.plans.features import features_for, check_feature, upgrade_prompt
from funnelhq.shared.auth import get_snapshot
from funnelhq.shared.config import settings
from funnelhq.shared.http import err, raise_for_decision

def route_fail_open() -> bool:
    return settings.ROUTE_POLICY.lower() != "closed"

def require_route(route: str):
    """
    Use as a FastAPI dependency: the caller must be allowed to view `route`
    (navigation table) and must not be locked out by an expired trial.
    Returns the snapshot so endpoints don't resolve it twice.
    """
    def _dep(request: Request, snap: AuthSnapshot = Depends(get_snapshot)):
        decision = evaluate_access(request.url.path, snap, route=route, fail_open=route_fail_open())
        raise_for_decision(decision)
        return snap
    return _dep

def require_permissions(*permissions: str):
    # every listed permission is required
    def _dep(request: Request, snap: AuthSnapshot = Depends(get_snapshot)):
        decision = evaluate_access(request.url.path, snap, required_permissions=permissions)
        raise_for_decision(decision)
        return snap
    return _dep

def require_role(*roles: Role):
    def _dep(snap: AuthSnapshot = Depends(get_snapshot)):
        if snap.current_role not in roles:
            err("role not allowed", code="access_denied", status=403,
                details={"current_role": snap.current_role.value, "allowed_roles": [r.value for r in roles]})
        return snap
    return _dep

def require_feature(feature: str):
    """Block when the caller's effective plan lacks `feature` (e.g. can_invite_members)."""
    def _dep(snap: AuthSnapshot = Depends(get_snapshot)):
        status = snap.trial_status()
        if not check_feature(features_for(snap.subscription_plan, status), feature):
            prompt = upgrade_prompt(snap.subscription_plan, status, feature)
            err(prompt["message"], code="upgrade_required", status=403,
                details={"title": prompt["title"], "effective_plan": snap.effective_plan()})
        return snap
    return _dep
