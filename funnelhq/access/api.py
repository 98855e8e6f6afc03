# funnelhq/access/api.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from funnelhq.access.guard import evaluate_access
from funnelhq.access.permissions import NAVIGATION_ACCESS, can_access_route, has_project_permission
from funnelhq.access.roles import parse_project_role
from funnelhq.access.snapshot import AuthSnapshot
from funnelhq.shared.auth import get_snapshot
from funnelhq.shared.guard import route_fail_open
from funnelhq.shared.http import ok, err
from funnelhq.trial.status import get_allowed_routes_for_expired_trial

router = APIRouter(prefix="/access", tags=["Access"])

class AccessCheckIn(BaseModel):
    path: str = Field(min_length=1)
    route: str | None = None
    required_permissions: list[str] = Field(default_factory=list)

class ProjectCheckIn(BaseModel):
    project_role: str
    permission: str

@router.post("/check")
def api_check(inb: AccessCheckIn, snap: AuthSnapshot = Depends(get_snapshot)):
    # the routing layer asks before every navigation; route defaults to the path itself
    decision = evaluate_access(
        inb.path,
        snap,
        required_permissions=inb.required_permissions,
        route=inb.route if inb.route is not None else inb.path,
        fail_open=route_fail_open(),
    )
    return ok(decision.model_dump(mode="json"))

@router.get("/routes")
def api_routes(snap: AuthSnapshot = Depends(get_snapshot)):
    held = snap.permission_strings()
    return ok({
        "routes": {route: can_access_route(route, held, fail_open=route_fail_open()) for route in NAVIGATION_ACCESS},
        "expired_trial_routes": get_allowed_routes_for_expired_trial(),
    })

@router.post("/project")
def api_project_check(inb: ProjectCheckIn, snap: AuthSnapshot = Depends(get_snapshot)):
    try:
        project_role = parse_project_role(inb.project_role)
    except ValueError as e:
        return err("invalid_input", status=400, details=str(e))
    allowed = has_project_permission(snap.current_role, project_role, inb.permission)
    return ok({"allowed": allowed, "project_role": project_role.value, "permission": inb.permission})
