from fastapi import HTTPException
from typing import Any, Optional

from funnelhq.access.guard import AccessDecision, AccessState

def ok(data: Any = None, **extra):
    return {"ok": True, "data": data, **extra}

def err(message: str, code: str = "bad_request", status: int = 400, details: Optional[Any] = None):
    # raising short-circuits the dependency chain
    raise HTTPException(status_code=status, detail={"ok": False, "error": {"code": code, "message": message, "details": details}})

def raise_for_decision(decision: AccessDecision):
    """Turn a non-ALLOWED decision into the matching HTTP error."""
    if decision.state == AccessState.DENIED:
        where = decision.route or decision.path
        err(f"You don't have permission to access {where}", code="access_denied", status=403,
            details={"current_role": decision.current_role,
                     "required_permissions": decision.required_permissions})
    if decision.state == AccessState.TRIAL_BLOCKED:
        err("Your trial has ended. Upgrade to continue.", code="trial_expired", status=402,
            details={"redirect_to": decision.redirect_to})
    if decision.state == AccessState.LOADING:
        err("authentication not resolved", code="unauthenticated", status=401)
