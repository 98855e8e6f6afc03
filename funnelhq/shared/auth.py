# funnelhq/shared/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError  # python-jose[cryptography]
from sqlalchemy.orm import Session

from funnelhq.access.snapshot import AuthSnapshot, build_snapshot
from funnelhq.auth.service import get_account, snapshot_for
from funnelhq.shared.config import settings
from funnelhq.shared.db import get_db

bearer = HTTPBearer(auto_error=False, scheme_name="bearerAuth")

def create_access_token(
    sub: str,
    role: str = "client",
    extra: Optional[Dict[str, Any]] = None,
    minutes: Optional[int] = None,
) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes or settings.JWT_EXPIRE_MIN)
    payload: Dict[str, Any] = {
        "sub": sub,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if settings.JWT_ISS:
        payload["iss"] = settings.JWT_ISS
    if settings.JWT_AUD:
        payload["aud"] = settings.JWT_AUD
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.JWT_KEY, algorithm=settings.JWT_ALG)

def get_user(creds: HTTPAuthorizationCredentials = Depends(bearer)):
    # Always require a bearer token
    if not creds:
        raise HTTPException(401, "missing bearer token")

    token = creds.credentials

    # Demo shortcut (strict: must match DEMO_TOKEN exactly)
    if settings.AUTH_DEMO and token == settings.DEMO_TOKEN:
        return {"sub": "demo-user", "role": settings.DEMO_ROLE, "mode": "demo"}

    try:
        payload = jwt.decode(
            token,
            settings.JWT_KEY,
            algorithms=[settings.JWT_ALG],
            audience=settings.JWT_AUD,
            issuer=settings.JWT_ISS,
            options={
                "verify_aud": bool(settings.JWT_AUD),
                "verify_iss": bool(settings.JWT_ISS),
            },
        )
    except JWTError as e:
        raise HTTPException(401, f"invalid token: {e}")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(401, "invalid token: missing sub")

    return {"sub": sub, "role": payload.get("role", "client"), "mode": "jwt"}

def get_snapshot(user=Depends(get_user), db: Session = Depends(get_db)) -> AuthSnapshot:
    """Resolve the caller into an AuthSnapshot (role, permissions, plan, trial dates)."""
    if user["mode"] == "demo":
        # the demo user has no stored record: a trial that starts now
        return build_snapshot(user["sub"], user["role"], settings.DEMO_PLAN)

    account = get_account(db, user["sub"])
    if account is None:
        raise HTTPException(401, "invalid token: unknown account")
    # stored role wins over the token claim
    return snapshot_for(account)
