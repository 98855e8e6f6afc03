# funnelhq/auth/api.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm

from funnelhq.access.roles import Role
from funnelhq.access.snapshot import AuthSnapshot
from funnelhq.shared.db import get_db
from funnelhq.shared.auth import create_access_token, get_snapshot
from funnelhq.shared.guard import require_role
from funnelhq.shared.http import err
from funnelhq.auth.service import register_user, authenticate_user
from funnelhq.shared.config import settings

router = APIRouter(prefix="/auth", tags=["Auth"])

class RegisterIn(BaseModel):
    email: EmailStr
    password: str

class InviteIn(BaseModel):
    email: EmailStr
    password: str
    role: str = "team_member"

@router.post("/register")
def api_register(inb: RegisterIn, db: Session = Depends(get_db)):
    # self-signup founds a new organization with the registrant as admin
    try:
        user = register_user(db, inb.email, inb.password)
        return {"ok": True, "user": user}
    except ValueError as e:
        raise HTTPException(400, str(e))

@router.post("/invite")
def api_invite(inb: InviteIn, snap: AuthSnapshot = Depends(require_role(Role.admin)),
               db: Session = Depends(get_db)):
    """Add a member to the calling admin's organization."""
    if snap.organization_id is None:
        err("caller has no organization", code="no_organization", status=409)
    try:
        user = register_user(db, inb.email, inb.password, role=inb.role,
                             organization_id=snap.organization_id)
        return {"ok": True, "user": user}
    except ValueError as e:
        raise HTTPException(400, str(e))

@router.post("/token")
def api_token(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    if settings.AUTH_DEMO:
        # return the demo token; user pastes it in Authorize
        return {"access_token": settings.DEMO_TOKEN, "token_type": "bearer", "demo": True}
    user = authenticate_user(db, form.username, form.password)
    if not user:
        raise HTTPException(401, "invalid credentials")
    token = create_access_token(sub=user["sub"], role=user["role"])
    return {"access_token": token, "token_type": "bearer", "demo": False}

@router.get("/me")
def api_me(snap = Depends(get_snapshot)):
    return {"ok": True, "user": snap.model_dump(mode="json")}
