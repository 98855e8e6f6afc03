import uuid, bcrypt
from datetime import datetime
from sqlalchemy.orm import Session
from funnelhq.access.roles import Role, parse_role
from funnelhq.access.snapshot import AuthSnapshot, build_snapshot
from funnelhq.auth.models import User
from funnelhq.trial.service import start_trial

def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode(), bcrypt.gensalt()).decode()

def _verify(pw: str, ph: str) -> bool:
    try: return bcrypt.checkpw(pw.encode(), ph.encode())
    except ValueError: return False

def _public(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "role": u.role,
        "organization_id": u.organization_id,
        "subscription_plan": u.subscription_plan,
    }

def register_user(db: Session, email: str, password: str, role: str = "admin",
                  organization_id: str | None = None, now: datetime | None = None) -> dict:
    """
    Create an account. Without `organization_id` the account founds a new
    organization and must be its admin; joining an existing organization is
    the invite path and is up to the caller to authorize.
    """
    email = email.lower().strip()
    if db.query(User).filter(User.email == email).first():
        raise ValueError("email_already_registered")
    role = parse_role(role, strict=True)
    if organization_id is None:
        if role != Role.admin:
            raise ValueError("a new organization is founded by an admin")
        organization_id = str(uuid.uuid4())
    u = User(id=str(uuid.uuid4()), email=email, password_hash=_hash(password),
             role=role.value, organization_id=organization_id)
    db.add(u); db.commit(); db.refresh(u)
    # organization owners start on the Pro trial
    if role == Role.admin:
        start_trial(db, u, now=now)
    return _public(u)

def authenticate_user(db: Session, email: str, password: str) -> dict | None:
    u = db.query(User).filter(User.email == email.lower().strip()).first()
    if not u or not _verify(password, u.password_hash):
        return None
    return {"sub": u.id, "email": u.email, "role": u.role}

def get_account(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)

def snapshot_for(u: User) -> AuthSnapshot:
    return build_snapshot(
        u.id,
        u.role,
        u.subscription_plan,
        organization_id=u.organization_id,
        stripe_subscription_id=u.stripe_subscription_id,
        trial_start_date=u.trial_start_date,
        created_at=u.created_at,
    )
