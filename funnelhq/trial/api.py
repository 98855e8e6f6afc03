# funnelhq/trial/api.py
import hmac

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from funnelhq.auth.service import get_account
from funnelhq.shared.config import settings
from funnelhq.shared.db import get_db
from funnelhq.shared.http import ok, err
from funnelhq.trial.service import activate_subscription, sweep_expired_trials

router = APIRouter(prefix="/trial", tags=["Trial"])

def require_webhook_secret(
    secret: str | None = Header(default=None, alias="X-Webhook-Secret"),
):
    """Billing callbacks and operator jobs authenticate with a shared secret, not a user token."""
    if not settings.WEBHOOK_SECRET:
        err("webhook secret is not configured", code="webhook_disabled", status=503)
    if not secret or not hmac.compare_digest(secret.encode(), settings.WEBHOOK_SECRET.encode()):
        err("invalid webhook secret", code="unauthorized", status=401)

class ActivateIn(BaseModel):
    account_id: str = Field(min_length=1)
    stripe_subscription_id: str = Field(min_length=1)

@router.post("/activate", dependencies=[Depends(require_webhook_secret)])
def api_activate(inb: ActivateIn, db: Session = Depends(get_db)):
    # checkout-completed webhook
    account = get_account(db, inb.account_id)
    if account is None:
        return err("unknown account", code="not_found", status=404)
    account = activate_subscription(db, account, inb.stripe_subscription_id)
    return ok({"account_id": account.id, "subscription_plan": account.subscription_plan})

@router.post("/sweep", dependencies=[Depends(require_webhook_secret)])
def api_sweep(db: Session = Depends(get_db)):
    return ok({"downgraded": sweep_expired_trials(db)})
