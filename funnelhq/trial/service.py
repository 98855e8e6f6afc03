# funnelhq/trial/service.py
"""
Jobs that move an account through the trial lifecycle.

These are the only writers of subscription_plan / trial_start_date /
stripe_subscription_id; status calculations elsewhere only read them.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from funnelhq.access.roles import SubscriptionPlan
from funnelhq.auth.models import User
from funnelhq.trial.status import calculate_trial_status, should_downgrade_to_solo

logger = logging.getLogger(__name__)


def start_trial(db: Session, user: User, now: datetime | None = None) -> User:
    """Put a fresh account on the Pro trial. A trial that already started is left alone."""
    if user.trial_start_date is None:
        user.trial_start_date = now or datetime.now(timezone.utc)
        user.subscription_plan = SubscriptionPlan.pro_trial.value
        db.commit()
        db.refresh(user)
        logger.info("trial started for user %s", user.id)
    return user


def activate_subscription(db: Session, user: User, stripe_subscription_id: str) -> User:
    # checkout completed
    if not stripe_subscription_id:
        raise ValueError("stripe_subscription_id is required")
    user.subscription_plan = SubscriptionPlan.pro.value
    user.stripe_subscription_id = stripe_subscription_id
    db.commit()
    db.refresh(user)
    logger.info("user %s upgraded to pro (%s)", user.id, stripe_subscription_id)
    return user


def sweep_expired_trials(db: Session, now: datetime | None = None) -> int:
    """Downgrade every lapsed, unpaid pro_trial account to solo. Returns the count."""
    stmt = select(User).where(
        User.subscription_plan == SubscriptionPlan.pro_trial.value,
        User.stripe_subscription_id.is_(None),
    )
    downgraded = 0
    for user in db.scalars(stmt).all():
        status = calculate_trial_status(
            user.trial_start_date or user.created_at,
            user.subscription_plan,
            user.stripe_subscription_id,
            now=now,
        )
        if should_downgrade_to_solo(user.subscription_plan, status):
            user.subscription_plan = SubscriptionPlan.solo.value
            downgraded += 1
    if downgraded:
        db.commit()
    logger.info("trial sweep downgraded %d account(s)", downgraded)
    return downgraded
