# funnelhq/trial/status.py
"""
Trial status calculator and the decision functions built on it.

Everything here is pure: pass ``now`` to pin the clock. Two time rules coexist:
``days_left`` counts calendar days (midnight to midnight in the
timezone of ``now``) while ``hours_left`` counts exact elapsed time to the end
of the trial. Near midnight they can disagree.
"""
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from funnelhq.access.roles import SubscriptionPlan

TRIAL_DURATION_DAYS = 14
UPGRADE_BANNER_DAYS = 7
EXPIRED_TRIAL_REDIRECT = "/billing"

_EXPIRED_TRIAL_ROUTES = ("/billing", "/support", "/login", "/signup", "/profile")

Urgency = Literal["expired", "critical", "urgent", "normal"]
BannerTier = Literal["expired", "urgent", "warning"]


class TrialStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_on_trial: bool
    is_trial_expired: bool
    days_left: int
    hours_left: int
    trial_end_date: Optional[datetime] = None
    show_upgrade_banner: bool


def _plan_value(plan) -> str:
    return plan.value if isinstance(plan, SubscriptionPlan) else str(plan)


def _as_datetime(value, tz) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def calculate_trial_status(
    trial_start_date,
    subscription_plan="solo",
    stripe_subscription_id: str | None = None,
    now: datetime | None = None,
) -> TrialStatus:
    """Compute where a user or organization stands in its Pro trial.

    ``trial_start_date`` may be a datetime, a date, an ISO-8601 string
    (anything ``datetime.fromisoformat`` reads on 3.11+) or None.
    None on a ``pro_trial`` plan means the trial starts now.
    """
    plan = _plan_value(subscription_plan)

    # paid subscription
    if stripe_subscription_id or plan == SubscriptionPlan.pro.value:
        return TrialStatus(is_on_trial=False, is_trial_expired=False, days_left=0, hours_left=0,
                           trial_end_date=None, show_upgrade_banner=False)

    # solo users get nudged to upgrade
    if plan != SubscriptionPlan.pro_trial.value:
        return TrialStatus(is_on_trial=False, is_trial_expired=False, days_left=0, hours_left=0,
                           trial_end_date=None, show_upgrade_banner=True)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if not trial_start_date:
        return TrialStatus(
            is_on_trial=True,
            is_trial_expired=False,
            days_left=TRIAL_DURATION_DAYS,
            hours_left=TRIAL_DURATION_DAYS * 24,
            trial_end_date=now + timedelta(days=TRIAL_DURATION_DAYS),
            show_upgrade_banner=False,
        )

    start_day = _midnight(_as_datetime(trial_start_date, now.tzinfo))
    days_passed = (now.date() - start_day.date()).days

    # a start date in the future counts as starting today
    days_left = min(TRIAL_DURATION_DAYS, max(0, TRIAL_DURATION_DAYS - days_passed))
    trial_end_date = start_day + timedelta(days=TRIAL_DURATION_DAYS)
    is_trial_expired = days_left == 0

    seconds_left = (trial_end_date - now).total_seconds()
    hours_left = max(1, math.ceil(seconds_left / 3600)) if seconds_left > 0 else 0

    return TrialStatus(
        is_on_trial=True,
        is_trial_expired=is_trial_expired,
        days_left=days_left,
        hours_left=hours_left,
        trial_end_date=trial_end_date,
        show_upgrade_banner=is_trial_expired or days_left <= UPGRADE_BANNER_DAYS,
    )


def should_block_access(status: TrialStatus) -> bool:
    return status.is_on_trial and status.is_trial_expired


def should_downgrade_to_solo(subscription_plan, status: TrialStatus) -> bool:
    return _plan_value(subscription_plan) == SubscriptionPlan.pro_trial.value and status.is_trial_expired


def get_effective_subscription_plan(subscription_plan, status: TrialStatus) -> str:
    """Plan to use for feature gating, before the sweep job has caught up."""
    if should_downgrade_to_solo(subscription_plan, status):
        return SubscriptionPlan.solo.value
    return _plan_value(subscription_plan)


def get_allowed_routes_for_expired_trial() -> list[str]:
    return list(_EXPIRED_TRIAL_ROUTES)


def is_route_allowed_for_expired_trial(path: str) -> bool:
    # prefix match: /billing/success is as reachable as /billing
    return any(path.startswith(route) for route in _EXPIRED_TRIAL_ROUTES)


def format_trial_time_remaining(status: TrialStatus) -> str:
    if not status.is_on_trial:
        return ""
    if status.is_trial_expired:
        return "Trial expired"
    if status.days_left == 0:
        return f"{status.hours_left} hours left"
    if status.days_left == 1:
        return "1 day left"
    return f"{status.days_left} days left"


def banner_urgency(status: TrialStatus) -> Urgency | None:
    """Urgency tier for the trial badge; None when there is no trial to show."""
    if not status.is_on_trial:
        return None
    if status.is_trial_expired:
        return "expired"
    if status.days_left <= 1:
        return "critical"
    if status.days_left <= 3:
        return "urgent"
    return "normal"


def trial_banner_tier(status: TrialStatus) -> BannerTier | None:
    # the top-of-page banner only renders once show_upgrade_banner is set
    if not status.is_on_trial or not status.show_upgrade_banner:
        return None
    if status.is_trial_expired:
        return "expired"
    return "urgent" if status.days_left <= 3 else "warning"


def trial_badge_text(status: TrialStatus) -> str:
    if status.is_trial_expired:
        return "Expired"
    if status.days_left <= 1:
        return f"{status.hours_left}h left"
    return f"{status.days_left} days left"


def trial_notice(status: TrialStatus) -> dict | None:
    """Reminder shown when a trial has ended or has at most three days left."""
    if not status.is_on_trial or status.trial_end_date is None:
        return None
    if status.is_trial_expired:
        return {
            "title": "Trial Expired",
            "message": f"Your {TRIAL_DURATION_DAYS}-day Pro trial has ended. "
                       "Upgrade now to continue using all features.",
            "variant": "destructive",
            "action": {"label": "Upgrade Now", "href": EXPIRED_TRIAL_REDIRECT},
        }
    if 0 < status.days_left <= 3:
        lead = (f"Your trial expires in {status.hours_left} hours!" if status.days_left == 1
                else f"Your trial expires in {status.days_left} days.")
        return {
            "title": "Trial Ending Soon",
            "message": lead + " Upgrade to Pro to keep all your features.",
            "variant": "default",
            "action": {"label": "View Plans", "href": EXPIRED_TRIAL_REDIRECT},
        }
    return None
