# funnelhq/plans/features.py
from types import MappingProxyType
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict

from funnelhq.access.roles import SubscriptionPlan
from funnelhq.trial.status import TrialStatus, TRIAL_DURATION_DAYS, get_effective_subscription_plan

UNLIMITED = -1
GB = 1024 ** 3

Resource = Literal["projects", "storage", "team_members"]


class PlanFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_projects: int
    max_storage: int  # bytes
    max_team_members: int
    can_invite_members: bool
    can_use_advanced_features: bool
    can_export_data: bool
    has_support: bool
    support_level: Literal["standard", "priority"]


_PRO = PlanFeatures(
    max_projects=UNLIMITED,
    max_storage=100 * GB,
    max_team_members=UNLIMITED,
    can_invite_members=True,
    can_use_advanced_features=True,
    can_export_data=True,
    has_support=True,
    support_level="priority",
)

PLAN_FEATURES: Mapping[str, PlanFeatures] = MappingProxyType({
    SubscriptionPlan.pro_trial.value: _PRO,
    SubscriptionPlan.pro.value: _PRO,
    SubscriptionPlan.solo.value: PlanFeatures(
        max_projects=3,
        max_storage=5 * GB,
        max_team_members=0,
        can_invite_members=False,
        can_use_advanced_features=False,
        can_export_data=True,
        has_support=True,
        support_level="standard",
    ),
})

_LIMIT_FIELDS = {
    "projects": "max_projects",
    "storage": "max_storage",
    "team_members": "max_team_members",
}


class LimitCheck(BaseModel):
    allowed: bool
    reason: str | None = None
    limit: int | None = None


def features_for(subscription_plan, status: TrialStatus) -> PlanFeatures:
    """Features of the effective plan; an expired trial gets solo features."""
    effective = get_effective_subscription_plan(subscription_plan, status)
    return PLAN_FEATURES.get(effective, PLAN_FEATURES[SubscriptionPlan.solo.value])


def check_feature(features: PlanFeatures, feature: str) -> bool:
    value = getattr(features, feature)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return bool(value)


def _trial_lapsed(subscription_plan, status: TrialStatus) -> bool:
    plan = getattr(subscription_plan, "value", subscription_plan)
    return status.is_trial_expired and plan == SubscriptionPlan.pro_trial.value


def check_limit(subscription_plan, status: TrialStatus, resource: Resource,
                current_count: int, additional_count: int = 0) -> LimitCheck:
    features = features_for(subscription_plan, status)
    limit = getattr(features, _LIMIT_FIELDS[resource])
    if limit == UNLIMITED:
        return LimitCheck(allowed=True)

    if current_count + additional_count > limit:
        label = resource.replace("_", " ")
        if _trial_lapsed(subscription_plan, status):
            reason = f"Your trial has expired. Please upgrade to continue using {label}."
        else:
            effective = get_effective_subscription_plan(subscription_plan, status)
            reason = f"You've reached the {label} limit for your {effective} plan ({limit} max)"
        return LimitCheck(allowed=False, reason=reason, limit=limit)

    return LimitCheck(allowed=True, limit=limit)


def upgrade_prompt(subscription_plan, status: TrialStatus, feature: str) -> dict:
    if _trial_lapsed(subscription_plan, status):
        return {
            "title": "Trial Expired",
            "message": f"Your {TRIAL_DURATION_DAYS}-day Pro trial has expired. Upgrade to continue using {feature}.",
        }
    effective = get_effective_subscription_plan(subscription_plan, status)
    return {
        "title": "Upgrade Required",
        "message": f"The {feature} feature requires an upgraded plan. Your current plan is {effective}.",
    }
