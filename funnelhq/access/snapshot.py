# funnelhq/access/snapshot.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from funnelhq.access.roles import Role, SubscriptionPlan, parse_role, parse_plan
from funnelhq.access.permissions import Permission, permissions_for_role, flatten_permissions
from funnelhq.trial.status import TrialStatus, calculate_trial_status, get_effective_subscription_plan


class AuthSnapshot(BaseModel):
    """Everything the guards need to know about the caller, resolved up front."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    current_role: Role
    permissions: list[Permission] = Field(default_factory=list)
    organization_id: str | None = None
    subscription_plan: SubscriptionPlan = SubscriptionPlan.solo
    stripe_subscription_id: str | None = None
    trial_start_date: datetime | None = None
    created_at: datetime | None = None

    def permission_strings(self) -> list[str]:
        return flatten_permissions(self.permissions)

    def has_permission(self, resource: str, action: str) -> bool:
        return any(p.resource == resource and action in p.actions for p in self.permissions)

    def trial_status(self, now: datetime | None = None) -> TrialStatus:
        # accounts created before trial tracking fall back to their signup time
        return calculate_trial_status(
            self.trial_start_date or self.created_at,
            self.subscription_plan,
            self.stripe_subscription_id,
            now=now,
        )

    def effective_plan(self, now: datetime | None = None) -> str:
        return get_effective_subscription_plan(self.subscription_plan, self.trial_status(now))


def build_snapshot(user_id: str, role, subscription_plan=None, **fields) -> AuthSnapshot:
    """Parse raw claim/record values into a snapshot with the role's permissions."""
    role = parse_role(role)
    return AuthSnapshot(
        user_id=user_id,
        current_role=role,
        permissions=permissions_for_role(role),
        subscription_plan=parse_plan(subscription_plan),
        **fields,
    )
