# funnelhq/access/guard.py
"""
Per-navigation access decision.

LOADING -> CHECKING_ROUTE -> DENIED | TRIAL_BLOCKED | ALLOWED

The decision is recomputed from the latest snapshot on every call; nothing is
cached between navigations.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field

from funnelhq.access.permissions import NAVIGATION_ACCESS, can_access_route
from funnelhq.access.snapshot import AuthSnapshot
from funnelhq.trial.status import (
    EXPIRED_TRIAL_REDIRECT,
    should_block_access,
    is_route_allowed_for_expired_trial,
)

logger = logging.getLogger(__name__)


class AccessState(str, Enum):
    LOADING = "loading"
    CHECKING_ROUTE = "checking_route"
    DENIED = "denied"
    TRIAL_BLOCKED = "trial_blocked"
    ALLOWED = "allowed"


class AccessDecision(BaseModel):
    state: AccessState
    path: str
    current_role: str | None = None
    route: str | None = None
    required_permissions: list[str] = Field(default_factory=list)
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.state == AccessState.ALLOWED


def evaluate_access(
    path: str,
    snapshot: AuthSnapshot | None,
    required_permissions: Sequence[str] = (),
    route: str | None = None,
    now: datetime | None = None,
    fail_open: bool = True,
) -> AccessDecision:
    """Decide whether ``path`` may render for the caller described by ``snapshot``.

    ``route`` is looked up in the navigation table (any listed permission
    grants access). ``required_permissions`` must all be held.
    """
    if snapshot is None:
        return AccessDecision(state=AccessState.LOADING, path=path)

    role = snapshot.current_role.value
    held = snapshot.permission_strings()

    if route is not None and not can_access_route(route, held, fail_open=fail_open):
        logger.info("route %s denied for role %s", route, role)
        return AccessDecision(
            state=AccessState.DENIED,
            path=path,
            current_role=role,
            route=route,
            required_permissions=list(NAVIGATION_ACCESS.get(route, ())),
        )

    if required_permissions:
        missing = [p for p in required_permissions if p not in held]
        if missing:
            logger.info("permissions %s missing for role %s on %s", missing, role, path)
            return AccessDecision(
                state=AccessState.DENIED,
                path=path,
                current_role=role,
                required_permissions=list(required_permissions),
            )

    if not snapshot.stripe_subscription_id:
        status = snapshot.trial_status(now)
        if should_block_access(status) and not is_route_allowed_for_expired_trial(path):
            logger.info("trial expired for user %s, redirecting %s to %s",
                        snapshot.user_id, path, EXPIRED_TRIAL_REDIRECT)
            return AccessDecision(
                state=AccessState.TRIAL_BLOCKED,
                path=path,
                current_role=role,
                redirect_to=EXPIRED_TRIAL_REDIRECT,
            )

    return AccessDecision(state=AccessState.ALLOWED, path=path, current_role=role)
