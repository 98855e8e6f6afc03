# funnelhq/access/roles.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Organization-level access tier."""
    admin = "admin"
    team_member = "team_member"
    client = "client"


class ProjectRole(str, Enum):
    """Role on a single project membership, independent of Role."""
    project_manager = "project_manager"
    developer = "developer"
    designer = "designer"
    reviewer = "reviewer"
    client = "client"


class SubscriptionPlan(str, Enum):
    solo = "solo"
    pro_trial = "pro_trial"
    pro = "pro"


def _parse(enum_cls, value, default, strict: bool):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        if strict or default is None:
            raise ValueError(f"unknown {enum_cls.__name__}: {value!r}")
        logger.warning("unknown %s %r, falling back to %s", enum_cls.__name__, value, default.value)
        return default


def parse_role(value, strict: bool = False, default: Role = Role.client) -> Role:
    """Parse a role from a token claim or a stored record.

    Unknown values fall back to the least privileged role unless ``strict``.
    """
    return _parse(Role, value, default, strict)


def parse_project_role(value, strict: bool = True) -> ProjectRole:
    return _parse(ProjectRole, value, None, strict)


def parse_plan(value, strict: bool = False, default: SubscriptionPlan = SubscriptionPlan.solo) -> SubscriptionPlan:
    if value is None and not strict:
        return default
    return _parse(SubscriptionPlan, value, default, strict)
