from datetime import datetime, timedelta, timezone

from funnelhq.plans.features import (
    GB,
    PLAN_FEATURES,
    UNLIMITED,
    check_feature,
    check_limit,
    features_for,
    upgrade_prompt,
)
from funnelhq.trial.status import calculate_trial_status

NOW = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc)
ACTIVE = calculate_trial_status(NOW - timedelta(days=2), "pro_trial", None, now=NOW)
EXPIRED = calculate_trial_status(NOW - timedelta(days=20), "pro_trial", None, now=NOW)
SOLO = calculate_trial_status(None, "solo", None, now=NOW)


def test_trial_gets_pro_features():
    f = features_for("pro_trial", ACTIVE)
    assert f.max_projects == UNLIMITED
    assert f.max_storage == 100 * GB
    assert f.support_level == "priority"


def test_expired_trial_falls_back_to_solo():
    assert features_for("pro_trial", EXPIRED) == PLAN_FEATURES["solo"]


def test_unknown_plan_gets_solo_features():
    assert features_for("enterprise", SOLO) == PLAN_FEATURES["solo"]


def test_check_feature():
    solo = PLAN_FEATURES["solo"]
    assert check_feature(solo, "can_invite_members") is False
    assert check_feature(solo, "can_export_data") is True
    assert check_feature(solo, "max_team_members") is False
    assert check_feature(PLAN_FEATURES["pro"], "max_team_members") is True


def test_unlimited_plan_never_hits_limit():
    r = check_limit("pro_trial", ACTIVE, "projects", 500, 10)
    assert r.allowed is True
    assert r.limit is None


def test_within_limit_reports_limit():
    r = check_limit("solo", SOLO, "projects", 2, 1)
    assert r.allowed is True
    assert r.limit == 3


def test_over_limit_on_solo():
    r = check_limit("solo", SOLO, "projects", 3, 1)
    assert r.allowed is False
    assert r.limit == 3
    assert r.reason == "You've reached the projects limit for your solo plan (3 max)"


def test_over_limit_after_trial_lapsed():
    r = check_limit("pro_trial", EXPIRED, "team_members", 0, 1)
    assert r.allowed is False
    assert r.reason == "Your trial has expired. Please upgrade to continue using team members."


def test_upgrade_prompt_wording():
    assert upgrade_prompt("pro_trial", EXPIRED, "exports")["title"] == "Trial Expired"
    p = upgrade_prompt("solo", SOLO, "team invites")
    assert p["title"] == "Upgrade Required"
    assert p["message"].endswith("Your current plan is solo.")
