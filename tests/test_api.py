import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from funnelhq.auth.models import User
from funnelhq.shared.auth import create_access_token
from funnelhq.shared.guard import require_feature, require_permissions, require_route

DEMO = {"Authorization": "Bearer demo"}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def stored_account(db, role="admin", plan="pro_trial", started_days_ago=None, stripe_id=None,
                   org=None) -> tuple[str, str]:
    """Insert an account; returns (account id, bearer token)."""
    now = datetime.now(timezone.utc)
    u = User(
        id=str(uuid.uuid4()),
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        password_hash="x",
        role=role,
        organization_id=org,
        subscription_plan=plan,
        trial_start_date=now - timedelta(days=started_days_ago) if started_days_ago is not None else None,
        stripe_subscription_id=stripe_id,
    )
    db.add(u); db.commit()
    return u.id, create_access_token(sub=u.id, role=role)


def stored_user(db, **kw) -> str:
    return stored_account(db, **kw)[1]


def test_missing_token_is_rejected(client):
    r = client.get("/me/access")
    assert r.status_code == 401


def test_garbage_token_is_rejected(client):
    r = client.get("/me/access", headers=bearer("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["detail"].startswith("invalid token")


def test_token_for_unknown_account_is_rejected(client):
    r = client.get("/me/access", headers=bearer(create_access_token(sub="ghost")))
    assert r.status_code == 401


def test_demo_user_access(client):
    r = client.get("/me/access", headers=DEMO)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["current_role"] == "admin"
    assert "users:delete" in data["permissions"]
    assert "manage_roles" in data["grouped"]["users"]


def test_demo_user_trial_view(client):
    data = client.get("/me/trial", headers=DEMO).json()["data"]
    assert data["is_on_trial"] is True
    assert data["days_left"] == 14
    assert data["show_upgrade_banner"] is False
    assert data["time_remaining_text"] == "14 days left"
    assert data["urgency"] == "normal"
    assert data["banner_tier"] is None
    assert data["blocked"] is False


def test_register_login_and_me(client, demo_settings):
    demo_settings.AUTH_DEMO = False
    r = client.post("/auth/register", json={"email": "owner@example.com", "password": "pw-123456"})
    assert r.status_code == 200
    assert r.json()["user"]["subscription_plan"] == "pro_trial"

    r = client.post("/auth/token", data={"username": "owner@example.com", "password": "pw-123456"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["demo"] is False

    me = client.get("/auth/me", headers=bearer(token)).json()["user"]
    assert me["current_role"] == "admin"
    assert me["subscription_plan"] == "pro_trial"


def test_bad_credentials(client, demo_settings):
    demo_settings.AUTH_DEMO = False
    client.post("/auth/register", json={"email": "a@example.com", "password": "right"})
    r = client.post("/auth/token", data={"username": "a@example.com", "password": "wrong"})
    assert r.status_code == 401


def test_demo_mode_hands_out_demo_token(client):
    r = client.post("/auth/token", data={"username": "anyone", "password": "anything"})
    assert r.json() == {"access_token": "demo", "token_type": "bearer", "demo": True}


def test_register_ignores_chosen_role_and_organization(client, demo_settings):
    demo_settings.AUTH_DEMO = False
    r = client.post("/auth/register", json={"email": "b@example.com", "password": "pw",
                                             "role": "team_member", "organization_id": "acme"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["role"] == "admin"
    assert user["organization_id"] not in (None, "acme")

    other = client.post("/auth/register", json={"email": "c@example.com", "password": "pw"}).json()["user"]
    assert other["organization_id"] != user["organization_id"]


def test_invite_joins_the_admins_organization(client, db):
    token = stored_user(db, org="org-7")
    r = client.post("/auth/invite", json={"email": "m@example.com", "password": "pw", "role": "team_member"},
                    headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "team_member"
    assert r.json()["user"]["organization_id"] == "org-7"


def test_invite_requires_admin(client, db):
    token = stored_user(db, role="team_member", org="org-7")
    r = client.post("/auth/invite", json={"email": "m@example.com", "password": "pw", "role": "admin"},
                    headers=bearer(token))
    assert r.status_code == 403
    assert r.json()["detail"]["error"]["code"] == "access_denied"


def test_invite_rejects_unknown_role(client, db):
    token = stored_user(db, org="org-7")
    r = client.post("/auth/invite", json={"email": "m@example.com", "password": "pw", "role": "owner"},
                    headers=bearer(token))
    assert r.status_code == 400


def test_invite_without_organization(client, db):
    token = stored_user(db)
    r = client.post("/auth/invite", json={"email": "m@example.com", "password": "pw"}, headers=bearer(token))
    assert r.status_code == 409


def test_access_check_denies_client_on_clients_page(client, db):
    token = stored_user(db, role="client")
    r = client.post("/access/check", json={"path": "/clients"}, headers=bearer(token))
    data = r.json()["data"]
    assert data["state"] == "denied"
    assert data["current_role"] == "client"
    assert data["required_permissions"] == ["clients:view_all"]


def test_access_check_blocks_expired_trial(client, db):
    token = stored_user(db, started_days_ago=30)
    data = client.post("/access/check", json={"path": "/projects"}, headers=bearer(token)).json()["data"]
    assert data["state"] == "trial_blocked"
    assert data["redirect_to"] == "/billing"

    data = client.post("/access/check", json={"path": "/billing"}, headers=bearer(token)).json()["data"]
    assert data["state"] == "allowed"


def test_access_check_closed_policy(client, demo_settings):
    demo_settings.ROUTE_POLICY = "closed"
    data = client.post("/access/check", json={"path": "/labs"}, headers=DEMO).json()["data"]
    assert data["state"] == "denied"


def test_routes_listing(client, db):
    token = stored_user(db, role="team_member")
    data = client.get("/access/routes", headers=bearer(token)).json()["data"]
    assert data["routes"]["/projects"] is True
    assert data["routes"]["/team"] is False
    assert "/billing" in data["expired_trial_routes"]


def test_project_permission_check(client, db):
    token = stored_user(db, role="team_member")
    r = client.post("/access/project", json={"project_role": "reviewer", "permission": "project:review"},
                    headers=bearer(token))
    assert r.json()["data"]["allowed"] is True

    r = client.post("/access/project", json={"project_role": "intern", "permission": "project:view"},
                    headers=bearer(token))
    assert r.status_code == 400


def test_plan_view_reflects_expired_trial(client, db):
    token = stored_user(db, started_days_ago=30)
    data = client.get("/me/plan", headers=bearer(token)).json()["data"]
    assert data["current_plan"] == "pro_trial"
    assert data["effective_plan"] == "solo"
    assert data["features"]["max_projects"] == 3
    assert data["days_left_in_trial"] == 0


SECRET = {"X-Webhook-Secret": "whsec-test"}


def test_activate_webhook_lifts_trial_block(client, db, demo_settings):
    demo_settings.WEBHOOK_SECRET = "whsec-test"
    uid, token = stored_account(db, started_days_ago=30)
    r = client.post("/trial/activate", json={"account_id": uid, "stripe_subscription_id": "sub_77"},
                    headers=SECRET)
    assert r.status_code == 200
    assert r.json()["data"] == {"account_id": uid, "subscription_plan": "pro"}

    trial = client.get("/me/trial", headers=bearer(token)).json()["data"]
    assert trial["is_on_trial"] is False
    assert trial["blocked"] is False


def test_account_holder_cannot_activate_with_bearer_token(client, db, demo_settings):
    demo_settings.WEBHOOK_SECRET = "whsec-test"
    uid, token = stored_account(db, started_days_ago=30)
    body = {"account_id": uid, "stripe_subscription_id": "made-up"}
    r = client.post("/trial/activate", json=body, headers=bearer(token))
    assert r.status_code == 401

    r = client.post("/trial/activate", json=body, headers={"X-Webhook-Secret": "guess"})
    assert r.status_code == 401

    data = client.post("/access/check", json={"path": "/projects"}, headers=bearer(token)).json()["data"]
    assert data["state"] == "trial_blocked"


def test_activate_disabled_without_configured_secret(client, db, demo_settings):
    demo_settings.WEBHOOK_SECRET = None
    uid, _ = stored_account(db, started_days_ago=30)
    r = client.post("/trial/activate", json={"account_id": uid, "stripe_subscription_id": "sub_1"},
                    headers=SECRET)
    assert r.status_code == 503
    assert r.json()["detail"]["error"]["code"] == "webhook_disabled"


def test_activate_unknown_account(client, demo_settings):
    demo_settings.WEBHOOK_SECRET = "whsec-test"
    r = client.post("/trial/activate", json={"account_id": "ghost", "stripe_subscription_id": "sub_1"},
                    headers=SECRET)
    assert r.status_code == 404


def test_sweep_rejects_admin_bearer_token(client, db, demo_settings):
    demo_settings.WEBHOOK_SECRET = "whsec-test"
    token = stored_user(db, started_days_ago=1)
    r = client.post("/trial/sweep", headers=bearer(token))
    assert r.status_code == 401


def test_sweep_with_webhook_secret(client, db, demo_settings):
    demo_settings.WEBHOOK_SECRET = "whsec-test"
    stored_user(db, started_days_ago=30)
    stored_user(db, started_days_ago=1)
    r = client.post("/trial/sweep", headers=SECRET)
    assert r.json()["data"]["downgraded"] == 1


def _gated_app() -> TestClient:
    app = FastAPI()

    @app.get("/clients")
    def clients(snap=Depends(require_route("/clients"))):
        return {"ok": True, "role": snap.current_role.value}

    @app.post("/team/invite")
    def invite(snap=Depends(require_feature("can_invite_members"))):
        return {"ok": True}

    @app.delete("/projects/{project_id}")
    def delete_project(project_id: str, snap=Depends(require_permissions("projects:update", "projects:delete"))):
        return {"ok": True, "deleted": project_id}

    return TestClient(app)


def test_route_dependency_denies_with_diagnostics(db):
    c = _gated_app()
    r = c.get("/clients", headers=bearer(stored_user(db, role="client")))
    assert r.status_code == 403
    err = r.json()["detail"]["error"]
    assert err["code"] == "access_denied"
    assert err["details"] == {"current_role": "client", "required_permissions": ["clients:view_all"]}


def test_route_dependency_blocks_expired_trial(db):
    c = _gated_app()
    r = c.get("/clients", headers=bearer(stored_user(db, started_days_ago=30)))
    assert r.status_code == 402
    err = r.json()["detail"]["error"]
    assert err["code"] == "trial_expired"
    assert err["details"]["redirect_to"] == "/billing"


def test_route_dependency_allows(db):
    c = _gated_app()
    r = c.get("/clients", headers=bearer(stored_user(db, started_days_ago=2)))
    assert r.json() == {"ok": True, "role": "admin"}


def test_feature_dependency(db):
    c = _gated_app()
    assert c.post("/team/invite", headers=bearer(stored_user(db, started_days_ago=2))).status_code == 200

    r = c.post("/team/invite", headers=bearer(stored_user(db, plan="solo")))
    assert r.status_code == 403
    assert r.json()["detail"]["error"]["code"] == "upgrade_required"


def test_permissions_dependency_requires_all_listed(db):
    c = _gated_app()
    # team members may update projects but not delete them
    r = c.delete("/projects/p1", headers=bearer(stored_user(db, role="team_member", started_days_ago=2)))
    assert r.status_code == 403
    err = r.json()["detail"]["error"]
    assert err["code"] == "access_denied"
    assert err["details"] == {"current_role": "team_member",
                              "required_permissions": ["projects:update", "projects:delete"]}

    r = c.delete("/projects/p1", headers=bearer(stored_user(db, started_days_ago=2)))
    assert r.status_code == 200
    assert r.json() == {"ok": True, "deleted": "p1"}


def test_permissions_dependency_blocks_expired_trial(db):
    c = _gated_app()
    r = c.delete("/projects/p1", headers=bearer(stored_user(db, started_days_ago=30)))
    assert r.status_code == 402
    assert r.json()["detail"]["error"]["code"] == "trial_expired"
