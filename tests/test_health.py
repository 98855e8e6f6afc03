from fastapi.testclient import TestClient
from funnelhq.main import app

def test_health():
    c = TestClient(app)
    r = c.get("/healthz")
    assert r.status_code == 200 and r.json()["ok"] is True

def test_openapi_marks_private_routes():
    schema = TestClient(app).get("/openapi.json").json()
    assert schema["paths"]["/me/trial"]["get"]["security"] == [{"bearerAuth": []}]
    assert "security" not in schema["paths"]["/healthz"]["get"]
