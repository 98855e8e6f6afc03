# funnelhq/shared/config.py
from pathlib import Path
from pydantic import BaseModel
import os

ROOT = Path(__file__).resolve().parents[2]   # project root

class Settings(BaseModel):
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DB_URL: str = os.getenv("DB_URL", f"sqlite:///{(ROOT / 'storage' / 'funnelhq.db').as_posix()}")

    # demo auth controls
    AUTH_DEMO: bool = os.getenv("AUTH_DEMO", "true").lower() == "true"
    DEMO_TOKEN: str = os.getenv("DEMO_TOKEN", "demo")
    DEMO_ROLE: str = os.getenv("DEMO_ROLE", "admin")
    DEMO_PLAN: str = os.getenv("DEMO_PLAN", "pro_trial")

    # JWT settings (for real mode)
    JWT_KEY: str = os.getenv("JWT_KEY", "dev-secret")
    JWT_ALG: str = os.getenv("JWT_ALG", "HS256")
    JWT_ISS: str | None = os.getenv("JWT_ISS")
    JWT_AUD: str | None = os.getenv("JWT_AUD")
    JWT_EXPIRE_MIN: int = int(os.getenv("JWT_EXPIRE_MIN", "60"))

    # "open": routes missing from the navigation table are allowed
    # "closed": only routes in the table or in PUBLIC_ROUTES are allowed
    ROUTE_POLICY: str = os.getenv("ROUTE_POLICY", "open")

    # shared secret for billing webhooks and operator jobs (X-Webhook-Secret);
    # unset disables those endpoints
    WEBHOOK_SECRET: str | None = os.getenv("WEBHOOK_SECRET")

settings = Settings()
