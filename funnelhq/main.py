import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi

from funnelhq.shared.config import settings
from funnelhq.shared.db import Base, engine

# import models so they register with Base.metadata
from funnelhq.auth import models as auth_models  # noqa: F401

# Routers Import
from funnelhq.auth.api import router as auth_router
from funnelhq.shared.me_api import router as me_router
from funnelhq.access.api import router as access_router
from funnelhq.trial.api import router as trial_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

TAGS_METADATA = [
    {"name": "Auth", "description": "Register, issue tokens, resolve the caller"},
    {"name": "Me", "description": "Caller's permissions, trial status and plan"},
    {"name": "Access", "description": "Route and project permission decisions"},
    {"name": "Trial", "description": "Trial lifecycle jobs"},
    {"name": "Health", "description": "Service health"},
]

app = FastAPI(
    title="FunnelHQ 360 access core",
    version="0.1.0",
    description="Role permissions and Pro trial gating for FunnelHQ 360.",
    openapi_tags=TAGS_METADATA,
)

# ---- DEV-ONLY error handler (shows real errors in Swagger) ----
if settings.ENV == "dev":
    @app.exception_handler(Exception)
    async def _dev_ex_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.on_event("startup")
def _init_db():
    Base.metadata.create_all(bind=engine)
    logger.info("database ready (route policy: %s)", settings.ROUTE_POLICY)

@app.get("/healthz", tags=["Health"])
def healthz():
    return {"ok": True}

# Routers
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(access_router)
app.include_router(trial_router)

# --- Custom OpenAPI: bearerAuth as the default security for every op except the public ones ---
# no bearer token: public, or authenticated by X-Webhook-Secret
PUBLIC_PATHS = ["/auth/token", "/auth/register", "/healthz", "/trial/activate", "/trial/sweep"]

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    schema.setdefault("components", {}).setdefault("securitySchemes", {})
    schema["components"]["securitySchemes"]["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    for path, ops in schema.get("paths", {}).items():
        if path in PUBLIC_PATHS:
            continue
        for op in ops.values():
            op.setdefault("security", [{"bearerAuth": []}])
    app.openapi_schema = schema
    return app.openapi_schema

app.openapi = custom_openapi
