from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from incident_desk.core import config
from incident_desk.core.database.engine import engine, init_db
from incident_desk.features.admin.routes import router as admin_router
from incident_desk.features.auth.routes import router as auth_router, limiter
from incident_desk.features.dashboard.routes import router as dashboard_router
from incident_desk.features.incidents.routes import router as incident_router
from incident_desk.features.permissions.decisions import AccessDenied
from incident_desk.features.teams.routes import router as team_router
from incident_desk.features.users.routes import router as user_router
from incident_desk.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Incident Desk",
    description="Team-scoped incident tracking with role-based permissions",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.incident_desk.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    # One message per offending field, keyed by the field name
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        field = error["loc"][-1] if error["loc"] else "body"
        errors.setdefault(str(field), error["msg"].removeprefix("Value error, "))
    log.info(f"Request validation error {errors}")
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(AccessDenied)
async def access_denied_handler(_request: Request, exc: AccessDenied):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "reason": exc.reason.value},
        headers=exc.headers,
    )


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    log.warning(f"Rate limit hit on {request.url.path}: {exc.detail}")
    return JSONResponse({"detail": "Too many attempts, try again later"}, status_code=429)


@app.on_event("startup")
async def startup():
    await init_db()
    log.info(f"Database ready ({engine.dialect.name})")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Incident Desk API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "Protected endpoints take a Bearer token or the httpOnly `token` cookie",
            "public_endpoints": ["/auth/register", "/auth/login", "/auth/logout", "/health"],
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(user_router, prefix="/users", tags=["users"])
app.include_router(team_router, prefix="/teams", tags=["teams"])
app.include_router(incident_router, prefix="/teams", tags=["incidents"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
