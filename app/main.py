import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.settings import settings
from app.core.rate_limit import limiter
from app.database.supabase_client import get_service_supabase
from app.integrations.notifyhub import get_notifyhub
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.reminders import routes as reminders_routes
from app.modules.stations import routes as stations_routes
from app.modules.kiosk import routes as kiosk_routes
from app.modules.verification import routes as verification_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.cron import routes as cron_routes
from app.modules.opt_out import routes as opt_out_routes
from app.modules.analytics import routes as analytics_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(reminders_routes.router, prefix="/api/v1")
app.include_router(stations_routes.router, prefix="/api/v1")
app.include_router(kiosk_routes.router, prefix="/api/v1")
app.include_router(verification_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(cron_routes.router, prefix="/api/v1")
app.include_router(opt_out_routes.router, prefix="/api/v1")
app.include_router(analytics_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.reminder_scheduler_enabled:
        from app.modules.notifications.scheduler import reminder_scheduler_loop
        asyncio.create_task(reminder_scheduler_loop())
        logger.info(f"Reminder scheduler started - daily run at {settings.reminder_scheduler_hour}:00 {settings.timezone}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to uitdeitp-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    """Database round trip and SMS gateway status. Only a database failure makes the service unhealthy."""
    try:
        get_service_supabase().table("kiosk_stations").select("id").limit(1).execute()
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})

    gateway = await asyncio.to_thread(get_notifyhub().check_health)
    if not gateway["ok"]:
        logger.warning(f"NotifyHub health check failed: {gateway.get('error')}")
        return {"status": "degraded", "database": "ok", "sms_gateway": "unreachable"}
    return {"status": "healthy", "database": "ok", "sms_gateway": "ok"}


@app.get("/ready")
@limiter.exempt
async def ready():
    return {"status": "ready"}
