from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlencode
from pixico.core.config import settings
from pixico.core.auth import AdminLoginRequired
from pixico.core.logging_config import (
    setup_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from pixico.api.endpoints import (
    admin,
    admin_contacts,
    admin_users,
    blog,
    contact,
    metadata,
    pages,
    site_pages,
    support,
)
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

# Configure structured JSON logging
security_logger = setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# Prompt and blog images come from the storage CDN; the chat widget only talks to /api
CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "script-src 'self'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: https:",
        "connect-src 'self'",
        "frame-ancestors 'none'",
        "form-action 'self'",
    ]
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers on every response; admin responses are never cached."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000"
        if request.url.path.startswith(("/admin", "/api/admin")):
            response.headers["Cache-Control"] = "no-store"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report missing credentials at startup; nothing needs tearing down."""
    logger.info("Starting Pixico application...")

    if not settings.has_backend_credentials:
        logger.warning(
            "SUPABASE_URL / SUPABASE_ANON_KEY not set: pages render empty sections "
            "and admin login is unavailable"
        )
    if not settings.OPENROUTER_API_KEY:
        logger.warning("OPENROUTER_API_KEY not set: support chat answers 500")
    if settings.SECRET_KEY == "pixico-dev-secret-change-me" and settings.is_production:
        logger.critical("SECRET_KEY is the development default; admin sessions are forgeable")

    yield

    logger.info("Shutting down Pixico application...")


app = FastAPI(
    title="Pixico - AI Prompt Library",
    description="Public prompt library, blog and admin console",
    version="1.0.0",
    lifespan=lifespan,
)

# Registered first, so it sits innermost and every route log is tagged
app.add_middleware(CorrelationIdMiddleware)

# Rate limiting (admin login only)
app.state.limiter = admin.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(SecurityHeadersMiddleware)

# Signed cookie holding the admin session
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie="pixico_admin",
    max_age=settings.ADMIN_SESSION_MAX_AGE,
    same_site=settings.COOKIE_SAMESITE,
    https_only=settings.COOKIE_SECURE,
)

log_security_event(
    event_type="app.startup",
    message="Pixico application starting",
    event_category="system",
    production=settings.is_production,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "X-Correlation-ID"],
)


@app.exception_handler(AdminLoginRequired)
async def admin_login_redirect(request: Request, exc: AdminLoginRequired):
    query = urlencode({"error": str(exc)}) if str(exc) != "Unauthorized" else ""
    return RedirectResponse(
        f"/admin/login?{query}" if query else "/admin/login", status_code=303
    )


@app.get("/health")
def health_check():
    return {"status": "healthy"}


app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Include routers; the site page catch-all must stay last
app.include_router(support.router, prefix="/api", tags=["support"])
app.include_router(admin_contacts.router, prefix="/api/admin", tags=["admin"])
app.include_router(admin_users.router, prefix="/api/admin", tags=["admin"])
app.include_router(admin.router, prefix="/admin", tags=["admin-pages"])
app.include_router(metadata.router, tags=["metadata"])
app.include_router(blog.router, prefix="/blog", tags=["blog"])
app.include_router(contact.router, prefix="/contact", tags=["contact"])
app.include_router(pages.router, tags=["pages"])
app.include_router(site_pages.router, tags=["site-pages"])
