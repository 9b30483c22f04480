"""
FastAPI Application Entry Point
Application factory, error rendering and route registration
"""

from datetime import datetime
from typing import Callable, Optional
import logging
from databases import Database
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from portal.auth import AuthorizationMiddleware
from portal.config import Settings, get_settings
from portal.database import create_database, connect_db, disconnect_db
from portal.errors import PortalError
from portal.services import build_services
from portal.services.notification_service import NotificationService
from portal.services.payment_gateway import RazorpayClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    gateway: Optional[RazorpayClient] = None,
    notifier: Optional[NotificationService] = None,
    clock: Callable[[], datetime] = datetime.utcnow
) -> FastAPI:
    """
    Build the application

    Collaborators default to the real ones built from settings; tests pass
    their own database, gateway transport, notifier and clock.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    database = database or create_database(settings.DATABASE_URL)
    gateway = gateway or RazorpayClient(
        settings.RAZORPAY_API_URL, settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET
    )
    notifier = notifier or NotificationService(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Federation membership, approvals and event registration",
        version="1.0.0",
        debug=settings.DEBUG
    )
    app.state.services = build_services(settings, database, gateway, notifier, clock)

    app.add_middleware(AuthorizationMiddleware, settings=settings)

    # CORS middleware, outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_URL] if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code},
            headers=exc.headers,
        )

    @app.on_event("startup")
    async def startup():
        """Run on application startup"""
        if not database.is_connected:
            await connect_db(database)
        logger.info("%s started in %s mode", settings.APP_NAME, settings.APP_ENV)

    @app.on_event("shutdown")
    async def shutdown():
        """Run on application shutdown"""
        if database.is_connected:
            await disconnect_db(database)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": "1.0.0"
        }

    # Import and include routers
    from portal.routes import accounts, sessions, approvals, events, payments

    app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
    app.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
    app.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])
    app.include_router(events.router, prefix="/events", tags=["Events"])
    app.include_router(payments.router, prefix="/payments", tags=["Payments"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "portal.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True  # Auto-reload on code changes
    )
