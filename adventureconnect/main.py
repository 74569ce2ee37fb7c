import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adventureconnect.config import Settings, get_settings
from adventureconnect.database import build_engine, build_session_factory, init_db
from adventureconnect.exceptions import register_exception_handlers
from adventureconnect.logging_config import configure_logging
from adventureconnect.notifications import build_sender
from adventureconnect.auth import router as auth_router
from adventureconnect.trips import router as trips_router
from adventureconnect.reviews import router as reviews_router
from adventureconnect.bookings import router as bookings_router
from adventureconnect.providers import router as providers_router

logger = logging.getLogger(__name__)

def _openapi_with_token_url(app: FastAPI, token_url: str):
    """Point the OAuth2 password flow at this app's own token endpoint"""
    default_openapi = app.openapi

    def openapi():
        if app.openapi_schema is None:
            schema = default_openapi()
            for scheme in schema.get("components", {}).get("securitySchemes", {}).values():
                password_flow = scheme.get("flows", {}).get("password")
                if password_flow is not None:
                    password_flow["tokenUrl"] = token_url
        return app.openapi_schema

    return openapi

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its own engine, session factory and email sender"""
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings)
    init_db(engine)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="AdventureConnect travel marketplace API",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.notification_sender = build_sender(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)
    app.openapi = _openapi_with_token_url(app, f"{settings.API_V1_STR}/auth/token")

    # Include routers
    app.include_router(
        auth_router,
        prefix=f"{settings.API_V1_STR}/auth",
        tags=["Authentication"]
    )

    app.include_router(
        trips_router,
        prefix=f"{settings.API_V1_STR}/trips",
        tags=["Trips"]
    )

    app.include_router(
        reviews_router,
        prefix=f"{settings.API_V1_STR}/trips",
        tags=["Reviews"]
    )

    app.include_router(
        bookings_router,
        prefix=f"{settings.API_V1_STR}/bookings",
        tags=["Bookings"]
    )

    app.include_router(
        providers_router,
        prefix=f"{settings.API_V1_STR}/providers",
        tags=["Providers"]
    )

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": "AdventureConnect API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.ENVIRONMENT}

    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    return app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("adventureconnect.main:create_app", factory=True, host="0.0.0.0", port=8000)
