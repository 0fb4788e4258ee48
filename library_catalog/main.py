"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application that serves
the GraphQL API.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests import the module-level `app` and override dependencies

2. Lifespan Events
   - startup: log configuration, optionally create tables
   - shutdown: dispose of the connection pool

3. Exception Handlers
   - Rejected bearer tokens become 401 responses in GraphQL error shape
   - Database and unexpected errors are logged and hidden from clients
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from library_catalog import __version__
from library_catalog.config import get_settings
from library_catalog.database import create_tables, engine
from library_catalog.graphql import create_graphql_router
from library_catalog.graphql.context import InvalidTokenError
from library_catalog.graphql.errors import ErrorCode

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}, debug mode: {settings.debug}")
    logger.info(f"GraphQL endpoint: {settings.graphql_path}")

    if settings.create_tables_on_startup:
        create_tables()
        logger.info("Database tables created")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="GraphQL API for a library catalog: books, authors, genres and users.",
        version=__version__,
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(
        request: Request,
        exc: InvalidTokenError,
    ) -> JSONResponse:
        """
        Reject requests carrying a bad bearer token.

        Raised while building the GraphQL context, so no resolver has
        run. The body keeps the GraphQL error shape clients already parse.
        """
        return JSONResponse(
            status_code=401,
            content={
                "errors": [
                    {
                        "message": exc.message,
                        "extensions": {"code": ErrorCode.UNAUTHENTICATED_USER.value},
                    }
                ]
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Hide database errors from clients, log them for debugging."""
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "A database error occurred. Please try again later."
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all exception handler; details only in debug mode."""
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # GraphQL Endpoint
    # -------------------------------------------------------------------------
    graphql_router = create_graphql_router()
    graphql_prefix = "" if settings.graphql_path == "/" else settings.graphql_path
    app.include_router(graphql_router, prefix=graphql_prefix, tags=["GraphQL"])

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the database is reachable.",
    )
    def health_check() -> dict:
        """
        Health check endpoint.

        Used by load balancers and container orchestrators. The status is
        "degraded" when the database can't be reached.
        """
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            database_ok = True
        except SQLAlchemyError as e:
            logger.warning(f"Health check database ping failed: {e}")
            database_ok = False

        return {
            "status": "healthy" if database_ok else "degraded",
            "app": settings.app_name,
            "version": __version__,
            "database": {"reachable": database_ok},
            "graphql": {
                "endpoint": settings.graphql_path,
                "ide": settings.graphql_ide,
            },
        }

    if settings.graphql_path != "/":

        @app.get(
            "/",
            tags=["Root"],
            summary="API root",
            description="Welcome message and API information.",
        )
        def root() -> dict:
            """Root endpoint with API information."""
            return {
                "message": f"Welcome to {settings.app_name}",
                "version": __version__,
                "graphql": settings.graphql_path,
                "health": "/health",
            }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn library_catalog.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m library_catalog.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "library_catalog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
