"""
ExamDesk Backend - Main FastAPI Application

Exam authoring wizard and exam management API.
Version: 1.0
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from examdesk import __version__
from examdesk.config.settings import settings
from examdesk.gateway import Gateway, MongoGateway, create_gateway
from examdesk.registry import WizardRegistry, init_registry
from examdesk.routes import create_exam_routes, create_wizard_routes

# Setup logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(gateway: Optional[Gateway] = None, registry: Optional[WizardRegistry] = None) -> FastAPI:
    """
    Build the application.

    Without arguments the gateway comes from GATEWAY_BACKEND and is connected
    at startup. Tests pass a ready gateway (and optionally a registry).
    """
    settings.validate()
    managed = gateway is None
    gateway = gateway or create_gateway(settings)
    registry = registry or init_registry(settings.WIZARD_TTL_MINUTES)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """FastAPI lifespan context manager for startup/shutdown."""
        # STARTUP
        logger.info("🚀 ExamDesk Backend Starting Up...")

        try:
            if managed and isinstance(gateway, MongoGateway):
                await gateway.connect(settings.MONGODB_URL, settings.DATABASE_NAME)
                logger.info(f"✅ Connected to MongoDB: {settings.DATABASE_NAME}")

                await gateway.create_indexes()
                logger.info("✅ Database indexes created")
            else:
                logger.info(f"✅ Using {type(gateway).__name__}")

            logger.info(f"✅ Wizard policy: {settings.WIZARD_POLICY}")
            logger.info("✅ Application startup complete")

        except Exception as e:
            logger.error(f"❌ Startup failed: {e}")
            raise

        yield

        # SHUTDOWN
        logger.info("🛑 Shutting down...")
        dropped = registry.cleanup_expired()
        if dropped:
            logger.info(f"✅ Dropped {dropped} idle wizards")
        if managed and isinstance(gateway, MongoGateway):
            gateway.close()
            logger.info("✅ Database connection closed")

    app = FastAPI(
        title="ExamDesk API",
        description="Exam authoring and management",
        version=__version__,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routes
    app.include_router(create_exam_routes(gateway))
    app.include_router(create_wizard_routes(gateway, registry, settings))

    # Health check endpoint
    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "gateway": type(gateway).__name__,
            "open_wizards": len(registry)
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": "ExamDesk",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
