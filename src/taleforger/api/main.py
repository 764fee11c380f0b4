"""FastAPI application entry point.

Main application configuration, middleware, and startup lifecycle.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from taleforger.core.config import Settings, get_settings
from taleforger.generation import GeminiClient, GenerationCall, StoryGenerator
from taleforger.models.database import close_db, create_tables, init_db

logger = logging.getLogger(__name__)


def _engine_kwargs(settings: Settings) -> dict:
    if settings.is_sqlite:
        return {}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
    }


def create_app(
    settings: Settings | None = None,
    generation_call: GenerationCall | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings
        generation_call: Generation call to use instead of a Gemini client

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    is_production = settings.environment == "production"

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler.

        Startup:
        - Initialize database connection pool
        - Create the generation client and story generator

        Shutdown:
        - Close the generation client
        - Close database connections
        """
        logger.info("Initializing database connection...")
        init_db(settings.async_database_url, **_engine_kwargs(settings))
        if settings.database_create_tables:
            await create_tables()
        logger.info("Database initialized")

        gemini: GeminiClient | None = None
        if generation_call is not None:
            app.state.story_generator = StoryGenerator.from_settings(generation_call, settings)
        elif settings.has_gemini_key():
            gemini = GeminiClient(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_api_base,
                timeout=settings.generation_request_timeout_seconds,
            )
            app.state.story_generator = StoryGenerator.from_settings(gemini.generate, settings)
            logger.info(f"Gemini client initialized (model {settings.gemini_model})")
        else:
            app.state.story_generator = None
            logger.warning("GEMINI_API_KEY not set; story generation is disabled")

        yield

        logger.info("Shutting down...")
        if gemini is not None:
            await gemini.close()
        await close_db()
        logger.info("Database connections closed")

    app = FastAPI(
        title="TaleForger API",
        description="Generate, store and edit short fiction with a generative AI model",
        version=settings.app_version,
        docs_url="/api/docs" if not is_production else None,
        redoc_url="/api/redoc" if not is_production else None,
        openapi_url="/api/openapi.json" if not is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Stories run to several KB of text
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    from taleforger.api.routers import auth_router, health_router, stories_router

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(stories_router, prefix="/api/stories", tags=["stories"])

    from taleforger.api.exceptions import register_exception_handlers
    register_exception_handlers(app)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taleforger.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        workers=settings.workers if settings.environment == "production" else 1,
    )
