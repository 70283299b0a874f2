"""
Chat Widget Relay - Main Application Entry Point

Proxies the embeddable chat widget and the Messenger page to the remote
question-answering backend.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatwidget import __version__
from chatwidget.core.config import get_settings
from chatwidget.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    from chatwidget.api.deps import get_http_client

    settings = get_settings()
    logger.info("Starting chat widget relay in %s mode...", settings.ENVIRONMENT)
    logger.info("Backend API: %s", settings.BACKEND_API_URL)

    yield

    logger.info("Shutting down chat widget relay...")
    if get_http_client.cache_info().currsize:
        await get_http_client().aclose()
        get_http_client.cache_clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Chat Widget Relay",
        description="Relay between the embeddable chat widget and the RAG backend",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from chatwidget.api import ask, feedback, messenger, session_messages, widget_script

    app.include_router(ask.router, prefix="/api", tags=["ask"])
    app.include_router(session_messages.router, prefix="/api", tags=["session_messages"])
    app.include_router(feedback.router, prefix="/api", tags=["feedback"])
    app.include_router(widget_script.router, prefix="/api", tags=["widget"])
    app.include_router(messenger.router, prefix="/api/messenger", tags=["messenger"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": __version__,
        }

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "chatwidget.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
