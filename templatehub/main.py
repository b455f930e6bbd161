import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from templatehub import __version__
from templatehub.core.config import get_settings
from templatehub.core.container import get_container
from templatehub.core.logging import configure_logging
from templatehub.interfaces.http import create_api_router
from templatehub.interfaces.http.middleware import TrackIdMiddleware

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    container = get_container()
    await container.startup()
    logger.info("%s %s started (%s)", settings.project_name, __version__, settings.environment)
    yield
    await container.shutdown()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Versioned document templates with direct-to-storage uploads",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Track-Id"],
    )
    app.add_middleware(TrackIdMiddleware)

    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "templatehub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
    )
