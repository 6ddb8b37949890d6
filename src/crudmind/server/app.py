"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crudmind import __version__
from crudmind.agent.orchestrator import AgentOrchestrator
from crudmind.config.schema import CrudmindConfig
from crudmind.server.routes import create_router


def create_app(config: CrudmindConfig, orchestrator: AgentOrchestrator | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: crudmind configuration
        orchestrator: Prebuilt orchestrator (built from config if omitted)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="crudmind",
        description="Natural-language CRUD assistant for SQL databases",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_router(config, orchestrator))

    return app
