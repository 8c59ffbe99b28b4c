"""
Blueprint AI server entry point.

Builds the FastAPI application: one WebSocket per canvas client at /ws,
health and status under /api. Each connection gets its own agent session
(graph, undo history, transcript, provider selection).

Run it with the console script or uvicorn directly:

    blueprint-ai-server --port 8080
    uvicorn blueprint_ai.server.main:app --reload --port 8765
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blueprint_ai import __version__
from blueprint_ai.agents.orchestrator import get_orchestrator
from blueprint_ai.core.settings import get_settings_manager
from blueprint_ai.server.routes.health import router as health_router, set_server_start_time
from blueprint_ai.server.routes.websocket import router as ws_router
from blueprint_ai.server.session import get_session_manager

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765

# OPENAI_API_KEY / ANTHROPIC_API_KEY may live in a local .env
load_dotenv()

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])

logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warm up the shared singletons; close every session on shutdown."""
    set_server_start_time()

    settings = get_settings_manager()
    get_session_manager()
    orchestrator = get_orchestrator()

    logger.info(f"Blueprint AI Server {__version__} starting")
    logger.info(f"Config file: {settings.get_config_file_path()}")
    logger.info(
        f"Default provider: {settings.get_default_provider()}, "
        f"max rounds: {orchestrator.max_rounds}, "
        f"tools: {len(orchestrator.tool_registry)}"
    )

    yield

    closed = await get_session_manager().close_all()
    logger.info(f"Blueprint AI Server stopped ({closed} session(s) closed)")


# ============================================================================
# APPLICATION
# ============================================================================

def create_app() -> FastAPI:
    app = FastAPI(
        title="Blueprint AI Server",
        description="Streams agent text, tool activity and graph deltas to Blueprint canvas clients.",
        version=__version__,
        lifespan=lifespan,
    )

    # TODO: Restrict origins once the canvas client is served from a fixed host
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(ws_router, tags=["websocket"])

    @app.get("/", tags=["root"])
    async def root():
        return {
            "name": "Blueprint AI Server",
            "version": __version__,
            "websocket_url": "/ws",
            "health_url": "/api/health",
        }

    return app


app = create_app()


# ============================================================================
# CLI
# ============================================================================

def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Serve the application with uvicorn.

    Args:
        host: Interface to bind.
        port: TCP port.
        reload: Restart on source changes (development only).
        log_level: Level for both the root logger and uvicorn.
    """
    logging.getLogger().setLevel(log_level.upper())
    logger.info(f"Listening on ws://{host}:{port}/ws")
    uvicorn.run(
        "blueprint_ai.server.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="blueprint-ai-server",
        description="Blueprint AI WebSocket server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port")
    parser.add_argument("--reload", action="store_true", help="Reload on source changes")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    run_server(host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
