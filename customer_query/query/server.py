"""
FastAPI application serving the customer operations over REST and MCP.

Run with:
    uvicorn customer_query.query.server:app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from customer_query.config import configure_logging, get_settings

from .routers import rest_api
from .routers.mcp_api import mcp_server
from .storage_factory import close_storage, init_storage

logger = logging.getLogger(__name__)

# Creates the MCP session manager used by the lifespan below
mcp_app = mcp_server.streamable_http_app()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Initializes storage on startup and closes it on shutdown.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    init_storage(settings)
    logger.info("REST API: /api/customer/*, MCP: /mcp, Health: /health")
    async with mcp_server.session_manager.run():
        yield
    close_storage()  # Close storage connections


app = FastAPI(
    title="Customer Query API",
    description="A read-only API for querying customers with their subscriptions, products and interactions.",
    version="0.1.0",
    lifespan=lifespan,
)

# Mount REST API
app.include_router(rest_api.router)

# Mount MCP API (streamable HTTP endpoint)
app.mount("/mcp", mcp_app)


@app.get("/health")
async def health_check():
    """
    Health check endpoint to verify that the server is running.
    """
    return {"status": "ok"}
