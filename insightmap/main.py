"""
FastAPI application entry point.

Configures and creates the FastAPI application with:
- Service lifecycle management
- Exception handlers
- Router mounting
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables first
load_dotenv()

from insightmap.core.config import get_settings  # noqa: E402

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

# Import application components
from insightmap import __version__  # noqa: E402
from insightmap.api.errors import register_exception_handlers  # noqa: E402
from insightmap.api.routers import graph_router, health_router  # noqa: E402
from insightmap.services import services_lifespan  # noqa: E402

# Create FastAPI application with service lifecycle management
app = FastAPI(
    title="Insight Map",
    description="Entity resolution and graph visualization for interview insights",
    version=__version__,
    lifespan=services_lifespan,
)

# Register exception handlers
register_exception_handlers(app)

# Mount API routers
app.include_router(health_router)
app.include_router(graph_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("insightmap.main:app", host="127.0.0.1", port=8000, reload=True)
