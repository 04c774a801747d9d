"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import logging
import os

from services.soundhub_server import SoundHubServer

# Components are built here; the database pool opens on startup
server = SoundHubServer(os.environ.get('CONFIG_FILE', 'config/config.yaml'))

logger = logging.getLogger(__name__)

# Expose the FastAPI app for uvicorn
app = server.api.app

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info("Starting up application...")
    await server.db.initialize()
    logger.info("Database initialized")

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    logger.info("Shutting down application...")
    await server.registry.close()
    await server.db.close()
    logger.info("Application shut down complete")

logger.info("ASGI app ready for uvicorn")
