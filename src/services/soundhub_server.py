"""
SoundHub Server - Main orchestrator for all services
"""

import asyncio
import logging
import uvicorn

# Local imports
from config_loader import load_config, setup_logging
from database.manager import DatabaseManager
from adapters import AdapterRegistry, create_adapters
from api.main_api import SoundHubAPI
from .device_service import DeviceService
from .station_files import StationFileService

logger = logging.getLogger(__name__)

class SoundHubServer:
    """Main server wiring the device directory, vendor adapters and the HTTP API"""

    def __init__(self, config_path: str = "config/config.yaml"):
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.db = DatabaseManager(self.config)
        self.registry = AdapterRegistry(create_adapters(self.config, self.db))

        stations = self.config['stations']
        self.station_files = StationFileService(stations['directory'], stations['public_host_url'])

        self.device_service = DeviceService(
            self.db,
            self.registry,
            station_files=self.station_files,
            default_network_mask=self.config['network'].get('network_mask')
        )
        self.api = SoundHubAPI(self.device_service, self.config, self.station_files)

        self.running = False
        self.stopped = False
        self.tasks = []

    async def start(self):
        """Start all server services"""
        logger.info("Starting SoundHub Local Server...")

        try:
            await self.db.initialize()
            logger.info("Database initialized successfully")

            self.running = True

            if self.config['network']['scan_interval_minutes'] > 0:
                self.tasks.append(asyncio.create_task(self._discovery_service()))

            logger.info(f"Vendors: {', '.join(self.registry.vendors())} ({len(self.tasks)} background tasks)")

            await self._start_api_server()

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop all server services gracefully"""
        if self.stopped:
            return
        self.stopped = True
        logger.info("Stopping server...")
        self.running = False

        for task in self.tasks:
            task.cancel()

        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

        await self.registry.close()
        await self.db.close()
        logger.info("Server stopped")

    async def _discovery_service(self):
        """Background service for periodic device discovery"""
        scan_interval = self.config['network']['scan_interval_minutes'] * 60
        discovery_timeout = self.config['network'].get('discovery_timeout')

        logger.info(f"Discovery service started (every {scan_interval/60} minutes)")

        while self.running:
            try:
                await asyncio.sleep(scan_interval)
                if not self.running:
                    break

                logger.info("Running periodic discovery...")
                result = await self.device_service.discover_and_persist(timeout=discovery_timeout)
                if result.new:
                    logger.info(f"Periodic discovery added {result.new} new devices")

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Discovery service error: {e}")

    async def _start_api_server(self):
        """Start the FastAPI server"""
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        server = uvicorn.Server(config)

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"API documentation: http://localhost:{self.config['api']['port']}/docs")
        logger.info(f"Station files served at {self.station_files.public_host_url}/presets/")

        await server.serve()
