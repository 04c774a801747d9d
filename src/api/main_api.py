"""
Main FastAPI application setup

Local HTTP API for the SoundHub server: uniform speaker control over every
registered vendor adapter, plus the station files the speakers fetch for
local internet radio presets.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from typing import Dict, Optional
import logging

from adapters.errors import (
    DeviceError, DeviceNotFoundError, DeviceTimeoutError, DeviceUnreachableError,
    DeviceValidationError, NotSupportedError, StationExistsError
)

from .device_routes import create_device_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)

# Most specific first: DeviceTimeoutError is a DeviceUnreachableError
ERROR_STATUS_CODES = [
    (DeviceNotFoundError, 404),
    (DeviceValidationError, 400),
    (StationExistsError, 409),
    (NotSupportedError, 501),
    (DeviceTimeoutError, 504),
    (DeviceUnreachableError, 503),
]

def status_code_for(error: DeviceError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


class SoundHubAPI:
    """Local HTTP API for speaker control and discovery"""

    def __init__(self, device_service, config: Dict, station_files=None):
        self.service = device_service
        self.config = config
        self.station_files = station_files
        self.app = FastAPI(
            title="SoundHub Local Server",
            description="Local API for networked speaker control, presets and discovery",
            version="1.0.0"
        )
        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routes()

    def _setup_middleware(self):
        cors_origins = self.config.get('api', {}).get('cors_origins', ['*'])
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_exception_handlers(self):
        """Map the device fault taxonomy onto HTTP status codes"""

        @self.app.exception_handler(DeviceError)
        async def device_error_handler(request: Request, exc: DeviceError):
            status_code = status_code_for(exc)
            if status_code >= 500:
                logger.warning(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
            return JSONResponse(status_code=status_code, content={"code": exc.code, "message": exc.message})

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            errors = exc.errors()
            message = "; ".join(
                f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
                for error in errors
            ) or "Invalid request"
            return JSONResponse(status_code=400, content={"code": "INVALID_INPUT", "message": message})

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        self.app.include_router(create_system_routes(self.service))
        self.app.include_router(create_device_routes(self.service))
        self._setup_station_routes()

    def _setup_station_routes(self):
        """Station files are served outside /api, at the URL stored in the preset"""

        @self.app.get("/presets/{filename}")
        async def get_station_file(filename: str):
            if self.station_files is None or not _is_safe_filename(filename):
                return JSONResponse(
                    status_code=400,
                    content={"code": "INVALID_INPUT", "message": "Invalid station filename"}
                )
            content = self.station_files.read(filename)
            if content is None:
                return JSONResponse(
                    status_code=404,
                    content={"code": "STATION_NOT_FOUND", "message": f"Station file '{filename}' not found"}
                )
            return Response(content=content, media_type="application/json")


def _is_safe_filename(filename: Optional[str]) -> bool:
    if not filename or not filename.strip():
        return False
    return '..' not in filename and '/' not in filename and '\\' not in filename and '\x00' not in filename
