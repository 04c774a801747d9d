"""
SoundHub Local Server - command line entry point

Runs the server until the API exits or SIGINT/SIGTERM arrives, then shuts
down the discovery loop, adapter sessions and database pool.
"""

import asyncio
import contextlib
import logging
import os
import signal
import sys

from services.soundhub_server import SoundHubServer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/config.yaml'


async def run(config_path: str) -> int:
    """Serve until stopped; returns the process exit code"""
    try:
        server = SoundHubServer(config_path=config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot start with configuration {config_path}: {e}")
        return 1

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops; Ctrl+C still raises KeyboardInterrupt there
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop_requested.set)

    serving = asyncio.create_task(server.start())
    stopping = asyncio.create_task(stop_requested.wait())
    try:
        done, _ = await asyncio.wait({serving, stopping}, return_when=asyncio.FIRST_COMPLETED)
        if serving in done:
            serving.result()
        else:
            logger.info("Shutdown requested")
            serving.cancel()
            await asyncio.gather(serving, return_exceptions=True)
        return 0
    except Exception as e:
        logger.error(f"Server failed: {e}")
        return 1
    finally:
        stopping.cancel()
        await server.stop()


if __name__ == "__main__":
    config_file = os.environ.get('CONFIG_FILE', DEFAULT_CONFIG_PATH)
    try:
        sys.exit(asyncio.run(run(config_file)))
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
