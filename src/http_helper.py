# HTTP Helper for Speaker Connections
# Session configuration for local speaker control ports (plain HTTP on the LAN)

import aiohttp
import logging

logger = logging.getLogger(__name__)

def create_speaker_session(timeout_seconds: float = 5, max_connections: int = 64) -> aiohttp.ClientSession:
    """
    Create properly configured aiohttp session for local speaker connections (always HTTP)
    One session is shared by all requests of an adapter, including discovery probes
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,      # Upper bound across all speakers (discovery fan-out)
        limit_per_host=2,           # Speakers handle very few parallel requests
        ssl=False,                  # Speaker control ports are HTTP only
        force_close=True,           # No keep-alive, speakers drop idle sockets
        enable_cleanup_closed=True
    )

    logger.debug(f"Creating speaker session (timeout={timeout_seconds}s, limit={max_connections})")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )

def request_timeout(seconds) -> aiohttp.ClientTimeout:
    """Per-request timeout override for a shared session"""
    return aiohttp.ClientTimeout(total=seconds)
