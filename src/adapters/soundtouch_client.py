"""
SoundTouch WebServices wire client (HTTP control port 8090, XML bodies)

Maps transport faults onto the adapter fault taxonomy:
  timeout / refused / DNS / non-2xx  ->  DeviceUnreachableError
  key press that may have registered ->  DeviceTimeoutError
"""

import asyncio
import logging
import weakref
from typing import Callable, Optional

import aiohttp

from http_helper import create_speaker_session, request_timeout as client_timeout
from .errors import DeviceTimeoutError, DeviceUnreachableError
from .soundtouch_xml import build_key

logger = logging.getLogger(__name__)

SOUNDTOUCH_PORT = 8090
DEFAULT_KEY_SENDER = "Gabbo"


class SoundTouchClient:
    """Issues control-port requests against SoundTouch speakers"""

    def __init__(self, port: int = SOUNDTOUCH_PORT, request_timeout: float = 5.0,
                 key_sender: str = DEFAULT_KEY_SENDER, key_release_delay: float = 0.1,
                 max_connections: int = 64,
                 session_factory: Callable[..., aiohttp.ClientSession] = create_speaker_session):
        self.port = port
        self.request_timeout = request_timeout
        self.key_sender = key_sender
        self.key_release_delay = key_release_delay
        self.max_connections = max_connections
        self._session_factory = session_factory
        self._session: Optional[aiohttp.ClientSession] = None
        # Entries live only while a press on that address holds or awaits the lock
        self._key_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def url(self, address: str, path: str) -> str:
        return f"http://{address}:{self.port}{path}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = self._session_factory(self.request_timeout, self.max_connections)
        return self._session

    async def close(self):
        """Close the shared HTTP session"""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # === Requests ===

    async def get(self, address: str, path: str, timeout: Optional[float] = None) -> str:
        """GET a control endpoint and return the response body"""
        return await self._request("GET", address, path, timeout=timeout)

    async def post_xml(self, address: str, path: str, body: str, timeout: Optional[float] = None) -> str:
        """POST an XML command body and return the response body"""
        return await self._request("POST", address, path, body=body, timeout=timeout)

    async def _request(self, method: str, address: str, path: str,
                       body: Optional[str] = None, timeout: Optional[float] = None) -> str:
        url = self.url(address, path)
        kwargs = {}
        if body is not None:
            kwargs["data"] = body.encode("utf-8")
            kwargs["headers"] = {"Content-Type": "application/xml"}
        if timeout is not None:
            kwargs["timeout"] = client_timeout(timeout)

        session = self._get_session()
        try:
            async with session.request(method, url, **kwargs) as response:
                response.raise_for_status()
                return await response.text()
        except asyncio.TimeoutError as e:
            bound = timeout if timeout is not None else self.request_timeout
            raise DeviceUnreachableError(f"No response from {url} within {bound}s") from e
        except (aiohttp.ClientError, OSError) as e:
            raise DeviceUnreachableError(f"{method} {url} failed: {e}") from e

    # === Key presses ===

    def _key_lock(self, address: str) -> asyncio.Lock:
        lock = self._key_locks.get(address)
        if lock is None:
            lock = self._key_locks[address] = asyncio.Lock()
        return lock

    async def press_key(self, address: str, key: str):
        """
        One logical button press: press then release, same key, strictly in order.
        Pairs for the same address never interleave.
        """
        async with self._key_lock(address):
            press_body = build_key(key, "press", self.key_sender)
            release_body = build_key(key, "release", self.key_sender)

            try:
                await self.post_xml(address, "/key", press_body)
            except DeviceUnreachableError as press_error:
                await self._release_best_effort(address, key, release_body)
                if isinstance(press_error.__cause__, asyncio.TimeoutError):
                    raise DeviceTimeoutError(
                        f"Key {key} press on {address} timed out, the device may have registered it"
                    ) from press_error
                raise

            await asyncio.sleep(self.key_release_delay)

            try:
                await self.post_xml(address, "/key", release_body)
            except DeviceUnreachableError as e:
                raise DeviceTimeoutError(
                    f"Key {key} was pressed on {address} but the release failed, key may be stuck"
                ) from e

            logger.debug(f"Key {key} pressed on {address}")

    async def _release_best_effort(self, address: str, key: str, release_body: str):
        try:
            await self.post_xml(address, "/key", release_body)
        except DeviceUnreachableError as e:
            logger.debug(f"Best-effort release of {key} on {address} failed: {e}")
