"""
Local internet radio station files

SoundTouch speakers can only play LOCAL_INTERNET_RADIO presets through a
station document fetched over HTTP, so each station is stored as a small JSON
file and served back from /presets/{slug}.json.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

from adapters.errors import DeviceValidationError, StationExistsError

logger = logging.getLogger(__name__)

_SLUG_SEPARATORS = re.compile(r'[^a-z0-9]+')


def slugify(name: str) -> str:
    """'My Radio Station!' -> 'my-radio-station'"""
    slug = _SLUG_SEPARATORS.sub('-', (name or '').lower()).strip('-')
    if not slug:
        raise DeviceValidationError(f"Station name '{name}' does not produce a valid file name")
    return slug


def station_document(name: str, stream_url: str) -> dict:
    return {
        "audio": {
            "hasPlaylist": False,
            "isRealtime": True,
            "streamUrl": stream_url,
        },
        "name": name,
        "streamType": "liveRadio",
    }


class StationFileService:
    """Stores station JSON files in a directory and builds their public URLs"""

    def __init__(self, directory: str, public_host_url: str):
        self.directory = Path(directory)
        self.public_host_url = public_host_url.rstrip('/')

    def _path(self, slug: str) -> Path:
        return self.directory / f"{slug}.json"

    def exists(self, slug: str) -> bool:
        return self._path(slug).is_file()

    def public_url(self, slug: str) -> str:
        return f"{self.public_host_url}/presets/{slug}.json"

    def create(self, name: str, stream_url: str) -> str:
        """Write a new station file, returns its slug"""
        slug = slugify(name)
        if self.exists(slug):
            raise StationExistsError(f"A station named '{name}' already exists ({slug}.json)")
        self._write(slug, name, stream_url)
        logger.info(f"Created station file {slug}.json")
        return slug

    def update(self, slug: str, name: str, stream_url: str) -> str:
        """Create or overwrite the station file for slug"""
        self._write(slug, name, stream_url)
        logger.info(f"Updated station file {slug}.json")
        return slug

    def read(self, filename: str) -> Optional[str]:
        """Raw file content, None when missing or the name escapes the directory"""
        if not filename.endswith('.json') or filename != Path(filename).name:
            return None
        slug = filename[:-len('.json')]
        if not slug or _SLUG_SEPARATORS.sub('-', slug) != slug:
            return None
        path = self._path(slug)
        if not path.is_file():
            return None
        return path.read_text(encoding='utf-8')

    def _write(self, slug: str, name: str, stream_url: str):
        if not stream_url:
            raise DeviceValidationError("Stream URL is required for a local radio station")
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(slug).write_text(
            json.dumps(station_document(name, stream_url), indent=2), encoding='utf-8'
        )
