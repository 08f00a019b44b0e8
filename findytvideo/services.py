# services.py
import io
import logging
import shutil
import subprocess
from typing import List, Optional, Sequence

import pyperclip
import requests
from PIL import Image, UnidentifiedImageError
from ytmusicapi import YTMusic

from .errors import PlayerLaunchError, ProviderError, ThumbnailError
from .models import ResultItem, Video, parse_search_items, watch_url

log = logging.getLogger(__name__)


class VideoSearchService:
    """A service to handle interactions with the ytmusicapi search endpoint."""
    def __init__(self, client: Optional[YTMusic] = None):
        self._client = client

    @property
    def client(self) -> YTMusic:
        # Anonymous mode is enough for public searches.
        if self._client is None:
            self._client = YTMusic()
        return self._client

    def search(self, query: str, limit: int, search_filter: Optional[str] = None) -> List[ResultItem]:
        """Performs the search and returns results in provider order."""
        try:
            raw_items = self.client.search(query=query, filter=search_filter, limit=limit)
            results = parse_search_items(raw_items)
        except Exception as e:
            raise ProviderError(query, e) from e

        seen_videos = set()
        unique_results = []
        for result in results:
            if isinstance(result, Video):
                if result.video_id in seen_videos:
                    continue
                seen_videos.add(result.video_id)
            unique_results.append(result)
        log.debug("search %r returned %d items", query, len(unique_results))
        return unique_results


class ThumbnailService:
    """Downloads and decodes preview images."""
    def __init__(self, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> Image.Image:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            image = Image.open(io.BytesIO(response.content))
            return image.convert("RGB")
        except (requests.RequestException, UnidentifiedImageError, OSError) as e:
            raise ThumbnailError(url, e) from e


class Player:
    """A service to manage the external media player."""
    def __init__(self, commands: Sequence[str], watch_template: str):
        self.commands = tuple(commands)
        self.watch_template = watch_template
        self.command_name = self.commands[0] if self.commands else ""
        self.command_path = None
        for command in self.commands:
            path = shutil.which(command)
            if path:
                self.command_name, self.command_path = command, path
                break

    @property
    def is_available(self) -> bool:
        return self.command_path is not None

    def play(self, video: Video) -> subprocess.Popen:
        """Spawns the player for a video and returns without waiting for it."""
        if not self.is_available:
            raise PlayerLaunchError(" / ".join(self.commands) or "player", "command not found")
        url = watch_url(video, self.watch_template)
        try:
            process = subprocess.Popen(
                [self.command_path, url],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise PlayerLaunchError(self.command_name, str(e)) from e
        log.info("launched %s for %s (pid %s)", self.command_name, url, process.pid)
        return process


class Clipboard:
    """Copies links to the system clipboard through pyperclip."""
    def copy(self, text: str) -> bool:
        """Returns False when no clipboard mechanism is usable (e.g. no xclip on a bare X server)."""
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            log.warning("clipboard copy failed: %s", e)
            return False
        return True
