import threading
from typing import List, Optional

import pytest
from PIL import Image

from findytvideo.errors import PlayerLaunchError, ProviderError, ThumbnailError
from findytvideo.models import Thumbnail, Video


def make_video(title: str, video_id: Optional[str] = None, thumbnail_url: Optional[str] = None) -> Video:
    return Video(
        video_id=video_id or f"id-{title}",
        title=title,
        author=f"author of {title}",
        duration="03:00",
        thumbnail=Thumbnail(url=thumbnail_url) if thumbnail_url else None,
    )


class StubSearchService:
    """Answers searches from a dict of canned results, optionally holding until released."""
    def __init__(self, results=None, error: Optional[Exception] = None, hold: bool = False,
                 max_hold: float = 2.0):
        self.results = results or {}
        self.error = error
        self.calls: List[str] = []
        self.gate = threading.Event()
        self.max_hold = max_hold
        if not hold:
            self.gate.set()

    def release(self) -> None:
        self.gate.set()

    def search(self, query, limit, search_filter=None):
        self.calls.append(query)
        self.gate.wait(self.max_hold)
        if self.error is not None:
            raise ProviderError(query, self.error)
        return list(self.results.get(query, []))


class StubThumbnailService:
    def __init__(self, failing=(), hold: bool = False, max_hold: float = 2.0):
        self.failing = set(failing)
        self.calls: List[str] = []
        self.gate = threading.Event()
        self.max_hold = max_hold
        if not hold:
            self.gate.set()

    def release(self) -> None:
        self.gate.set()

    def fetch(self, url):
        self.calls.append(url)
        self.gate.wait(self.max_hold)
        if url in self.failing:
            raise ThumbnailError(url, OSError("boom"))
        return Image.new("RGB", (4, 4), (255, 0, 0))


class FakePlayer:
    def __init__(self, error: Optional[PlayerLaunchError] = None):
        self.error = error
        self.played: List[Video] = []
        self.command_name = "mpv"
        self.watch_template = "https://www.youtube.com/watch?v={video_id}"
        self.is_available = error is None

    def play(self, video):
        if self.error is not None:
            raise self.error
        self.played.append(video)


class FakeClipboard:
    def __init__(self, available: bool = True):
        self.is_available = available
        self.copied: List[str] = []

    def copy(self, text):
        if not self.is_available:
            return False
        self.copied.append(text)
        return True


@pytest.fixture
def abc_videos():
    return [make_video("A"), make_video("B"), make_video("C")]
