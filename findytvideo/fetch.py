# fetch.py
import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

from PIL.Image import Image

from .errors import FetchCancelled
from .models import ResultItem
from .services import ThumbnailService, VideoSearchService

log = logging.getLogger(__name__)

T = TypeVar("T")


async def first_completed(work: Awaitable[T], cancel: asyncio.Event, query: str = "") -> T:
    """Awaits ``work`` unless ``cancel`` is set first.

    Whichever finishes first decides the outcome: the work's result (or its
    exception), or FetchCancelled if the signal won. The losing side is
    cancelled before returning.
    """
    work_future = asyncio.ensure_future(work)
    cancel_future = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({work_future, cancel_future},
                                     return_when=asyncio.FIRST_COMPLETED)
    finally:
        for future in (work_future, cancel_future):
            if not future.done():
                future.cancel()
    if work_future in done:
        return work_future.result()
    raise FetchCancelled(query)


class FetchTask:
    """One cancellable search against the provider, plus best-effort thumbnail loads."""

    def __init__(self, search_service: VideoSearchService, limit: int,
                 search_filter: Optional[str] = None,
                 thumbnail_service: Optional[ThumbnailService] = None):
        self.search_service = search_service
        self.limit = limit
        self.search_filter = search_filter
        self.thumbnail_service = thumbnail_service

    async def run(self, query: str, cancel: asyncio.Event) -> List[ResultItem]:
        """Returns the provider's results, or raises ProviderError / FetchCancelled."""
        if cancel.is_set():
            raise FetchCancelled(query)
        log.debug("fetching %r", query)
        return await first_completed(
            asyncio.to_thread(self.search_service.search, query, self.limit, self.search_filter),
            cancel, query,
        )

    async def fetch_thumbnail(self, url: str, cancel: asyncio.Event) -> Image:
        """Downloads one thumbnail, raising ThumbnailError / FetchCancelled."""
        if self.thumbnail_service is None:
            raise RuntimeError("no thumbnail service configured")
        if cancel.is_set():
            raise FetchCancelled(url)
        return await first_completed(
            asyncio.to_thread(self.thumbnail_service.fetch, url), cancel, url,
        )
