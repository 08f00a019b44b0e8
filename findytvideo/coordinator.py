# coordinator.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import FetchCancelled, ProviderError, ThumbnailError
from .fetch import FetchTask
from .models import clean_query
from .store import ResultStore

log = logging.getLogger(__name__)


@dataclass
class SearchStarted:
    query: str


@dataclass
class SearchCompleted:
    query: str
    count: int


@dataclass
class SearchFailed:
    query: str
    error: ProviderError


@dataclass
class ThumbnailLoaded:
    index: int


@dataclass
class SearchFinished:
    """Last event of every fetch, whether it completed, failed or was cancelled."""
    query: str


SearchEvent = Union[SearchStarted, SearchCompleted, SearchFailed, ThumbnailLoaded, SearchFinished]


@dataclass
class FetchHandle:
    """One outstanding fetch: its cancellation signal and the task running it."""
    query: str
    cancel: asyncio.Event
    task: "asyncio.Task[None]"

    @property
    def done(self) -> bool:
        return self.task.done()

    async def join(self) -> None:
        # asyncio.wait never raises the task's own exception or cancellation.
        await asyncio.wait({self.task})
        if not self.task.cancelled() and self.task.exception() is not None:
            log.error("fetch for %r crashed", self.query, exc_info=self.task.exception())


class SearchCoordinator:
    """Runs at most one FetchTask at a time and publishes its results to a ResultStore."""

    def __init__(self, store: ResultStore, fetch_task: FetchTask,
                 listener: Optional[Callable[[SearchEvent], None]] = None,
                 fetch_thumbnails: bool = True):
        self.store = store
        self.fetch_task = fetch_task
        self.listener = listener
        self.fetch_thumbnails = fetch_thumbnails and fetch_task.thumbnail_service is not None
        self.last_error: Optional[ProviderError] = None
        self._handle: Optional[FetchHandle] = None

    @property
    def handle(self) -> Optional[FetchHandle]:
        return self._handle

    @property
    def busy(self) -> bool:
        return self._handle is not None and not self._handle.done

    async def start(self, query: str) -> bool:
        """Starts a search, stopping any previous one first. Returns False for empty queries."""
        if self._handle is not None:
            log.debug("start() while holding a fetch for %r, stopping it first", self._handle.query)
            await self.stop()

        query = clean_query(query)
        if not query:
            log.debug("ignoring empty query")
            return False

        cancel = asyncio.Event()
        task = asyncio.create_task(self._run(query, cancel), name=f"search:{query}")
        self._handle = FetchHandle(query, cancel, task)
        self._emit(SearchStarted(query))
        return True

    async def stop(self) -> None:
        """Cancels the held fetch and waits for it to finish. No-op when idle."""
        handle = self._handle
        if handle is None:
            return
        handle.cancel.set()
        await handle.join()
        if self._handle is handle:
            self._handle = None
        log.debug("stopped fetch for %r", handle.query)

    async def _run(self, query: str, cancel: asyncio.Event) -> None:
        try:
            await self._search(query, cancel)
        finally:
            self._emit(SearchFinished(query))

    async def _search(self, query: str, cancel: asyncio.Event) -> None:
        try:
            items = await self.fetch_task.run(query, cancel)
        except FetchCancelled:
            log.debug("fetch for %r cancelled", query)
            return
        except ProviderError as e:
            self.last_error = e
            log.warning("%s", e)
            self._emit(SearchFailed(query, e))
            return

        self.last_error = None
        self.store.replace(items)
        log.info("search %r: %d results", query, len(items))
        self._emit(SearchCompleted(query, len(items)))

        if self.fetch_thumbnails and not cancel.is_set():
            await self._load_thumbnails(cancel)

    async def _load_thumbnails(self, cancel: asyncio.Event) -> None:
        generation = self.store.generation
        pending = self.store.pending_thumbnails()
        for index, _ in pending:
            self.store.mark_thumbnail_pending(index)
        await asyncio.gather(*(
            self._load_thumbnail(index, url, generation, cancel) for index, url in pending
        ))

    async def _load_thumbnail(self, index: int, url: str, generation: int, cancel: asyncio.Event) -> None:
        try:
            image = await self.fetch_task.fetch_thumbnail(url, cancel)
        except FetchCancelled:
            return
        except ThumbnailError as e:
            log.debug("%s", e)
            return
        if self.store.generation != generation:
            return
        self.store.set_thumbnail(index, image)
        self._emit(ThumbnailLoaded(index))

    def _emit(self, event: SearchEvent) -> None:
        if self.listener is not None:
            self.listener(event)
