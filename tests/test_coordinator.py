import asyncio

import pytest

from findytvideo.coordinator import (SearchCompleted, SearchCoordinator, SearchFailed,
                                     SearchFinished, SearchStarted, ThumbnailLoaded)
from findytvideo.errors import FetchCancelled, ProviderError
from findytvideo.fetch import FetchTask, first_completed
from findytvideo.models import ThumbnailState, display_title
from findytvideo.store import ResultStore

from conftest import StubSearchService, StubThumbnailService, make_video


def make_coordinator(search_service, thumbnail_service=None, store=None):
    events = []
    store = store if store is not None else ResultStore()
    fetch_task = FetchTask(search_service, limit=20, thumbnail_service=thumbnail_service)
    coordinator = SearchCoordinator(store, fetch_task, listener=events.append)
    return coordinator, store, events


async def finish(coordinator):
    if coordinator.handle is not None:
        await coordinator.handle.join()


async def wait_until_fetching(stub):
    async def poll():
        while not stub.calls:
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout=1.0)


async def test_start_publishes_results_in_order(abc_videos):
    coordinator, store, events = make_coordinator(StubSearchService({"rust": abc_videos}))
    assert await coordinator.start("rust")
    await finish(coordinator)

    assert [display_title(i) for i in store.items] == ["A", "B", "C"]
    assert store.selection is None
    assert events == [SearchStarted("rust"), SearchCompleted("rust", 3), SearchFinished("rust")]
    assert not coordinator.busy


async def test_empty_query_is_not_submitted():
    service = StubSearchService()
    coordinator, store, events = make_coordinator(service)
    assert not await coordinator.start("  \x1b ")
    assert coordinator.handle is None
    assert service.calls == []
    assert events == []


async def test_stop_before_response_leaves_store_unchanged(abc_videos):
    service = StubSearchService({"rust": abc_videos}, hold=True)
    previous = [make_video("old")]
    coordinator, store, events = make_coordinator(service, store=ResultStore(previous))
    store.select_next()

    await coordinator.start("rust")
    await asyncio.sleep(0.05)
    assert coordinator.busy
    await coordinator.stop()
    service.release()

    assert coordinator.handle is None
    assert [display_title(i) for i in store.items] == ["old"]
    assert store.selection == 0
    assert not any(isinstance(e, SearchCompleted) for e in events)


async def test_second_start_supersedes_first(abc_videos):
    service = StubSearchService({"first": [make_video("X")], "second": abc_videos}, hold=True)
    coordinator, store, events = make_coordinator(service)

    await coordinator.start("first")
    await asyncio.sleep(0.05)
    first_handle = coordinator.handle
    await coordinator.start("second")

    assert first_handle.done
    assert coordinator.handle is not first_handle
    service.release()
    await finish(coordinator)
    completed = [e for e in events if isinstance(e, SearchCompleted)]
    assert completed == [SearchCompleted("second", 3)]
    assert [display_title(i) for i in store.items] == ["A", "B", "C"]


async def test_stop_is_idempotent(abc_videos):
    coordinator, _, _ = make_coordinator(StubSearchService({"rust": abc_videos}))
    await coordinator.stop()
    await coordinator.start("rust")
    await coordinator.stop()
    await coordinator.stop()
    assert coordinator.handle is None


async def test_provider_failure_keeps_stale_results():
    service = StubSearchService(error=ConnectionError("offline"))
    coordinator, store, events = make_coordinator(service, store=ResultStore([make_video("old")]))

    await coordinator.start("rust")
    await finish(coordinator)

    assert [display_title(i) for i in store.items] == ["old"]
    assert isinstance(events[-2], SearchFailed)
    assert events[-1] == SearchFinished("rust")
    assert isinstance(coordinator.last_error, ProviderError)
    assert coordinator.last_error.query == "rust"


async def test_thumbnails_resolve_after_results():
    videos = [make_video("A", thumbnail_url="http://img/a"), make_video("B"),
              make_video("C", thumbnail_url="http://img/c")]
    thumbnails = StubThumbnailService(failing={"http://img/c"})
    coordinator, store, events = make_coordinator(StubSearchService({"rust": videos}), thumbnails)

    await coordinator.start("rust")
    await finish(coordinator)

    assert sorted(thumbnails.calls) == ["http://img/a", "http://img/c"]
    assert store.items[0].thumbnail.state is ThumbnailState.RESOLVED
    assert store.items[1].thumbnail is None
    assert store.items[2].thumbnail.state is ThumbnailState.PENDING
    assert [e for e in events if isinstance(e, ThumbnailLoaded)] == [ThumbnailLoaded(0)]


async def test_thumbnails_skipped_when_disabled():
    videos = [make_video("A", thumbnail_url="http://img/a")]
    thumbnails = StubThumbnailService()
    store = ResultStore()
    fetch_task = FetchTask(StubSearchService({"rust": videos}), limit=5, thumbnail_service=thumbnails)
    coordinator = SearchCoordinator(store, fetch_task, fetch_thumbnails=False)

    await coordinator.start("rust")
    await finish(coordinator)

    assert thumbnails.calls == []
    assert store.items[0].thumbnail.state is ThumbnailState.NOT_REQUESTED


async def test_stop_during_thumbnail_fetch_keeps_results():
    videos = [make_video("A", thumbnail_url="http://img/a"), make_video("B", thumbnail_url="http://img/b")]
    thumbnails = StubThumbnailService(hold=True)
    coordinator, store, events = make_coordinator(StubSearchService({"rust": videos}), thumbnails)

    await coordinator.start("rust")
    await wait_until_fetching(thumbnails)
    assert coordinator.busy
    await coordinator.stop()
    thumbnails.release()

    assert coordinator.handle is None
    assert not coordinator.busy
    assert [display_title(i) for i in store.items] == ["A", "B"]
    assert [i.thumbnail.state for i in store.items] == [ThumbnailState.PENDING] * 2
    assert not any(isinstance(e, ThumbnailLoaded) for e in events)
    assert events[-1] == SearchFinished("rust")


async def test_thumbnail_for_replaced_results_is_dropped():
    videos = [make_video("A", thumbnail_url="http://img/a")]
    thumbnails = StubThumbnailService(hold=True)
    coordinator, store, events = make_coordinator(StubSearchService({"rust": videos}), thumbnails)

    await coordinator.start("rust")
    await wait_until_fetching(thumbnails)
    store.replace([make_video("new", thumbnail_url="http://img/new")])
    thumbnails.release()
    await finish(coordinator)

    assert [display_title(i) for i in store.items] == ["new"]
    assert store.items[0].thumbnail.state is ThumbnailState.NOT_REQUESTED
    assert not any(isinstance(e, ThumbnailLoaded) for e in events)
    assert events[-1] == SearchFinished("rust")


async def test_first_completed_returns_work_result():
    cancel = asyncio.Event()
    assert await first_completed(asyncio.sleep(0, result="done"), cancel) == "done"


async def test_first_completed_raises_when_cancelled_first():
    cancel = asyncio.Event()

    async def slow():
        await asyncio.sleep(10)

    async def trip():
        await asyncio.sleep(0.01)
        cancel.set()

    asyncio.ensure_future(trip())
    with pytest.raises(FetchCancelled):
        await first_completed(slow(), cancel, "rust")


async def test_fetch_task_refuses_already_cancelled_signal(abc_videos):
    service = StubSearchService({"rust": abc_videos})
    cancel = asyncio.Event()
    cancel.set()
    with pytest.raises(FetchCancelled):
        await FetchTask(service, limit=5).run("rust", cancel)
    assert service.calls == []
