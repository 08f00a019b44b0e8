# store.py
from typing import Iterable, List, Optional, Tuple

from PIL.Image import Image

from .models import ResultItem, ThumbnailState, thumbnail_of, with_thumbnail


class ResultStore:
    """The latest completed search results plus a selection cursor.

    The store is owned by the UI loop; background work hands results over as
    messages and the loop applies them here, so every mutation is atomic with
    respect to readers on that loop.
    """

    def __init__(self, items: Iterable[ResultItem] = ()):
        self._items: Tuple[ResultItem, ...] = tuple(items)
        self._selection: Optional[int] = None
        self._generation = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def generation(self) -> int:
        """Bumped on every replace, so late writers can tell their sequence is gone."""
        return self._generation

    @property
    def items(self) -> Tuple[ResultItem, ...]:
        return self._items

    @property
    def selection(self) -> Optional[int]:
        if self._selection is not None and self._selection >= len(self._items):
            return None
        return self._selection

    def replace(self, items: Iterable[ResultItem]) -> None:
        """Swaps in a new result sequence and clears the selection."""
        self._items = tuple(items)
        self._selection = None
        self._generation += 1

    def clear(self) -> None:
        self.replace(())

    def select_next(self) -> Optional[int]:
        if not self._items:
            self._selection = None
        elif self.selection is None:
            self._selection = 0
        else:
            self._selection = (self.selection + 1) % len(self._items)
        return self._selection

    def select_previous(self) -> Optional[int]:
        if not self._items:
            self._selection = None
        elif self.selection is None:
            self._selection = len(self._items) - 1
        else:
            self._selection = (self.selection - 1) % len(self._items)
        return self._selection

    def selected(self) -> Optional[ResultItem]:
        index = self.selection
        return None if index is None else self._items[index]

    def mark_thumbnail_pending(self, index: int) -> bool:
        """Flags an item's thumbnail as being fetched. Returns False if there is nothing to fetch."""
        if not 0 <= index < len(self._items):
            return False
        thumbnail = thumbnail_of(self._items[index])
        if thumbnail is None:
            return False
        self._set_item(index, with_thumbnail(self._items[index], thumbnail.requested()))
        return True

    def set_thumbnail(self, index: int, image: Image) -> None:
        """Resolves one item's thumbnail; late results for a replaced sequence are ignored."""
        if not 0 <= index < len(self._items):
            return
        thumbnail = thumbnail_of(self._items[index])
        if thumbnail is None or thumbnail.state is not ThumbnailState.PENDING:
            return
        self._set_item(index, with_thumbnail(self._items[index], thumbnail.resolved(image)))

    def pending_thumbnails(self) -> List[Tuple[int, str]]:
        """(index, url) pairs of thumbnails not yet requested."""
        pending = []
        for index, item in enumerate(self._items):
            thumbnail = thumbnail_of(item)
            if thumbnail is not None and thumbnail.state is ThumbnailState.NOT_REQUESTED:
                pending.append((index, thumbnail.url))
        return pending

    def _set_item(self, index: int, item: ResultItem) -> None:
        items = list(self._items)
        items[index] = item
        self._items = tuple(items)
