# models.py
import enum
import unicodedata
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from PIL.Image import Image


class ThumbnailState(enum.Enum):
    NOT_REQUESTED = "not-requested"
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Thumbnail:
    """A preview image that moves NOT_REQUESTED -> PENDING -> RESOLVED, never back."""
    url: str
    state: ThumbnailState = ThumbnailState.NOT_REQUESTED
    image: Optional[Image] = field(default=None, compare=False, repr=False)

    def requested(self) -> "Thumbnail":
        if self.state is not ThumbnailState.NOT_REQUESTED:
            return self
        return replace(self, state=ThumbnailState.PENDING)

    def resolved(self, image: Image) -> "Thumbnail":
        """Only a Pending thumbnail can resolve; it must be requested first."""
        if self.state is not ThumbnailState.PENDING:
            return self
        return replace(self, state=ThumbnailState.RESOLVED, image=image)

    @property
    def is_resolved(self) -> bool:
        return self.state is ThumbnailState.RESOLVED


@dataclass
class Video:
    video_id: str
    title: str
    author: str
    duration: str = "N/A"
    thumbnail: Optional[Thumbnail] = None


@dataclass
class Playlist:
    playlist_id: str
    title: str
    author: str
    item_count: str = "N/A"
    thumbnail: Optional[Thumbnail] = None


@dataclass
class Channel:
    channel_id: str
    name: str
    description: str
    thumbnail: Optional[Thumbnail] = None


@dataclass
class Unknown:
    """A provider result we could not interpret; keeps the raw payload for display."""
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def result_type(self) -> str:
        return str(self.raw.get("resultType") or self.raw.get("category") or "unknown")


ResultItem = Union[Video, Playlist, Channel, Unknown]


def display_title(item: ResultItem) -> str:
    """The single line shown for an item in the results list."""
    if isinstance(item, (Video, Playlist)):
        return item.title
    if isinstance(item, Channel):
        return item.name
    if isinstance(item, Unknown):
        return "Error"
    raise TypeError(f"Unexpected result item {item!r}")


def kind_label(item: ResultItem) -> str:
    if isinstance(item, Video):
        return "Video"
    if isinstance(item, Playlist):
        return "Playlist"
    if isinstance(item, Channel):
        return "Channel"
    if isinstance(item, Unknown):
        return "Unknown"
    raise TypeError(f"Unexpected result item {item!r}")


def thumbnail_of(item: ResultItem) -> Optional[Thumbnail]:
    if isinstance(item, Unknown):
        return None
    return item.thumbnail


def with_thumbnail(item: ResultItem, thumbnail: Thumbnail) -> ResultItem:
    if isinstance(item, Unknown):
        return item
    return replace(item, thumbnail=thumbnail)


def watch_url(video: Video, template: str) -> str:
    return template.format(video_id=video.video_id)


def item_link(item: ResultItem, watch_template: str) -> Optional[str]:
    """A shareable link for the item, if it has one."""
    if isinstance(item, Video):
        return watch_url(item, watch_template)
    if isinstance(item, Playlist):
        return f"https://www.youtube.com/playlist?list={item.playlist_id}"
    if isinstance(item, Channel):
        return f"https://www.youtube.com/channel/{item.channel_id}"
    return None


def clean_query(text: str) -> str:
    """Drops control characters and surrounding whitespace from a typed query."""
    kept = "".join(ch for ch in text if not unicodedata.category(ch).startswith("C"))
    return kept.strip()


def _format_duration(item: dict) -> str:
    duration_seconds = item.get("duration_seconds")
    if duration_seconds is not None:
        minutes, seconds = divmod(int(duration_seconds), 60)
        return f"{minutes:02d}:{seconds:02d}"
    return item.get("duration") or "N/A"


def _join_names(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(a["name"] for a in value if isinstance(a, dict) and a.get("name")) or "N/A"
    if isinstance(value, str) and value:
        return value
    return "N/A"


def _pick_thumbnail(item: dict) -> Optional[Thumbnail]:
    thumbnails = [t for t in item.get("thumbnails") or [] if isinstance(t, dict) and t.get("url")]
    if not thumbnails:
        return None
    largest = max(thumbnails, key=lambda t: (t.get("width") or 0) * (t.get("height") or 0))
    return Thumbnail(url=largest["url"])


def parse_search_item(item: dict) -> ResultItem:
    """Parses a single raw ytmusicapi search result into a ResultItem."""
    if not isinstance(item, dict):
        return Unknown(raw={"value": repr(item)})

    result_type = item.get("resultType")
    if result_type in ("video", "song") and item.get("videoId"):
        return Video(
            video_id=item["videoId"],
            title=item.get("title") or "N/A",
            author=_join_names(item.get("artists")),
            duration=_format_duration(item),
            thumbnail=_pick_thumbnail(item),
        )
    if result_type == "playlist" and item.get("browseId"):
        playlist_id = item["browseId"]
        if playlist_id.startswith("VL"):
            playlist_id = playlist_id[2:]
        return Playlist(
            playlist_id=playlist_id,
            title=item.get("title") or "N/A",
            author=_join_names(item.get("author")),
            item_count=str(item.get("itemCount") or "N/A"),
            thumbnail=_pick_thumbnail(item),
        )
    if result_type in ("artist", "profile") and item.get("browseId"):
        if item.get("subscribers"):
            description = f"{item['subscribers']} subscribers"
        else:
            description = item.get("item") or ""
        return Channel(
            channel_id=item["browseId"],
            name=item.get("artist") or item.get("name") or "N/A",
            description=description,
            thumbnail=_pick_thumbnail(item),
        )
    return Unknown(raw=item)


def parse_search_items(items: Optional[List[dict]]) -> List[ResultItem]:
    return [parse_search_item(item) for item in items or []]
