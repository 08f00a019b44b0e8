# ui.py
from typing import Optional, Sequence

from PIL import Image as PILImage
from rich.style import Style
from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Markdown, RichLog, Static

from .coordinator import SearchEvent
from .input_state import KeyInput, Mode
from .models import (Channel, Playlist, ResultItem, ThumbnailState, Unknown, Video,
                     display_title, kind_label, thumbnail_of)

HELP_TEXT = {
    Mode.BROWSING: "/ search  ↑↓/jk move  enter play  c copy link  tab details  q quit",
    Mode.EDITING_QUERY: "type query  enter search  esc cancel",
    Mode.DETAIL: "tab results  / search  ↑↓/jk move  c copy link  q quit",
    Mode.EXITING: "",
}


class SearchUpdated(Message):
    """Posted by the app when the search coordinator reports progress."""
    def __init__(self, event: SearchEvent) -> None:
        self.event = event
        super().__init__()


def image_to_halfblocks(image: PILImage.Image, width: int, height: int) -> Text:
    """Renders an image into width x height cells, two pixels per cell."""
    if width <= 0 or height <= 0 or not image.width or not image.height:
        return Text("")
    scale = min(width / image.width, (height * 2) / image.height)
    px_w = max(1, int(image.width * scale))
    px_h = max(2, int(image.height * scale) // 2 * 2)
    img = image.convert("RGB").resize((px_w, px_h), resample=PILImage.Resampling.BILINEAR)

    out = Text(justify="center")
    pixels = img.load()
    for y in range(0, px_h, 2):
        for x in range(px_w):
            r1, g1, b1 = pixels[x, y]
            r2, g2, b2 = pixels[x, y + 1]
            style = Style(color=f"#{r1:02x}{g1:02x}{b1:02x}", bgcolor=f"#{r2:02x}{g2:02x}{b2:02x}")
            out.append("▀", style=style)
        if y + 2 < px_h:
            out.append("\n")
    return out


class SearchBar(Static):
    """Shows the query buffer; gets a cursor while the query is being edited."""
    busy = False

    def update_query(self, query: str, editing: bool, busy: bool) -> None:
        self.busy = busy
        text = Text("Search: ", style="bold")
        text.append(query)
        if editing:
            text.append("▏", style="blink")
        if busy:
            text.append("  searching…", style="dim italic")
        self.update(text)


class ResultsList(Static, can_focus=True):
    """Result titles with the selection highlighted.

    This widget holds focus for the whole session and forwards every key to
    the app, so textual's own bindings never shadow the modal keys.
    """
    class KeyPressed(Message):
        def __init__(self, key: KeyInput) -> None:
            self.key = key
            super().__init__()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.post_message(self.KeyPressed(KeyInput(key=event.key, character=event.character)))

    def update_results(self, items: Sequence[ResultItem], selection: Optional[int]) -> None:
        if not items:
            self.update(Text("No results. Press / to search.", style="dim italic"))
            return
        visible = max(1, self.size.height or len(items))
        start = 0
        if selection is not None and selection >= visible:
            start = selection - visible + 1
        text = Text(no_wrap=True, overflow="ellipsis")
        for index in range(start, min(len(items), start + visible)):
            line = display_title(items[index])
            if isinstance(items[index], Unknown):
                line_style = "reverse red" if index == selection else "red"
            else:
                line_style = "reverse bold" if index == selection else ""
            text.append(line, style=line_style)
            if index + 1 < min(len(items), start + visible):
                text.append("\n")
        self.update(text)


class ThumbnailView(Widget):
    """A thumbnail drawn with coloured half blocks, scaled to the widget size."""
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._image: Optional[PILImage.Image] = None
        self._placeholder = ""

    def show(self, image: Optional[PILImage.Image], placeholder: str = "") -> None:
        if image is self._image and placeholder == self._placeholder:
            return
        self._image = image
        self._placeholder = placeholder
        self.refresh()

    def render(self) -> Text:
        if self._image is None:
            return Text(self._placeholder, style="dim italic", justify="center")
        return image_to_halfblocks(self._image, self.size.width, self.size.height)


class DetailsPane(Static):
    """Widget to display details of the selected result."""
    _content: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield ThumbnailView(id="thumbnail")
        yield Markdown()

    def on_mount(self) -> None:
        self.update_details(None)

    def update_details(self, item: Optional[ResultItem]) -> None:
        self.border_title = kind_label(item) if item is not None else "Details"
        self._update_thumbnail(item)
        content = self.describe(item)
        if content != self._content:
            self._content = content
            self.query_one(Markdown).update(content)

    def _update_thumbnail(self, item: Optional[ResultItem]) -> None:
        view = self.query_one(ThumbnailView)
        thumbnail = thumbnail_of(item) if item is not None else None
        view.display = thumbnail is not None
        if thumbnail is None:
            view.show(None)
        elif thumbnail.state is ThumbnailState.RESOLVED:
            view.show(thumbnail.image)
        elif thumbnail.state is ThumbnailState.PENDING:
            view.show(None, "Loading thumbnail…")
        else:
            view.show(None, "No thumbnail")

    @staticmethod
    def describe(item: Optional[ResultItem]) -> str:
        if item is None:
            return "## Details\n\n*Select a result to see its details.*"
        if isinstance(item, Video):
            return (f"## {item.title}\n\n- **Author**: {item.author}\n"
                    f"- **Duration**: {item.duration}\n- **Video ID**: `{item.video_id}`")
        if isinstance(item, Playlist):
            return (f"## {item.title}\n\n- **Author**: {item.author}\n"
                    f"- **Items**: {item.item_count}\n- **Playlist ID**: `{item.playlist_id}`")
        if isinstance(item, Channel):
            description = item.description or "*No description.*"
            return f"## {item.name}\n\n{description}\n\n- **Channel ID**: `{item.channel_id}`"
        if isinstance(item, Unknown):
            return (f"## Unsupported result\n\nThe provider returned a "
                    f"`{item.result_type}` result that cannot be shown.")
        raise TypeError(f"Unexpected result item {item!r}")


class HelpBar(Static):
    def update_mode(self, mode: Mode) -> None:
        self.update(Text(HELP_TEXT[mode], style="dim"))


class LogPane(RichLog):
    """A dedicated widget for logging application events."""
    def add_message(self, message: str) -> None:
        self.write(message)
