# input_state.py
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .coordinator import SearchCoordinator
from .errors import PlayerLaunchError
from .models import Video, display_title, item_link
from .services import Clipboard, Player
from .store import ResultStore

log = logging.getLogger(__name__)


class Mode(enum.Enum):
    BROWSING = "browsing"
    EDITING_QUERY = "editing"
    DETAIL = "detail"
    EXITING = "exiting"


@dataclass(frozen=True)
class KeyInput:
    """A terminal key event, named the way textual names keys ("escape", "up", "j")."""
    key: str
    character: Optional[str] = None
    pressed: bool = True

    @property
    def is_printable(self) -> bool:
        return (self.character is not None and len(self.character) == 1
                and self.character.isprintable())


QUIT_KEYS = {"q", "escape"}
UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}

Notifier = Callable[[str, str], None]


class InputStateMachine:
    """Interprets key presses against the current UI mode."""

    def __init__(self, store: ResultStore, coordinator: SearchCoordinator, player: Player,
                 clipboard: Optional[Clipboard] = None, notify: Optional[Notifier] = None,
                 query: str = ""):
        self.store = store
        self.coordinator = coordinator
        self.player = player
        self.clipboard = clipboard
        self.notify = notify or (lambda message, severity="information": None)
        self.mode = Mode.BROWSING
        self.query = query
        self._query_before_edit = query

    @property
    def running(self) -> bool:
        return self.mode is not Mode.EXITING

    async def handle_key(self, key: KeyInput) -> Mode:
        """Applies one key event and returns the resulting mode. Releases are ignored."""
        if not key.pressed:
            return self.mode
        if self.mode is Mode.BROWSING:
            await self._handle_browsing(key)
        elif self.mode is Mode.EDITING_QUERY:
            await self._handle_editing(key)
        elif self.mode is Mode.DETAIL:
            await self._handle_detail(key)
        return self.mode

    async def submit(self, query: str) -> bool:
        """Replaces the current search with a new one."""
        self.query = query
        await self.coordinator.stop()
        return await self.coordinator.start(query)

    async def quit(self) -> None:
        await self.coordinator.stop()
        self.mode = Mode.EXITING

    async def _handle_browsing(self, key: KeyInput) -> None:
        if key.key in QUIT_KEYS:
            await self.quit()
        elif key.key == "slash":
            self._begin_editing()
        elif key.key in UP_KEYS:
            self.store.select_previous()
        elif key.key in DOWN_KEYS:
            self.store.select_next()
        elif key.key == "enter":
            self.play_selected()
        elif key.key == "tab":
            self.mode = Mode.DETAIL
        elif key.key == "c":
            self.copy_selected_link()

    async def _handle_editing(self, key: KeyInput) -> None:
        if key.key == "escape":
            self.query = self._query_before_edit
            self.mode = Mode.BROWSING
        elif key.key == "enter":
            self.mode = Mode.BROWSING
            await self.submit(self.query)
        elif key.key == "backspace":
            self.query = self.query[:-1]
        elif key.is_printable:
            self.query += key.character

    async def _handle_detail(self, key: KeyInput) -> None:
        if key.key in QUIT_KEYS:
            await self.quit()
        elif key.key == "tab":
            self.mode = Mode.BROWSING
        elif key.key == "slash":
            self._begin_editing()
        elif key.key in UP_KEYS:
            self.store.select_previous()
        elif key.key in DOWN_KEYS:
            self.store.select_next()
        elif key.key == "c":
            self.copy_selected_link()

    def _begin_editing(self) -> None:
        self._query_before_edit = self.query
        self.mode = Mode.EDITING_QUERY

    def play_selected(self) -> bool:
        selected = self.store.selected()
        if not isinstance(selected, Video):
            if selected is not None:
                self.notify("Only videos can be played.", "warning")
            return False
        try:
            self.player.play(selected)
        except PlayerLaunchError as e:
            log.warning("%s", e)
            self.notify(str(e), "error")
            return False
        self.notify(f"Playing '{selected.title}' with {self.player.command_name}.", "information")
        return True

    def copy_selected_link(self) -> bool:
        selected = self.store.selected()
        if selected is None:
            self.notify("No result selected.", "warning")
            return False
        link = item_link(selected, self.player.watch_template)
        if link is None:
            self.notify("This result has no link.", "warning")
            return False
        if self.clipboard is None or not self.clipboard.copy(link):
            self.notify("Clipboard is not available.", "error")
            return False
        self.notify(f"Copied link for '{display_title(selected)}'.", "information")
        return True
