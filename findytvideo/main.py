# main.py
import logging
from typing import Optional, Sequence

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.logging import TextualHandler
from textual.widgets import Header

from .config import Config, parse_args
from .coordinator import (SearchCompleted, SearchCoordinator, SearchEvent, SearchFailed,
                          SearchStarted, ThumbnailLoaded)
from .fetch import FetchTask
from .input_state import InputStateMachine, Mode
from .services import Clipboard, Player, ThumbnailService, VideoSearchService
from .store import ResultStore
from .ui import DetailsPane, HelpBar, LogPane, ResultsList, SearchBar, SearchUpdated

SEVERITY_MARKUP = {
    "information": "{message}",
    "success": "[green]✅ {message}[/green]",
    "warning": "[yellow]⚠️ {message}[/yellow]",
    "error": "[red]❌ {message}[/red]",
    "detail": "[dim]{message}[/dim]",
}


class FindYTVideoApp(App):
    CSS_PATH = "find_ytvideo.css"
    TITLE = "findytvideo"

    def __init__(self, config: Config,
                 search_service: Optional[VideoSearchService] = None,
                 thumbnail_service: Optional[ThumbnailService] = None,
                 player: Optional[Player] = None,
                 link_clipboard: Optional[Clipboard] = None):
        super().__init__()
        self.config = config
        self.player = player or Player(config.PLAYER_COMMANDS, config.WATCH_URL_TEMPLATE)
        # App.clipboard is textual's own read-only property.
        self.link_clipboard = link_clipboard or Clipboard()
        if thumbnail_service is None and config.FETCH_THUMBNAILS:
            thumbnail_service = ThumbnailService(config.THUMBNAIL_TIMEOUT)

        self.store = ResultStore()
        fetch_task = FetchTask(search_service or VideoSearchService(),
                               config.SEARCH_RESULT_LIMIT, config.SEARCH_FILTER, thumbnail_service)
        self.coordinator = SearchCoordinator(self.store, fetch_task, listener=self.on_search_event,
                                             fetch_thumbnails=config.FETCH_THUMBNAILS)
        self.machine = InputStateMachine(self.store, self.coordinator, self.player,
                                         clipboard=self.link_clipboard, notify=self.add_notice,
                                         query=config.INITIAL_QUERY)

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-container"):
            yield SearchBar(id="search-bar")
            with Horizontal(id="app-grid"):
                yield ResultsList(id="results")
                yield DetailsPane(id="details-pane")
            yield LogPane(id="log", wrap=True, highlight=True, markup=True)
        yield HelpBar(id="help")

    async def on_mount(self) -> None:
        self.query_one("#search-bar").border_title = "Search"
        self.query_one("#results").border_title = "Results"
        self.query_one(ResultsList).focus()

        if self.player.is_available:
            self.add_notice(f"{self.player.command_name} found.", "success")
        else:
            self.add_notice(f"'{' / '.join(self.config.PLAYER_COMMANDS)}' not found.", "warning")

        self.refresh_view()
        if self.config.INITIAL_QUERY:
            await self.machine.submit(self.config.INITIAL_QUERY)
            self.refresh_view()

    async def on_unmount(self) -> None:
        await self.coordinator.stop()
        self.store.clear()

    def add_notice(self, message: str, severity: str = "information") -> None:
        template = SEVERITY_MARKUP.get(severity, "{message}")
        self.query_one(LogPane).add_message(template.format(message=escape(message)))

    def on_search_event(self, event: SearchEvent) -> None:
        self.post_message(SearchUpdated(event))

    def refresh_view(self) -> None:
        mode = self.machine.mode
        search_bar = self.query_one(SearchBar)
        results = self.query_one(ResultsList)
        details = self.query_one(DetailsPane)

        search_bar.update_query(self.machine.query, mode is Mode.EDITING_QUERY, self.coordinator.busy)
        results.update_results(self.store.items, self.store.selection)
        details.update_details(self.store.selected())
        self.query_one(HelpBar).update_mode(mode)

        search_bar.set_class(mode is Mode.EDITING_QUERY, "active")
        results.set_class(mode is Mode.BROWSING, "active")
        details.set_class(mode is Mode.DETAIL, "active")

    # --- Message Handlers ---
    async def on_results_list_key_pressed(self, message: ResultsList.KeyPressed) -> None:
        await self.machine.handle_key(message.key)
        if not self.machine.running:
            self.exit()
            return
        self.refresh_view()

    def on_search_updated(self, message: SearchUpdated) -> None:
        event = message.event
        if isinstance(event, SearchStarted):
            self.add_notice(f"🔎 Searching for '{event.query}'...")
        elif isinstance(event, SearchCompleted):
            if event.count:
                self.add_notice(f"🎬 Found {event.count} results for '{event.query}'.")
            else:
                self.add_notice(f"🤷 No videos found for '{event.query}'.")
        elif isinstance(event, SearchFailed):
            self.add_notice("An error occurred during search.", "error")
            self.add_notice(str(event.error), "detail")
        elif isinstance(event, ThumbnailLoaded):
            if event.index != self.store.selection:
                return
        # SearchFinished also lands here; the busy marker clears on this refresh.
        if self.machine.running:
            self.refresh_view()


def main(argv: Optional[Sequence[str]] = None) -> None:
    app_config = parse_args(argv)
    logging.basicConfig(level=app_config.LOG_LEVEL, handlers=[TextualHandler()])
    FindYTVideoApp(app_config).run()

