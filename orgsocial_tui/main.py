from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.screen import ModalScreen
from textual.widgets import Static
from rich.text import Text
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .api_interface import APIInterface, get_api
from .config import CHILD_ORDERS, Settings, configure_logging, load_settings
from .controller import AppState
from .data_models import LocalUser
from .errors import CorpusLoadError
from .frame import render_frame
from .navigation import HELP_LINES, KEYMAP, Action, EffectKind, KeyEvent, handle_key
from .opener import open_target

logger = logging.getLogger("orgsocial_tui.main")

# rows taken by the app header above the frame
HEADER_ROWS = 1


class HelpScreen(ModalScreen):
    """Key reference overlay."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-body {
        width: 60;
        height: auto;
        border: ascii $accent;
        padding: 1 2;
        background: $surface;
    }
    """

    def compose(self) -> ComposeResult:
        body = Text("Keys\n\n", style="bold")
        for keys, description in HELP_LINES:
            body.append(f"{keys:<18}", style="cyan")
            body.append(f"{description}\n")
        body.append("\n[h/?/esc] close", style="dim")
        yield Static(body, id="help-body")


class OrgSocialApp(App):
    DEFAULT_CSS = """
    #app-header {
        height: 1;
        background: $primary-background;
    }
    #frame {
        height: 1fr;
    }
    #post-list {
        height: 1fr;
        margin-right: 1;
    }
    #post-content {
        width: 1fr;
        height: 1fr;
    }
    #status {
        height: 2;
    }
    """

    ENABLE_COMMAND_PALETTE = False

    # Every key goes through handle_key; priority keeps tab away from focus cycling
    BINDINGS = [
        Binding(key, f"dispatch('{key}')", action.value, show=False, priority=True)
        for key, action in KEYMAP.items()
        if key != "?"
    ]

    def __init__(self, state: AppState, api: Optional[APIInterface] = None, **kwargs):
        super().__init__(**kwargs)
        self.state = state
        self.api = api

    def compose(self) -> ComposeResult:
        yield Static("", id="app-header", markup=False)
        with Horizontal(id="frame"):
            yield Static("", id="post-list")
            yield Static("", id="post-content")
        yield Static("", id="status")

    def on_mount(self) -> None:
        self.call_after_refresh(self.redraw)

    def on_resize(self, event) -> None:
        self.redraw()

    def redraw(self) -> None:
        width, height = self.size.width, self.size.height - HEADER_ROWS
        if width <= 0 or height <= 0:
            return
        frame, count = render_frame(self.state, width, height)
        logger.debug("main: frame %dx%d, %d activatable element(s)", width, height, count)
        try:
            self.query_one("#app-header", Static).update(
                f"orgsocial-tui [{self.state.mode.display_name.lower()}] @{self.state.user.nick}"
            )
            post_list = self.query_one("#post-list", Static)
            post_list.styles.width = frame.list_width
            post_list.update(Text("\n").join(frame.list_lines))
            self.query_one("#post-content", Static).update(Text("\n").join(frame.content_lines))
            self.query_one("#status", Static).update(Text("\n").join(frame.status_lines))
        except NoMatches:
            # widgets not mounted yet (early resize)
            logger.debug("main: redraw before compose finished")

    def action_dispatch(self, key: str) -> None:
        event = KeyEvent(key)
        if isinstance(self.screen, HelpScreen):
            if KEYMAP.get(key) in (Action.HELP, Action.CANCEL, Action.QUIT):
                self.pop_screen()
            return

        effect = handle_key(self.state, event)
        if effect.kind is EffectKind.QUIT:
            self.exit()
            return
        if effect.kind is EffectKind.HELP:
            self.push_screen(HelpScreen())
            return
        if effect.kind is EffectKind.RELOAD:
            self.reload_corpus()
        elif effect.kind is EffectKind.ACTIVATE:
            self.state.status_message = open_target(effect.target, copy=self.copy_to_clipboard)
        elif effect.kind is EffectKind.NONE:
            return
        self.redraw()

    def reload_corpus(self) -> None:
        if self.api is None:
            self.notify("No feed source configured", severity="warning")
            return
        try:
            posts = self.api.get_posts()
        except CorpusLoadError as e:
            logger.exception("Exception while reloading corpus:")
            self.notify(f"Reload failed: {e}", severity="error")
            return
        self.state.load_corpus(posts)
        self.state.status_message = f"Reloaded {len(posts)} posts from {self.api.describe()}"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="orgsocial-tui", description="An org-social reader")
    parser.add_argument("file", nargs="?", help="tokenized corpus export (JSON); overrides ORGSOCIAL_FILE")
    parser.add_argument("--nick", help="local user's nick")
    parser.add_argument("--feed-url", help="local user's feed location")
    parser.add_argument("--child-order", choices=CHILD_ORDERS, help="ordering of replies in threaded view")
    parser.add_argument("--debug", action="store_true", help="write debug logs to ~/.orgsocial_tui_debug.log")
    return parser.parse_args(argv)


def merge_args(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.file:
        settings.corpus_file = Path(args.file).expanduser()
    if args.nick:
        settings.nick = args.nick
    if args.feed_url:
        settings.feed_url = args.feed_url
    if args.child_order:
        settings.child_order = args.child_order
    if args.debug:
        settings.debug = True
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    settings = merge_args(load_settings(), parse_args(argv))
    configure_logging(settings.debug)
    try:
        api = get_api(settings)
        posts = api.get_posts()
    except CorpusLoadError as e:
        print(f"orgsocial-tui: {e}", file=sys.stderr)
        return 1

    state = AppState(
        LocalUser(settings.nick, settings.feed_url), posts, child_order=settings.child_order
    )
    try:
        OrgSocialApp(state, api).run()
    except Exception:
        logging.exception("Exception occurred while running OrgSocialApp:")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
