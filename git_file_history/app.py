"""
Textual front end for the history browser.

The app is a thin shell: it translates keys, mouse wheel and resize events
into `Browser` events and paints the resulting `Frame` with rich `Text`.
"""
from __future__ import annotations

import logging
import traceback
from typing import Optional

from rich.text import Text

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Static

from .browser import Action, Browser, Frame, Outcome
from .config import Chrome, Settings
from .models import Mode

logger = logging.getLogger(__name__)

LIST_KEYS = {
    "j": Action.MOVE_DOWN,
    "down": Action.MOVE_DOWN,
    "k": Action.MOVE_UP,
    "up": Action.MOVE_UP,
    "enter": Action.OPEN,
    "q": Action.BACK,
    "escape": Action.BACK,
    "g": Action.JUMP_TOP,
    "home": Action.JUMP_TOP,
    "G": Action.JUMP_BOTTOM,
    "shift+g": Action.JUMP_BOTTOM,
    "end": Action.JUMP_BOTTOM,
}

DIFF_KEYS = {
    "J": Action.MOVE_DOWN,
    "shift+j": Action.MOVE_DOWN,
    "K": Action.MOVE_UP,
    "shift+k": Action.MOVE_UP,
    "j": Action.SCROLL_DOWN,
    "down": Action.SCROLL_DOWN,
    "k": Action.SCROLL_UP,
    "up": Action.SCROLL_UP,
    "pagedown": Action.PAGE_DOWN,
    "space": Action.PAGE_DOWN,
    "pageup": Action.PAGE_UP,
    "b": Action.PAGE_UP,
    "enter": Action.OPEN,
    "q": Action.BACK,
    "escape": Action.BACK,
    "g": Action.JUMP_TOP,
    "home": Action.JUMP_TOP,
    "G": Action.JUMP_BOTTOM,
    "shift+g": Action.JUMP_BOTTOM,
    "end": Action.JUMP_BOTTOM,
}

HELP_KEYS = ("question_mark", "h")

HELP_TEXT = """\
File History Browser
====================

Commit list
  j / ↓      next commit
  k / ↑      previous commit
  enter      show the diff of the selected commit
  /          filter commits by subject (enter keeps, esc clears)
  q / esc    quit

Diff view
  j / ↓      scroll down one line
  k / ↑      scroll up one line
  space/PgDn page down
  b / PgUp   page up
  g / G      top / bottom of the diff
  J / K      diff of the next / previous commit
  q / esc    back to the commit list

Anywhere
  ctrl+c     quit immediately
  ? / h      this help

Press any key to return.
"""


def colorize_line(line: str) -> Text:
    """Style one line of raw `git show` output the way git colors it."""
    if line.startswith("+++") or line.startswith("---"):
        return Text(line, style="bold white")
    if line.startswith("+"):
        return Text(line, style="green")
    if line.startswith("-"):
        return Text(line, style="red")
    if line.startswith("@@"):
        return Text(line, style="cyan")
    if line.startswith("diff --git") or line.startswith("index ") or line.startswith("commit "):
        return Text(line, style="bold")
    return Text(line)


def render_header(title: str, width: int, chrome: Chrome) -> Text:
    """One-line title bar: `─┤ path ├──────`."""
    text = Text.assemble(
        ("─┤ ", chrome.rule_style),
        (title, chrome.title_style),
        (" ├", chrome.rule_style),
    )
    text.append("─" * max(0, width - text.cell_len), style=chrome.rule_style)
    text.truncate(max(0, width))
    return text


def render_footer(percent: float, width: int, chrome: Chrome) -> Text:
    """One-line scroll bar: `──────┤  42% ├─`."""
    info = Text.assemble(
        ("┤ ", chrome.rule_style),
        (f"{percent * 100:3.0f}%", chrome.title_style),
        (" ├─", chrome.rule_style),
    )
    text = Text("─" * max(0, width - info.cell_len), style=chrome.rule_style)
    text.append_text(info)
    text.truncate(max(0, width))
    return text


def render_commits(frame: Frame, chrome: Chrome) -> Text:
    lines: list[Text] = []
    if frame.filter_line is not None:
        lines.append(Text(frame.filter_line, style=chrome.filter_style))
    for row in frame.rows:
        if row.selected:
            lines.append(Text.assemble(("│ ", chrome.selected_style), (row.commit.title, chrome.selected_style)))
            lines.append(Text.assemble(("│ ", chrome.selected_style), (row.commit.description, chrome.description_style)))
        else:
            lines.append(Text("  " + row.commit.title))
            lines.append(Text("  " + row.commit.description, style=chrome.description_style))
        for _ in range(chrome.item_height - 2):
            lines.append(Text(""))
    text = Text("\n").join(lines)
    text.no_wrap = True
    text.overflow = "ellipsis"
    return text


def render_diff(lines: tuple[str, ...], plain: bool) -> Text:
    if plain:
        text = Text("\n").join(colorize_line(line) for line in lines)
    else:
        text = Text.from_ansi("\n".join(lines))
    text.no_wrap = True
    text.overflow = "crop"
    return text


class CommitList(Static):
    """The commit list region. Wheel moves the selection in list mode."""

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        if self.app.browser.mode is Mode.LIST:
            self.app.feed(Action.MOVE_DOWN)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        if self.app.browser.mode is Mode.LIST:
            self.app.feed(Action.MOVE_UP)


class DiffViewport(Static):
    """The diff viewport region. Wheel scrolls the diff."""

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        self.app.feed(Action.SCROLL_DOWN, self.app.settings.chrome.wheel_lines)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        self.app.feed(Action.SCROLL_UP, self.app.settings.chrome.wheel_lines)


class HelpScreen(ModalScreen):
    """Key help overlay; closes on any key press."""

    def compose(self) -> ComposeResult:
        yield Static(Text(HELP_TEXT), id="help-text")

    def on_key(self, event: events.Key) -> None:
        event.stop()
        self.app.pop_screen()


class FileHistoryApp(App):
    """Full-screen browser for the commits that touched one file."""

    TITLE = "File History"
    CSS = """
Screen {
    overflow: hidden;
}
#message, #header, #viewport, #footer, #commits {
    width: 100%;
}
#header, #footer {
    height: 1;
}
HelpScreen {
    align: center middle;
}
#help-text {
    width: auto;
    height: auto;
    padding: 1 2;
    border: round white;
    background: $panel;
}
"""

    ENABLE_COMMAND_PALETTE = False
    BINDINGS = [Binding("ctrl+c", "force_quit", "Quit", show=False, priority=True)]

    def __init__(self, browser: Browser, settings: Optional[Settings] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.browser = browser
        self.settings = settings or browser.settings

    def compose(self) -> ComposeResult:
        yield Static(Text("Loading..."), id="message")
        yield Static(id="header")
        yield DiffViewport(id="viewport")
        yield Static(id="footer")
        yield CommitList(id="commits")

    def on_mount(self) -> None:
        self.browser.resize(self.size.width, self.size.height)
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        logger.debug(f"FileHistoryApp.on_resize: {event.size.width}x{event.size.height}")
        self.browser.resize(event.size.width, event.size.height)
        self.refresh_view()

    def action_force_quit(self) -> None:
        self.feed(Action.FORCE_QUIT)

    def feed(self, action: Action, count: int = 1) -> None:
        """Feed one event to the browser, then repaint or exit."""
        outcome = self.browser.handle(action, count)
        if outcome is Outcome.QUIT:
            self.exit()
            return
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        """Map key presses onto browser events for the current mode."""
        key = event.key
        logger.debug(f"FileHistoryApp.on_key: key={key} mode={self.browser.mode.value}")
        state = self.browser.state

        if state.filter_active:
            event.stop()
            self._filter_key(event)
            self.refresh_view()
            return

        if key in HELP_KEYS:
            event.stop()
            self.push_screen(HelpScreen())
            return

        if key == "slash" and self.browser.mode is Mode.LIST:
            event.stop()
            self.browser.begin_filter()
            self.refresh_view()
            return

        keymap = DIFF_KEYS if self.browser.mode is Mode.DIFF else LIST_KEYS
        action = keymap.get(key)
        if action is None:
            return
        event.stop()
        self.feed(action)

    def _filter_key(self, event: events.Key) -> None:
        key = event.key
        text = self.browser.state.filter_text
        if key == "escape":
            self.browser.end_filter(keep=False)
        elif key == "enter":
            self.browser.end_filter(keep=True)
        elif key == "backspace":
            self.browser.filter_input(text[:-1])
        elif key in ("down", "up"):
            self.browser.handle(LIST_KEYS[key])
        elif event.is_printable and event.character:
            self.browser.filter_input(text + event.character)

    def refresh_view(self) -> None:
        """Paint the browser's current frame onto the widgets."""
        try:
            frame = self.browser.frame()
            message = self.query_one("#message", Static)
            header = self.query_one("#header", Static)
            viewport = self.query_one("#viewport", DiffViewport)
            footer = self.query_one("#footer", Static)
            commits = self.query_one("#commits", CommitList)
        except Exception as e:
            logger.debug(f"FileHistoryApp.refresh_view: widgets not ready: {e}")
            logger.debug(traceback.format_exc())
            return

        chrome = self.settings.chrome
        layout = frame.layout
        showing_diff = frame.kind == "diff"
        showing_list = frame.kind in ("list", "diff")

        message.display = frame.kind in ("loading", "error")
        header.display = showing_diff
        viewport.display = showing_diff
        footer.display = showing_diff
        commits.display = showing_list

        if frame.kind == "loading":
            message.update(Text("Loading..."))
            return
        if frame.kind == "error":
            message.update(Text(f"Error: {frame.error}", style=chrome.error_style))
            return

        if showing_diff:
            header.styles.height = layout.header_height
            viewport.styles.height = layout.viewport_height
            footer.styles.height = layout.footer_height
            header.update(render_header(frame.title, layout.width, chrome))
            viewport.update(render_diff(frame.diff_lines, self.settings.plain))
            footer.update(render_footer(frame.scroll_percent, layout.width, chrome))

        commits.styles.height = layout.list_height
        commits.update(render_commits(frame, chrome))
