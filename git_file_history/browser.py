"""
The history browser state machine.

`Browser` owns all mutable UI state: the mode, the selection into the
(optionally filtered) commit list, the diff text of the selected commit and
the viewport's scroll offset. Input events are applied one at a time through
`handle`, `filter_input` and `resize`; `frame` turns the current state into a
render tree for the terminal application to paint.
"""
from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .config import Settings
from .layout import Layout, compute_layout, list_window, scroll_percent
from .models import CommitSummary, Mode

logger = logging.getLogger(__name__)

# (commit_id, path) -> diff text; raises on failure
DiffLoader = Callable[[str, str], str]


class Action(Enum):
    MOVE_DOWN = "move-down"
    MOVE_UP = "move-up"
    OPEN = "open"
    BACK = "back"
    FORCE_QUIT = "force-quit"
    JUMP_TOP = "jump-top"
    JUMP_BOTTOM = "jump-bottom"
    SCROLL_DOWN = "scroll-down"
    SCROLL_UP = "scroll-up"
    PAGE_DOWN = "page-down"
    PAGE_UP = "page-up"


class Outcome(Enum):
    CONTINUE = "continue"
    QUIT = "quit"


@dataclass
class BrowserState:
    mode: Mode = Mode.LIST
    selected_index: int = 0
    filter_text: str = ""
    filter_active: bool = False
    diff_text: Optional[str] = None
    scroll_offset: int = 0
    list_top: int = 0
    terminal_width: int = 0
    terminal_height: int = 0
    ready: bool = False
    last_error: Optional[Exception] = None


@dataclass(frozen=True)
class ListRow:
    commit: CommitSummary
    selected: bool


@dataclass(frozen=True)
class Frame:
    """Everything the terminal application needs to paint one screen."""

    kind: str  # loading | error | list | diff
    layout: Layout
    title: str = ""
    rows: tuple[ListRow, ...] = ()
    filter_line: Optional[str] = None
    diff_lines: tuple[str, ...] = ()
    scroll_percent: float = 0.0
    error: Optional[str] = None


class Browser:
    """Interactive state machine coordinating the commit list and diff viewport."""

    def __init__(
        self,
        commits: Sequence[CommitSummary],
        path: str,
        load_diff: DiffLoader,
        settings: Optional[Settings] = None,
    ) -> None:
        self.commits: tuple[CommitSummary, ...] = tuple(commits)
        self.path = path
        self.settings = settings or Settings()
        self.state = BrowserState()
        self._load_diff = load_diff
        self._visible: tuple[CommitSummary, ...] = self.commits
        self._diff_lines: list[str] = []
        self.layout = compute_layout(0, 0, Mode.LIST, self.settings.chrome)
        self._handlers = {
            Action.MOVE_DOWN: lambda: self._move(1),
            Action.MOVE_UP: lambda: self._move(-1),
            Action.OPEN: self._open,
            Action.BACK: self._back,
            Action.FORCE_QUIT: lambda: Outcome.QUIT,
            Action.JUMP_TOP: lambda: self._scroll_to(0),
            Action.JUMP_BOTTOM: lambda: self._scroll_to(self.max_scroll_offset),
            Action.SCROLL_DOWN: lambda: self._scroll_by(1),
            Action.SCROLL_UP: lambda: self._scroll_by(-1),
            Action.PAGE_DOWN: lambda: self._scroll_by(max(1, self.layout.viewport_height)),
            Action.PAGE_UP: lambda: self._scroll_by(-max(1, self.layout.viewport_height)),
        }

    # -- queries -----------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def visible(self) -> tuple[CommitSummary, ...]:
        """The commits currently shown, after filtering."""
        return self._visible

    def selected(self) -> Optional[CommitSummary]:
        if not self._visible:
            return None
        return self._visible[self.state.selected_index]

    @property
    def content_height(self) -> int:
        return len(self._diff_lines)

    @property
    def max_scroll_offset(self) -> int:
        return max(0, self.content_height - self.layout.viewport_height)

    # -- events ------------------------------------------------------------

    def handle(self, action: Action, count: int = 1) -> Outcome:
        """Apply a key or mouse driven `action` (`count` times for scrolling).

        A previous error is cleared first; a failure during this action sets
        it again.
        """
        logger.debug(f"Browser.handle: {action.value} x{count} mode={self.state.mode.value}")
        self.state.last_error = None
        outcome = Outcome.CONTINUE
        for _ in range(max(1, count)):
            outcome = self._handlers[action]() or Outcome.CONTINUE
            if outcome is Outcome.QUIT or self.state.last_error is not None:
                break
        self._sync_list_window()
        return outcome

    def begin_filter(self) -> Outcome:
        self.state.last_error = None
        if self.state.mode is Mode.LIST:
            self.state.filter_active = True
            self._sync_list_window()
        return Outcome.CONTINUE

    def end_filter(self, keep: bool = True) -> Outcome:
        self.state.filter_active = False
        if not keep:
            return self.filter_input("")
        self._sync_list_window()
        return Outcome.CONTINUE

    def filter_input(self, text: str) -> Outcome:
        """Replace the filter substring and re-derive the visible commits."""
        self.state.last_error = None
        if self.state.mode is not Mode.LIST:
            return Outcome.CONTINUE
        self.state.filter_text = text
        if text:
            self._visible = tuple(c for c in self.commits if c.matches(text))
        else:
            self._visible = self.commits
        self.state.selected_index = self._clamp_index(self.state.selected_index)
        logger.debug(f"Browser.filter_input: {text!r} -> {len(self._visible)} of {len(self.commits)}")
        self._sync_list_window()
        return Outcome.CONTINUE

    def resize(self, width: int, height: int) -> Outcome:
        self.state.terminal_width = width
        self.state.terminal_height = height
        self.state.ready = True
        self._relayout()
        return Outcome.CONTINUE

    # -- transitions -------------------------------------------------------

    def _clamp_index(self, index: int) -> int:
        if not self._visible:
            return 0
        return min(max(0, index), len(self._visible) - 1)

    def _move(self, delta: int) -> Outcome:
        before = self.state.selected_index
        self.state.selected_index = self._clamp_index(before + delta)
        if self.state.mode is Mode.DIFF and self.state.selected_index != before:
            self._fetch_selected()
        return Outcome.CONTINUE

    def _open(self) -> Outcome:
        if self.state.mode is not Mode.LIST:
            return Outcome.CONTINUE
        if self._fetch_selected():
            self.state.filter_active = False
            self._set_mode(Mode.DIFF)
        return Outcome.CONTINUE

    def _back(self) -> Outcome:
        if self.state.mode is Mode.LIST:
            return Outcome.QUIT
        self._set_diff(None)
        self._set_mode(Mode.LIST)
        return Outcome.CONTINUE

    def _scroll_to(self, offset: int) -> Outcome:
        if self.state.mode is Mode.DIFF:
            self.state.scroll_offset = min(max(0, offset), self.max_scroll_offset)
        return Outcome.CONTINUE

    def _scroll_by(self, delta: int) -> Outcome:
        return self._scroll_to(self.state.scroll_offset + delta)

    def _fetch_selected(self) -> bool:
        """Load the diff of the selected commit; on failure record the error."""
        commit = self.selected()
        if commit is None:
            return False
        try:
            text = self._load_diff(commit.id, self.path)
        except Exception as e:
            logger.debug(f"Browser._fetch_selected: diff for {commit.id} failed: {e}")
            logger.debug(traceback.format_exc())
            self.state.last_error = e
            if self.state.mode is Mode.DIFF:
                self._set_diff("")
            return False
        self._set_diff(text)
        return True

    def _set_diff(self, text: Optional[str]) -> None:
        self.state.diff_text = text
        self._diff_lines = text.splitlines() if text else []
        self.state.scroll_offset = 0

    def _set_mode(self, mode: Mode) -> None:
        self.state.mode = mode
        self._relayout()

    def _relayout(self) -> None:
        self.layout = compute_layout(
            self.state.terminal_width,
            self.state.terminal_height,
            self.state.mode,
            self.settings.chrome,
        )
        self.state.scroll_offset = min(self.state.scroll_offset, self.max_scroll_offset)
        self._sync_list_window()

    # -- rendering ---------------------------------------------------------

    @property
    def _shows_filter(self) -> bool:
        return self.state.mode is Mode.LIST and (self.state.filter_active or bool(self.state.filter_text))

    def list_capacity(self) -> int:
        """How many commits fit in the list region."""
        height = self.layout.list_height - (1 if self._shows_filter else 0)
        if height <= 0:
            return 0
        return max(1, height // self.settings.chrome.item_height)

    def _sync_list_window(self) -> None:
        self.state.list_top = list_window(
            self.state.selected_index,
            len(self._visible),
            self.list_capacity(),
            self.state.list_top,
        )

    def frame(self) -> Frame:
        """Build the render tree for the current state."""
        state = self.state
        if not state.ready:
            return Frame(kind="loading", layout=self.layout)
        if state.last_error is not None:
            return Frame(kind="error", layout=self.layout, error=str(state.last_error))

        top = state.list_top
        window = self._visible[top:top + self.list_capacity()]
        rows = tuple(
            ListRow(commit=c, selected=(top + i == state.selected_index))
            for i, c in enumerate(window)
        )
        filter_line = None
        if self._shows_filter:
            filter_line = f"Filter: {state.filter_text}"

        if state.mode is Mode.LIST:
            return Frame(kind="list", layout=self.layout, title=self.path, rows=rows, filter_line=filter_line)

        offset = state.scroll_offset
        lines = tuple(self._diff_lines[offset:offset + self.layout.viewport_height])
        return Frame(
            kind="diff",
            layout=self.layout,
            title=self.path,
            rows=rows,
            diff_lines=lines,
            scroll_percent=scroll_percent(offset, self.content_height, self.layout.viewport_height),
        )
