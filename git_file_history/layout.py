"""
Screen geometry.

`compute_layout` is the single source of truth for how tall each region is.
It is called once per resize or mode change and its result is consumed as-is
by both the commit list and the diff viewport.
"""
from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_CHROME, Chrome
from .models import Mode


@dataclass(frozen=True)
class Layout:
    width: int
    header_height: int
    footer_height: int
    list_height: int
    viewport_height: int


def compute_layout(width: int, height: int, mode: Mode, chrome: Chrome = DEFAULT_CHROME) -> Layout:
    """Return region sizes for a `width` x `height` terminal in `mode`.

    In LIST mode the commit list takes the whole screen. In DIFF mode the list
    gets a quarter of the height and the viewport whatever the title and
    scroll bars leave over. Nothing is ever negative.
    """
    width = max(0, width)
    height = max(0, height)
    header = max(0, chrome.header_height)
    footer = max(0, chrome.footer_height)

    if mode is Mode.LIST:
        return Layout(width, header, footer, list_height=height, viewport_height=0)

    list_height = height // 4
    viewport_height = max(0, height - list_height - header - footer)
    return Layout(width, header, footer, list_height=list_height, viewport_height=viewport_height)


def list_window(selected: int, count: int, capacity: int, top: int = 0) -> int:
    """Return the first visible item so that `selected` stays on screen.

    `top` is the previous first item; the window only moves as far as needed.
    """
    if count <= 0 or capacity <= 0:
        return 0
    top = min(max(0, top), max(0, count - capacity))
    if selected < top:
        return selected
    if selected >= top + capacity:
        return selected - capacity + 1
    return top


def scroll_percent(offset: int, content_height: int, viewport_height: int) -> float:
    """Fraction of the content scrolled past, in [0.0, 1.0]."""
    if viewport_height >= content_height:
        return 1.0
    value = offset / float(content_height - viewport_height)
    return min(1.0, max(0.0, value))
