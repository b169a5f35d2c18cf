"""Cursor and scroll-window arithmetic for the mailbox list and detail pane.

``ListViewport`` keeps three numbers consistent under every motion: the
selected index, the scroll offset (first visible row) and the visible height.
For a non-empty list, after every public method:

    0 <= selected < total
    0 <= scroll_offset <= max(0, total - visible_height)
    scroll_offset <= selected < scroll_offset + visible_height

An empty list has ``selected is None`` and ``scroll_offset == 0`` and every
motion is a no-op. Nothing here raises; out-of-range input is clamped.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ListState:
    """Read-only snapshot of a :class:`ListViewport`."""

    total: int
    selected: Optional[int]
    scroll_offset: int
    visible_height: int


class ListViewport:
    """Selection and scroll window over an ordered list of ``total`` items."""

    def __init__(self, total: int, visible_height: int = 1):
        self.total = max(0, total)
        self.visible_height = max(1, visible_height)
        self.selected: Optional[int] = 0 if self.total else None
        self.scroll_offset = 0

    def __repr__(self) -> str:
        return (
            f"ListViewport(total={self.total}, selected={self.selected}, "
            f"scroll_offset={self.scroll_offset}, visible_height={self.visible_height})"
        )

    @property
    def max_scroll(self) -> int:
        return max(0, self.total - self.visible_height)

    @property
    def visible_range(self) -> range:
        """Indices of the rows currently inside the window."""
        return range(self.scroll_offset, min(self.scroll_offset + self.visible_height, self.total))

    def visible_slice(self, items: Sequence[T]) -> list[T]:
        return [items[i] for i in self.visible_range]

    def state(self) -> ListState:
        return ListState(self.total, self.selected, self.scroll_offset, self.visible_height)

    ## Single-step motions

    def next(self) -> None:
        if self.selected is None:
            return
        self.selected = min(self.selected + 1, self.total - 1)
        if self.selected >= self.scroll_offset + self.visible_height:
            self.scroll_offset = self.selected - self.visible_height + 1

    def previous(self) -> None:
        if self.selected is None:
            return
        self.selected = max(self.selected - 1, 0)
        if self.selected < self.scroll_offset:
            self.scroll_offset = self.selected

    ## Window-relative jumps (H / M / L)

    def goto_page_top(self) -> None:
        if self.selected is None:
            return
        self.selected = self.scroll_offset

    def goto_page_bottom(self) -> None:
        if self.selected is None:
            return
        self.selected = min(self.scroll_offset + self.visible_height - 1, self.total - 1)

    def goto_page_middle(self) -> None:
        if self.selected is None:
            return
        # The last window may be shorter than visible_height.
        span = min(self.scroll_offset + self.visible_height, self.total) - self.scroll_offset
        self.selected = min(self.scroll_offset + span // 2, self.total - 1)

    ## Page motions: the cursor snaps to a window edge

    def page_forward(self) -> None:
        if self.selected is None:
            return
        offset = min(self.scroll_offset + self.visible_height, self.max_scroll)
        if offset != self.scroll_offset:
            self.scroll_offset = offset
            self.selected = offset
        else:
            self.selected = self.total - 1

    def page_backward(self) -> None:
        if self.selected is None:
            return
        self.scroll_offset = max(self.scroll_offset - self.visible_height, 0)
        self.selected = self.scroll_offset

    ## Half-page motions: the cursor keeps its row within the window

    def _half_page(self) -> int:
        return max(self.visible_height // 2, 1)

    def half_page_forward(self) -> None:
        if self.selected is None:
            return
        row = self.selected - self.scroll_offset
        self.scroll_offset = min(self.scroll_offset + self._half_page(), self.max_scroll)
        self.selected = min(self.scroll_offset + row, self.total - 1)

    def half_page_backward(self) -> None:
        if self.selected is None:
            return
        row = self.selected - self.scroll_offset
        self.scroll_offset = max(self.scroll_offset - self._half_page(), 0)
        self.selected = self.scroll_offset + row

    ## Line scrolls: the window moves, the cursor only when pushed off an edge

    def line_forward(self) -> None:
        if self.selected is None:
            return
        offset = min(self.scroll_offset + 1, self.max_scroll)
        if offset == self.scroll_offset:
            return
        self.scroll_offset = offset
        if self.selected < offset:
            self.selected = offset

    def line_backward(self) -> None:
        if self.selected is None:
            return
        offset = max(self.scroll_offset - 1, 0)
        if offset == self.scroll_offset:
            return
        self.scroll_offset = offset
        bottom = offset + self.visible_height - 1
        if self.selected > bottom:
            self.selected = bottom

    ## Window size

    def resize(self, visible_height: int) -> None:
        """Adopt a new window height and re-clamp offset and cursor."""
        self.visible_height = max(1, visible_height)
        if self.selected is None:
            return
        self.scroll_offset = min(self.scroll_offset, self.max_scroll)
        bottom = min(self.scroll_offset + self.visible_height, self.total) - 1
        self.selected = min(max(self.selected, self.scroll_offset), bottom)


class DetailViewport:
    """Vertical scroll position over one message's rendered text.

    The offset is unbounded until :meth:`set_extent` reports how tall the
    rendered content is; after that it never passes the last full screen.
    """

    def __init__(self):
        self.offset = 0
        self.limit: Optional[int] = None

    def __repr__(self) -> str:
        return f"DetailViewport(offset={self.offset}, limit={self.limit})"

    def scroll_down(self) -> None:
        self.offset += 1
        self._clamp()

    def scroll_up(self) -> None:
        self.offset = max(self.offset - 1, 0)

    line_forward = scroll_down
    line_backward = scroll_up

    def set_extent(self, content_height: int, visible_height: int) -> None:
        self.limit = max(0, content_height - max(1, visible_height))
        self._clamp()

    def reset(self) -> None:
        self.offset = 0
        self.limit = None

    def _clamp(self) -> None:
        if self.limit is not None and self.offset > self.limit:
            self.offset = self.limit
