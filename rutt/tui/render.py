"""Rich text builders for the list rows, detail pane, header and hints.

Everything here is a pure function of a record or a :class:`Frame`, so the
output can be checked without a running Textual app.
"""

from datetime import datetime
from typing import List, Optional, Protocol, assert_never, runtime_checkable

from rich.console import Console
from rich.text import Text

from rutt.core.models.email import Email, Fetched, Fetching, NotFetched, Unavailable
from rutt.core.navigation import DetailMode, Frame, ListMode, ViewMode

DATE_FORMAT = "%Y/%m/%d %H:%M"
SENDER_WIDTH = 25
SUBJECT_WIDTH = 100
SELECTED_MARKER = "> "
LOADING_TEXT = "Loading..."

LIST_HINTS = [("j/^n/↓", "down"), ("k/^p/↑", "up"), ("Enter", "view"), ("q/Esc", "quit")]
DETAIL_HINTS = [("j/k", "scroll"), ("q/Esc", "back")]


@runtime_checkable
class Renderer(Protocol):
    """Draws one frame of controller state."""

    def draw(self, frame: Frame) -> None: ...


def format_date(date: datetime, date_format: str = DATE_FORMAT) -> str:
    return date.strftime(date_format)


def truncate(value: str, width: int) -> str:
    """Cut ``value`` to ``width`` columns, marking the cut with ``...``."""
    if len(value) <= width:
        return value
    return value[: max(width - 3, 0)] + "..."


def format_sender(sender: str) -> str:
    return f"{truncate(sender, SENDER_WIDTH):<{SENDER_WIDTH}}"


def format_list_row(
    record: Email,
    selected: bool = False,
    date_format: str = DATE_FORMAT,
    width: Optional[int] = None,
) -> Text:
    """One list line: ``[R] date │ sender │ subject``.

    A row never wraps; past ``width`` columns it is cut with an ellipsis so
    each record occupies exactly one screen line.
    """
    row = Text(
        SELECTED_MARKER if selected else " " * len(SELECTED_MARKER),
        no_wrap=True,
        overflow="ellipsis",
    )
    row.append("[")
    if record.is_read:
        row.append("R", style="bright_black")
    else:
        row.append("N", style="bold yellow")
    row.append("] ")
    row.append(format_date(record.date, date_format), style="blue")
    row.append(" │ ")
    row.append(format_sender(record.sender), style="green")
    row.append(" │ ")
    row.append(truncate(record.subject, SUBJECT_WIDTH), style=None if record.is_read else "yellow")

    if selected:
        row.stylize("bold on grey23")
    if width is not None:
        row.truncate(max(width, 1), overflow="ellipsis")
    return row


def render_list(
    frame: Frame, date_format: str = DATE_FORMAT, width: Optional[int] = None
) -> Text:
    """The visible slice of the mailbox, one screen line per record."""
    if not frame.visible:
        return Text("No messages", style="dim italic")

    selected = frame.list_state.selected
    rows = [
        format_list_row(record, index == selected, date_format, width)
        for index, record in frame.visible
    ]
    return Text("\n", no_wrap=True, overflow="ellipsis").join(rows)


def detail_body(record: Email) -> Text:
    """The body part of the detail pane for the record's current detail state."""
    detail = record.detail
    match detail:
        case Fetched(body=body):
            return Text(body)
        case Fetching() | NotFetched():
            return Text(LOADING_TEXT, style="dim italic")
        case Unavailable(reason=reason):
            return Text(f"(Message unavailable: {reason})", style="red")
        case _:
            assert_never(detail)


def build_detail_text(record: Email, date_format: str = DATE_FORMAT) -> Text:
    text = Text()
    fields = [
        ("Date", format_date(record.date, date_format)),
        ("From", record.sender),
        ("To", record.to),
        ("Cc", record.cc),
        ("Bcc", record.bcc),
        ("Subject", record.subject),
    ]
    for label, value in fields:
        if value:
            text.append(f"{label}: ", style="bold cyan")
            text.append(f"{value}\n")

    text.append("\n")
    text.append_text(detail_body(record))
    return text


def wrap_lines(text: Text, width: int, console: Optional[Console] = None) -> List[Text]:
    """Wrap ``text`` to ``width`` columns and return the physical lines."""
    width = max(width, 1)
    console = console or Console(width=width)
    return list(text.wrap(console, width, overflow="fold"))


def detail_lines(
    record: Email,
    width: int,
    date_format: str = DATE_FORMAT,
    console: Optional[Console] = None,
) -> List[Text]:
    return wrap_lines(build_detail_text(record, date_format), width, console)


def render_detail(lines: List[Text], offset: int, height: int) -> Text:
    """The window of wrapped detail lines starting at ``offset``."""
    return Text("\n").join(lines[offset : offset + max(height, 1)])


def header_text(mode: ViewMode, account: str, total: int) -> Text:
    match mode:
        case ListMode():
            header = Text("rutt", style="bold cyan")
            header.append(f" - {account}" if account else "")
            header.append(f" - {total} emails", style="bright_black")
            return header
        case DetailMode():
            return Text("Email Details", style="bold cyan")
        case _:
            assert_never(mode)


def hint_text(mode: ViewMode) -> Text:
    match mode:
        case ListMode():
            hints = LIST_HINTS
        case DetailMode():
            hints = DETAIL_HINTS
        case _:
            assert_never(mode)

    text = Text()
    for i, (keys, action) in enumerate(hints):
        if i:
            text.append(" ")
        text.append(keys)
        text.append(f":{action}", style="bright_black")
    return text
