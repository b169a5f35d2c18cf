from typing import List, Optional, Sequence, Tuple, assert_never

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from rutt.core.mail_source import MailSource
from rutt.core.models.email import Email
from rutt.core.navigation import (
    PLACEHOLDER_HEIGHT,
    Command,
    DetailMode,
    DetailRequest,
    Frame,
    ListMode,
    NavigationController,
)
from rutt.utils.logging import get_logger

from .keymap import command_for
from .render import (
    DATE_FORMAT,
    detail_lines,
    header_text,
    hint_text,
    render_detail,
    render_list,
)
from .widgets import HintBar, MailView

logger = get_logger(__name__)


class RuttApp(App):
    """Full-screen mailbox browser driven by a :class:`NavigationController`.

    The app is the controller's renderer: every handled key, resize or
    finished fetch ends in :meth:`refresh_view`, which hands a fresh
    :class:`Frame` to :meth:`draw`.
    """

    CSS_PATH = "styles.tcss"
    TITLE = "rutt"
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        records: Sequence[Email],
        source: MailSource,
        account: str = "",
        date_format: str = DATE_FORMAT,
        visible_height: int = PLACEHOLDER_HEIGHT,
    ):
        super().__init__()
        self.source = source
        self.account = account
        self.date_format = date_format
        self.controller = NavigationController(records, visible_height)
        self.header = Static("", id="header")
        self.mail_view = MailView()
        self.hint_bar = HintBar()
        self._detail_cache: Optional[Tuple[tuple, List[Text]]] = None

    def compose(self) -> ComposeResult:
        yield self.header
        yield self.mail_view
        yield self.hint_bar

    def on_mount(self) -> None:
        self.refresh_view()

    # --- Event Handlers ---

    def on_key(self, event: events.Key) -> None:
        command = command_for(self.controller.mode, event.key, event.character)
        if command is None:
            return

        event.prevent_default()
        event.stop()
        self.handle_command(command)

    def on_mail_view_resized(self, event: MailView.Resized) -> None:
        self.controller.resize(event.height)
        self.refresh_view()

    def handle_command(self, command: Command) -> None:
        was_detail = isinstance(self.controller.mode, DetailMode)
        request = self.controller.dispatch(command)

        if not self.controller.running:
            self.exit()
            return

        if was_detail and isinstance(self.controller.mode, ListMode):
            self.workers.cancel_group(self, "detail")

        if request is not None:
            self.run_worker(
                self._load_detail(request),
                name=f"detail-{request.uid}",
                group="detail",
                exclusive=True,
            )

        self.refresh_view()

    async def _load_detail(self, request: DetailRequest) -> None:
        if await self.controller.load_detail(request, self.source):
            self.refresh_view()

    # --- Rendering ---

    @property
    def view_height(self) -> int:
        return max(self.mail_view.content_size.height, 1)

    def _detail_lines(self, record: Email) -> List[Text]:
        width = max(self.mail_view.content_size.width, 1)
        key = (record.uid, record.detail, width)
        if self._detail_cache is None or self._detail_cache[0] != key:
            lines = detail_lines(record, width, self.date_format, self.console)
            self._detail_cache = (key, lines)
        return self._detail_cache[1]

    def refresh_view(self) -> None:
        """Bring the detail extent up to date and draw the current frame."""
        record = self.controller.current_record
        if record is not None:
            lines = self._detail_lines(record)
            self.controller.detail.set_extent(len(lines), self.view_height)
        self.draw(self.controller.frame())

    def draw(self, frame: Frame) -> None:
        self.header.update(header_text(frame.mode, self.account, frame.list_state.total))
        self.hint_bar.show_hints(hint_text(frame.mode))

        match frame.mode:
            case ListMode():
                width = self.mail_view.content_size.width or None
                self.mail_view.update(render_list(frame, self.date_format, width))
            case DetailMode():
                lines = self._detail_lines(frame.record)
                self.mail_view.update(render_detail(lines, frame.detail_offset, self.view_height))
            case _:
                assert_never(frame.mode)
