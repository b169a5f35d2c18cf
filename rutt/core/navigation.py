"""View-mode state machine tying the list and detail viewports together."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, assert_never

from rutt.core.mail_source import MailSource
from rutt.core.models.email import Email
from rutt.core.viewport import DetailViewport, ListState, ListViewport
from rutt.utils.errors import RuttError
from rutt.utils.logging import get_logger

logger = get_logger(__name__)

# Used until the terminal reports its real height.
PLACEHOLDER_HEIGHT = 10


## View Modes


@dataclass(frozen=True)
class ListMode:
    """Browsing the mailbox list."""


@dataclass(frozen=True)
class DetailMode:
    """Reading the record at ``index``."""

    index: int


ViewMode = ListMode | DetailMode


class Command(Enum):
    """User commands understood by the controller."""

    NEXT = "next"
    PREVIOUS = "previous"
    PAGE_FORWARD = "page_forward"
    PAGE_BACKWARD = "page_backward"
    HALF_PAGE_FORWARD = "half_page_forward"
    HALF_PAGE_BACKWARD = "half_page_backward"
    LINE_FORWARD = "line_forward"
    LINE_BACKWARD = "line_backward"
    PAGE_TOP = "goto_page_top"
    PAGE_MIDDLE = "goto_page_middle"
    PAGE_BOTTOM = "goto_page_bottom"
    ENTER_DETAIL = "enter_detail"
    QUIT = "quit"
    SCROLL_DOWN = "scroll_down"
    SCROLL_UP = "scroll_up"
    EXIT_DETAIL = "exit_detail"


LIST_MOTIONS = {
    Command.NEXT,
    Command.PREVIOUS,
    Command.PAGE_FORWARD,
    Command.PAGE_BACKWARD,
    Command.HALF_PAGE_FORWARD,
    Command.HALF_PAGE_BACKWARD,
    Command.LINE_FORWARD,
    Command.LINE_BACKWARD,
    Command.PAGE_TOP,
    Command.PAGE_MIDDLE,
    Command.PAGE_BOTTOM,
}

DETAIL_MOTIONS = {
    Command.SCROLL_DOWN,
    Command.SCROLL_UP,
    Command.LINE_FORWARD,
    Command.LINE_BACKWARD,
}


@dataclass(frozen=True)
class DetailRequest:
    """A body fetch the controller wants performed."""

    index: int
    uid: int
    request_id: int


@dataclass(frozen=True)
class Frame:
    """Everything a renderer needs to draw one screen."""

    mode: ViewMode
    list_state: ListState
    visible: Tuple[Tuple[int, Email], ...]
    detail_offset: int
    record: Optional[Email] = None


class NavigationController:
    """Routes commands to the list or detail viewport depending on the mode.

    The controller never talks to the network itself. Body fetches are either
    handed back as :class:`DetailRequest` objects for the caller to run
    (:meth:`enter_detail` / :meth:`load_detail`), or performed inline through
    a mail source passed in by the caller (:meth:`open_detail`).
    """

    def __init__(self, records: Sequence[Email], visible_height: int = PLACEHOLDER_HEIGHT):
        self.records: List[Email] = list(records)
        self.mode: ViewMode = ListMode()
        self.list = ListViewport(len(self.records), visible_height)
        self.detail = DetailViewport()
        self.running = True
        self._request_counter = 0

    @property
    def selected_record(self) -> Optional[Email]:
        if self.list.selected is None:
            return None
        return self.records[self.list.selected]

    @property
    def current_record(self) -> Optional[Email]:
        """The record shown in detail mode, if any."""
        match self.mode:
            case ListMode():
                return None
            case DetailMode(index=index):
                return self.records[index]
            case _:
                assert_never(self.mode)

    ## Command routing

    def dispatch(self, command: Command) -> Optional[DetailRequest]:
        """Apply ``command`` if it is legal in the current mode.

        Returns the fetch request produced by entering detail mode, if any.
        Commands that do not apply to the current mode are ignored.
        """
        match self.mode:
            case ListMode():
                if command in LIST_MOTIONS:
                    getattr(self.list, command.value)()
                elif command is Command.ENTER_DETAIL:
                    return self.enter_detail()
                elif command is Command.QUIT:
                    self.running = False
            case DetailMode():
                if command in DETAIL_MOTIONS:
                    getattr(self.detail, command.value)()
                elif command is Command.EXIT_DETAIL:
                    self.exit_detail()
            case _:
                assert_never(self.mode)
        return None

    def resize(self, visible_height: int) -> None:
        self.list.resize(visible_height)

    ## Mode transitions

    def enter_detail(self) -> Optional[DetailRequest]:
        """Switch to the selected record, returning a fetch request if its body is missing."""
        if not isinstance(self.mode, ListMode) or self.list.selected is None:
            return None

        index = self.list.selected
        record = self.records[index]
        self.mode = DetailMode(index)
        self.detail.reset()

        if not record.needs_fetch:
            return None

        self._request_counter += 1
        request = DetailRequest(index=index, uid=record.uid, request_id=self._request_counter)
        record.mark_fetching(request.request_id)
        logger.debug(f"Requesting body for message {record.uid} (request {request.request_id})")
        return request

    def exit_detail(self) -> None:
        match self.mode:
            case ListMode():
                return
            case DetailMode(index=index):
                self.records[index].cancel_fetch()
                self.mode = ListMode()
                self.detail.reset()
            case _:
                assert_never(self.mode)

    ## Body fetch results

    def _is_current(self, request: DetailRequest) -> bool:
        return self.mode == DetailMode(request.index) and self.records[
            request.index
        ].is_fetching(request.request_id)

    def resolve_detail(self, request: DetailRequest, body: str) -> bool:
        """Store a fetched body if the request is still the one being shown."""
        if not self._is_current(request):
            logger.debug(f"Dropping stale body for message {request.uid}")
            return False
        self.records[request.index].set_body(body)
        return True

    def fail_detail(self, request: DetailRequest, error: Exception) -> bool:
        """Record a failed fetch so the renderer shows a placeholder."""
        if not self._is_current(request):
            return False
        reason = error.message if isinstance(error, RuttError) else str(error)
        self.records[request.index].set_unavailable(reason or error.__class__.__name__)
        return True

    async def load_detail(self, request: DetailRequest, source: MailSource) -> bool:
        """Fetch the body for ``request`` from ``source`` and apply the result."""
        try:
            body = await source.fetch_detail(request.uid)
        except (RuttError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not fetch body for message {request.uid}: {e}")
            return self.fail_detail(request, e)
        return self.resolve_detail(request, body)

    async def open_detail(self, source: MailSource) -> None:
        """Enter detail mode and fetch the body inline when needed."""
        request = self.enter_detail()
        if request is not None:
            await self.load_detail(request, source)

    ## Rendering snapshot

    def frame(self) -> Frame:
        visible = tuple((i, self.records[i]) for i in self.list.visible_range)
        return Frame(
            mode=self.mode,
            list_state=self.list.state(),
            visible=visible,
            detail_offset=self.detail.offset,
            record=self.current_record,
        )
