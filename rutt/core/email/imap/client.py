"""IMAP mail source: the mailbox listing and on-demand bodies."""

import asyncio
import time
from typing import List, Optional

from rutt.core.email.parser import EmailParser
from rutt.core.models.email import Email
from rutt.utils.config import ConfigManager
from rutt.utils.errors import FetchError, RuttError
from rutt.utils.logging import get_logger, log_event

from .connection import IMAPConnection
from .constants import IMAPFlags
from .protocol import FetchedMessage, IMAPProtocol

logger = get_logger(__name__)


class IMAPMailSource:
    """Reads one mailbox read-only over IMAP.

    ``initial_records`` lists the newest ``account.fetch_limit`` messages,
    newest first. ``fetch_detail`` pulls a single body by UID without setting
    the ``\\Seen`` flag.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        connection: Optional[IMAPConnection] = None,
    ):
        self.config_manager = config_manager
        self._connection = connection or IMAPConnection(config_manager)
        self._protocol = IMAPProtocol(self._connection)

    @property
    def mailbox(self) -> str:
        return self.config_manager.config.account.mailbox

    @property
    def server(self) -> str:
        return self.config_manager.config.account.imap_server

    async def initial_records(self) -> List[Email]:
        start_time = time.time()
        limit = self.config_manager.config.account.fetch_limit

        exists = await self._protocol.examine(self.mailbox)
        if exists == 0:
            logger.info(f"Mailbox {self.mailbox} is empty")
            return []

        first = max(1, exists - limit + 1)
        messages = await self._protocol.fetch_summaries(self.mailbox, first, exists)

        records = []
        for message in messages:
            record = self._to_record(message)
            if record is not None:
                records.append(record)

        records.sort(key=lambda email: email.date, reverse=True)

        log_event(
            "mailbox_loaded",
            f"Loaded {len(records)} messages from {self.mailbox}",
            mailbox=self.mailbox,
            count=len(records),
            duration_seconds=round(time.time() - start_time, 2),
        )
        return records

    def _to_record(self, message: FetchedMessage) -> Optional[Email]:
        try:
            fields = EmailParser.parse_headers(message.data)
        except RuttError as e:
            logger.warning(f"Skipping message {message.uid} with unreadable headers: {e}")
            return None

        return Email(
            uid=message.uid,
            is_read=IMAPFlags.SEEN in message.flags,
            **fields,
        )

    async def fetch_detail(self, uid: int) -> str:
        """Return the readable body text of message ``uid``.

        Raises:
            FetchError: If the message cannot be retrieved
            NetworkError: If the connection fails
        """
        # A cancelled caller must not abandon a half-read IMAP response.
        raw = await asyncio.shield(self._protocol.fetch_body(self.mailbox, uid))
        try:
            return EmailParser.extract_body(raw)
        except RuttError as e:
            raise FetchError(
                f"Could not read message {uid}", details={"uid": uid, "error": str(e)}
            ) from e

    async def close(self) -> None:
        await self._connection.close_connection()
