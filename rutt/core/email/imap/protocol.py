"""IMAP protocol operations - low-level IMAP command interface."""

import asyncio
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

import aioimaplib

from rutt.utils.errors import FetchError, IMAPError, NetworkTimeoutError
from rutt.utils.logging import get_logger, log_call

from .connection import IMAPConnection
from .constants import BODY_FETCH, SUMMARY_FETCH, Timeouts

logger = get_logger(__name__)

_FETCH_START_RE = re.compile(rb"^(?:\* )?\d+ FETCH \(")
_UID_RE = re.compile(rb"\bUID (\d+)")
_FLAGS_RE = re.compile(rb"\bFLAGS \(([^)]*)\)")
_EXISTS_RE = re.compile(rb"^(\d+) EXISTS")


@dataclass
class FetchedMessage:
    """One message from a FETCH response: its UID, flags and literal data."""

    uid: Optional[int] = None
    flags: Set[str] = field(default_factory=set)
    data: bytes = b""


class IMAPProtocol:
    """Low-level IMAP protocol operations over an :class:`IMAPConnection`."""

    def __init__(self, connection: IMAPConnection):
        self.connection = connection
        self._selected_folder: Optional[str] = None
        self._selected_on = None

    async def _run(self, operation: str, coro, timeout: float):
        try:
            response = await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError(
                f"IMAP {operation} timed out", details={"operation": operation}
            ) from e
        except aioimaplib.AioImapException as e:
            raise IMAPError(
                f"IMAP error during {operation}: {e}", details={"operation": operation}
            ) from e

        self.connection.check_response(response, operation)
        return response

    @log_call
    async def examine(self, folder: str) -> int:
        """Open ``folder`` read-only and return its message count.

        Raises:
            IMAPError: If the folder cannot be opened
        """
        client = await self.connection.get_client()
        return await self._examine_on(client, folder)

    async def _examine_on(self, client, folder: str) -> int:
        response = await self._run(
            f"examine {folder}", client.examine(folder), Timeouts.IMAP_EXAMINE
        )
        self._selected_folder = folder
        self._selected_on = client

        exists = 0
        for line in response.lines:
            if isinstance(line, (bytes, bytearray)):
                match = _EXISTS_RE.match(bytes(line))
                if match:
                    exists = int(match.group(1))

        logger.debug(f"Examined IMAP folder {folder}", extra={"exists": exists})
        return exists

    async def _client_in(self, folder: str):
        # A reconnect yields a new session with nothing selected.
        client = await self.connection.get_client()
        if client is not self._selected_on or folder != self._selected_folder:
            await self._examine_on(client, folder)
        return client

    async def fetch_summaries(self, folder: str, first: int, last: int) -> List[FetchedMessage]:
        """Fetch UID, flags and summary headers for sequence numbers ``first:last``."""
        if last < first or last < 1:
            return []

        client = await self._client_in(folder)
        message_set = f"{max(first, 1)}:{last}"
        response = await self._run(
            f"fetch {message_set}",
            client.fetch(message_set, SUMMARY_FETCH),
            Timeouts.IMAP_FETCH,
        )

        messages = [m for m in self.parse_fetch_response(response.lines) if m.uid is not None]
        logger.debug(
            "Fetched message summaries",
            extra={"requested": last - first + 1, "received": len(messages)},
        )
        return messages

    async def fetch_body(self, folder: str, uid: int) -> bytes:
        """Fetch the full RFC 822 source of message ``uid`` in ``folder``.

        Raises:
            FetchError: If the server returns no data for the UID
        """
        client = await self._client_in(folder)
        response = await self._run(
            f"uid fetch {uid}", client.uid("fetch", str(uid), BODY_FETCH), Timeouts.IMAP_FETCH
        )

        for message in self.parse_fetch_response(response.lines):
            if message.data and message.uid in (None, uid):
                return message.data

        raise FetchError(f"Message {uid} not found on server", details={"uid": uid})

    @staticmethod
    def parse_fetch_response(lines: Sequence) -> List[FetchedMessage]:
        """Group raw aioimaplib FETCH lines into messages.

        aioimaplib yields the ``* n FETCH (...`` line as bytes, the literal as a
        bytearray and the remainder (which may carry UID and FLAGS on some
        servers) as further bytes lines.
        """
        messages: List[FetchedMessage] = []
        current: Optional[FetchedMessage] = None

        for line in lines:
            if isinstance(line, bytearray):
                if current is not None and not current.data:
                    current.data = bytes(line)
                continue

            if isinstance(line, str):
                line = line.encode()
            if not isinstance(line, bytes):
                continue

            if _FETCH_START_RE.match(line):
                current = FetchedMessage()
                messages.append(current)
            elif current is None:
                continue

            uid_match = _UID_RE.search(line)
            if uid_match:
                current.uid = int(uid_match.group(1))

            flags_match = _FLAGS_RE.search(line)
            if flags_match:
                current.flags = {
                    flag.decode(errors="replace") for flag in flags_match.group(1).split()
                }

        return messages

