"""One long-lived, read-only IMAP session per account."""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

import aioimaplib

from rutt.security.credential_manager import CredentialManager
from rutt.utils.config import ConfigManager
from rutt.utils.errors import (
    IMAPError,
    InvalidCredentialsError,
    NetworkError,
    NetworkTimeoutError,
)
from rutt.utils.logging import get_logger, log_call

from .constants import IMAPResponse, Timeouts

logger = get_logger(__name__)

# Failures that mean the socket or session is no longer usable.
_TRANSPORT_ERRORS = (asyncio.TimeoutError, aioimaplib.AioImapException, OSError)


@dataclass
class ConnectionStats:
    """Counters for the lifetime of one IMAPConnection."""

    logins: int = 0
    reconnects: int = 0
    noop_ok: int = 0
    noop_failed: int = 0


def _first_line(response) -> str:
    if not response.lines:
        return "No response"
    line = response.lines[0]
    if isinstance(line, (bytes, bytearray)):
        return bytes(line).decode(errors="replace")
    return str(line)


class IMAPConnection:
    """Owns one authenticated aioimaplib client and keeps it usable.

    The client is created lazily, checked with NOOP before reuse and replaced
    once it is older than ``account.connection_ttl`` seconds. Callers that
    need a selected mailbox must compare the client they get back with the
    one they selected on, since any call may hand out a fresh session.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        credential_manager: Optional[CredentialManager] = None,
    ):
        self.config_manager = config_manager
        self.credential_manager = credential_manager or CredentialManager(config_manager)
        self._client: Optional[aioimaplib.IMAP4_SSL] = None
        self._opened_at: Optional[float] = None
        self._lock = asyncio.Lock()
        self.stats = ConnectionStats()

    @property
    def account(self):
        return self.config_manager.config.account

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def get_stats(self) -> ConnectionStats:
        return self.stats

    async def get_client(self) -> aioimaplib.IMAP4_SSL:
        """Return a logged-in client, reconnecting when needed.

        Raises:
            MissingCredentialsError: If no password is available
            InvalidCredentialsError: If the server rejects the login
            NetworkTimeoutError: If the server does not answer in time
            NetworkError: If the server cannot be reached
        """
        async with self._lock:
            if self._client is None:
                await self._login()
            elif self._expired():
                logger.info(
                    "IMAP session older than TTL, reconnecting",
                    extra={"ttl": self.account.connection_ttl},
                )
                await self._reconnect()
            elif not await self._alive():
                await self._reconnect()
            return self._client

    def check_response(self, response, operation: str) -> None:
        """Raise IMAPError unless the server answered ``operation`` with OK."""
        if response.result == IMAPResponse.OK:
            return

        raise IMAPError(
            f"Server refused {operation}",
            details={
                "operation": operation,
                "result": response.result,
                "response": _first_line(response),
                "server": self.account.imap_server,
            },
        )

    @log_call
    async def close_connection(self) -> None:
        """Log out and forget the client."""
        async with self._lock:
            await self._drop()

    ## Session lifecycle

    def _expired(self) -> bool:
        if self._opened_at is None:
            return True
        return time.monotonic() - self._opened_at > self.account.connection_ttl

    async def _alive(self) -> bool:
        try:
            await asyncio.wait_for(self._client.noop(), timeout=Timeouts.IMAP_NOOP)
        except _TRANSPORT_ERRORS as e:
            self.stats.noop_failed += 1
            logger.warning("IMAP session lost", extra={"error": str(e)})
            return False
        self.stats.noop_ok += 1
        return True

    async def _reconnect(self) -> None:
        self.stats.reconnects += 1
        await self._drop()
        await self._login()

    async def _drop(self) -> None:
        client, self._client = self._client, None
        self._opened_at = None
        if client is None:
            return
        try:
            await asyncio.wait_for(client.logout(), timeout=Timeouts.IMAP_LOGOUT)
        except _TRANSPORT_ERRORS as e:
            logger.debug(f"Ignoring error during IMAP logout: {e}")

    async def _login(self) -> None:
        account = self.account
        password = self.credential_manager.get_password()
        started = time.monotonic()
        where = {"server": account.imap_server, "port": account.imap_port}

        logger.info("Opening IMAP session", extra=where)
        try:
            client = aioimaplib.IMAP4_SSL(
                host=account.imap_server,
                port=account.imap_port,
                timeout=account.network_timeout,
            )
            await asyncio.wait_for(client.wait_hello_from_server(), timeout=Timeouts.IMAP_CONNECT)
            response = await asyncio.wait_for(
                client.login(account.username, password), timeout=Timeouts.IMAP_LOGIN
            )
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError(
                f"No answer from {account.imap_server} after "
                f"{time.monotonic() - started:.1f}s",
                details=where,
            ) from e
        except aioimaplib.AioImapException as e:
            raise IMAPError(f"IMAP handshake failed: {e}", details=where) from e
        except OSError as e:
            raise NetworkError(
                f"Cannot reach {account.imap_server}:{account.imap_port}: {e}", details=where
            ) from e

        if response.result != IMAPResponse.OK:
            self.credential_manager.forget_password()
            raise InvalidCredentialsError(
                details={**where, "username": account.username, "response": _first_line(response)}
            )

        self._client = client
        self._opened_at = time.monotonic()
        self.stats.logins += 1
        logger.info(
            "IMAP session ready",
            extra={**where, "duration_seconds": round(time.monotonic() - started, 2)},
        )
