"""Credential management - resolving the IMAP password for the account."""

import getpass
import sys
from typing import Optional

import keyring
from keyring.errors import KeyringError

from rutt.utils.config import ConfigManager
from rutt.utils.errors import MissingCredentialsError
from rutt.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "rutt"


class KeyStore:
    """Thin wrapper over the system keyring for one service name."""

    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name

    def retrieve(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError as e:
            logger.warning(f"Failed to retrieve from keyring: {e}")
            return None

    def store(self, key: str, value: str) -> bool:
        try:
            keyring.set_password(self.service_name, key, value)
            return True
        except KeyringError as e:
            logger.warning(f"Failed to store in keyring: {e}")
            return False

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.service_name, key)
        except KeyringError as e:
            logger.debug(f"No keyring entry removed for {key}: {e}")


class CredentialManager:
    """Finds the account password: config, then keyring, then a prompt.

    The resolved password is cached for the life of the manager so that
    reconnects while the interface owns the terminal never prompt.
    """

    def __init__(self, config_manager: ConfigManager, keystore: Optional[KeyStore] = None):
        self.config_manager = config_manager
        self.keystore = keystore or KeyStore()
        self._password: Optional[str] = None

    @property
    def username(self) -> str:
        return self.config_manager.config.account.username

    def get_password(self) -> str:
        """Return the password for the configured account.

        Raises:
            MissingCredentialsError: If no username is configured or no
                password can be found or prompted for.
        """
        if self._password:
            return self._password

        if not self.username:
            raise MissingCredentialsError(
                "No username configured",
                details={"config": str(self.config_manager.path)},
                hint=f"Set account.username in {self.config_manager.path}",
            )

        password = self.config_manager.config.account.app_password
        if password:
            logger.debug("Using app password from configuration")
        else:
            password = self.keystore.retrieve(self.username)
            if password:
                logger.debug("Using password from system keyring")

        if not password:
            password = self._prompt_for_password()

        if not password:
            raise MissingCredentialsError(
                "Password is required", details={"username": self.username}
            )

        self._password = password
        return password

    def forget_password(self) -> None:
        """Drop a rejected password from the cache and keyring."""
        self._password = None
        self.keystore.delete(self.username)
        logger.info("Cleared stored password after authentication failure")

    def _prompt_for_password(self) -> Optional[str]:
        if not sys.stdin.isatty():
            logger.warning("Password not found and stdin is not a terminal")
            return None

        try:
            password = getpass.getpass(f"Enter app password for {self.username}: ")
        except (EOFError, KeyboardInterrupt):
            logger.info("User cancelled password input.")
            return None

        if password and self.keystore.store(self.username, password):
            logger.info("Password stored in system keyring")
        return password or None
