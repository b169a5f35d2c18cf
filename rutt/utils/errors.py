"""Error types raised by rutt and the handler that reports them.

Every failure the program expects to meet is a :class:`RuttError`. Startup
failures surface on the terminal through :meth:`ErrorHandler.describe`; body
fetch failures never leave the navigation layer and turn into an
"unavailable" placeholder instead.
"""

from enum import Enum
from typing import Any, Dict, Optional

from rutt.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Where a failure came from."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    PARSING = "parsing"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Base Exception


class RuttError(Exception):
    """Base exception for all rutt errors.

    ``user_message`` is the fallback text when no message is given and
    ``hint`` is an optional next step shown to the user alongside it; a
    hint passed to the constructor replaces the class default.
    """

    category = ErrorCategory.UNKNOWN
    user_message = "Something went wrong"
    hint: Optional[str] = None

    def __init__(
        self,
        message: str | None = None,
        details: Dict[str, Any] | None = None,
        hint: str | None = None,
    ):
        self.message = message or self.user_message
        self.details = details or {}
        if hint is not None:
            self.hint = hint
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used for logging."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Server Errors


class NetworkError(RuttError):
    """The mail server could not be reached or dropped the connection."""

    category = ErrorCategory.NETWORK
    user_message = "Could not reach the mail server"
    hint = "Check your network connection and account.imap_server"


class IMAPError(NetworkError):
    """The server answered an IMAP command with NO or BAD."""

    user_message = "The mail server rejected a request"
    hint = "Check that account.mailbox exists on the server"


class FetchError(IMAPError):
    """A message body could not be retrieved."""

    user_message = "Message could not be fetched"
    hint = None


class NetworkTimeoutError(NetworkError):
    """The server did not answer within account.network_timeout."""

    user_message = "The mail server did not respond in time"
    hint = "Try again, or raise account.network_timeout"


## Credential Errors


class AuthenticationError(RuttError):
    category = ErrorCategory.AUTHENTICATION
    user_message = "Could not sign in to the mail server"


class InvalidCredentialsError(AuthenticationError):
    """The server refused the username and password."""

    user_message = "Invalid username or app password"
    hint = "Gmail accounts need an app password, not the account password"


class MissingCredentialsError(AuthenticationError):
    """No username is configured or no password could be found."""

    user_message = "Email credentials not configured"
    hint = "Set account.username, then run rutt from a terminal to enter the password"


## Message Errors


class MessageParseError(RuttError):
    """A header block or message body could not be parsed."""

    category = ErrorCategory.PARSING
    user_message = "Message could not be parsed"


## Local Errors


class FileSystemError(RuttError):
    category = ErrorCategory.FILE_SYSTEM
    user_message = "Could not read or write rutt's files"
    hint = "Check the permissions of ~/.rutt"


class ConfigurationError(RuttError):
    """Base exception for configuration problems."""

    category = ErrorCategory.CONFIGURATION
    user_message = "Configuration problem"


class MissingConfigError(ConfigurationError):
    """A configuration key path does not exist."""

    user_message = "Unknown configuration setting"


class InvalidConfigError(ConfigurationError):
    """The config file is not valid JSON or fails validation."""

    user_message = "Invalid configuration file"
    hint = "Fix or delete the file to regenerate the defaults"


## Error Handler


class ErrorHandler:
    """Logs failures and turns them into something a user can act on."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Log ``error`` and return its structured form."""
        logger = _get_logger()

        if isinstance(error, RuttError):
            logger.error(f"{context}: {error.message}", extra={"context": error.details})
            result = error.to_dict()
        else:
            logger.error(f"{context}: {error}")
            result = {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }

        if log_traceback:
            logger.exception(error)
        return result

    @staticmethod
    def describe(error: Exception) -> str:
        """One or two lines for the terminal: the message, then the hint if any."""
        if not isinstance(error, RuttError):
            return str(error) or error.__class__.__name__
        if error.hint:
            return f"{error.message}\n{error.hint}"
        return error.message
