"""Settings for rutt, kept in ``~/.rutt/config.json``.

The file is validated with pydantic on load and on every update, and is
written back atomically so an interrupted save never leaves half a file.
"""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    MissingConfigError,
)
from .logging import get_logger, log_call
from .paths import CONFIG_PATH

logger = get_logger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class _Section(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


class AccountConfig(_Section):
    """The IMAP account and how much of the mailbox to load."""

    imap_server: str = "imap.gmail.com"
    imap_port: int = Field(default=993, ge=1, le=65535)
    username: str = ""
    app_password: Optional[str] = None
    mailbox: str = "INBOX"
    fetch_limit: int = Field(default=200, ge=1)
    network_timeout: int = Field(default=30, ge=1)  # seconds
    connection_ttl: int = Field(default=3600, ge=0)  # seconds


class UIConfig(_Section):
    initial_visible_height: int = Field(default=10, ge=1)
    date_format: str = "%Y/%m/%d %H:%M"


class LoggingConfig(_Section):
    log_level: LogLevel = "INFO"
    console_level: LogLevel = "WARNING"

    @field_validator("log_level", "console_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class AppConfig(_Section):
    version: str = "0.1.0"
    account: AccountConfig = Field(default_factory=AccountConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Loads, validates and updates the configuration file.

    A missing file is created with defaults. Every instance reads the file
    afresh, so tests and ``--config`` can point at any path.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.path = Path(config_path) if config_path else CONFIG_PATH
        self.config = self._load()
        logger.info(f"Configuration loaded from {self.path}")

    def _load(self) -> AppConfig:
        if not self.path.exists():
            logger.info(f"Creating default configuration at {self.path}")
            config = AppConfig()
            self._write(config)
            return config

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileSystemError(
                f"Cannot read configuration file: {self.path}", details={"path": str(self.path)}
            ) from e

        try:
            return AppConfig.model_validate(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.error(f"Config file is not JSON: {e}")
            raise InvalidConfigError(
                f"{self.path} is not valid JSON (line {e.lineno}, column {e.colno})",
                details={"path": str(self.path)},
            ) from e
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            logger.error(f"Config file failed validation: {problems}")
            raise InvalidConfigError(
                f"{self.path} has invalid settings: {problems}",
                details={"path": str(self.path)},
            ) from e

    def _write(self, config: AppConfig) -> None:
        """Write ``config`` to a sibling temp file, then move it into place."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(config.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8"
            )
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise FileSystemError(
                f"Cannot write configuration file: {self.path}", details={"path": str(self.path)}
            ) from e

    def _resolve(self, key_path: str) -> Tuple[BaseModel, str]:
        """Return the section holding ``key_path``'s last key, and that key."""
        *sections, field = key_path.split(".")
        obj: Any = self.config
        for name in sections:
            obj = getattr(obj, name, None)
            if not isinstance(obj, BaseModel):
                raise MissingConfigError(
                    f"'{key_path}' is not a configuration setting", details={"key": key_path}
                )
        if field not in type(obj).model_fields:
            raise MissingConfigError(
                f"'{key_path}' is not a configuration setting", details={"key": key_path}
            )
        return obj, field

    def get_config(self, key_path: str) -> Any:
        section, field = self._resolve(key_path)
        return getattr(section, field)

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True) -> None:
        """Validate and set ``key_path`` (e.g. ``"account.mailbox"``).

        With ``persist=False`` the change lives only for this process, which
        is how command line overrides are applied.

        Raises:
            MissingConfigError: If ``key_path`` names no setting
            ConfigurationError: If ``value`` fails validation
        """
        section, field = self._resolve(key_path)
        try:
            setattr(section, field, value)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid value for '{key_path}': {e.errors()[0]['msg']}",
                details={"key": key_path},
            ) from e

        if persist:
            self._write(self.config)
        logger.info(f"Config key '{key_path}' updated")
