"""
Shared test fixtures and configuration for pytest
"""
import logging

import pytest

from rutt.utils import logging as rutt_logging
from rutt.utils.config import ConfigManager

from .test_helpers import EmailTestHelper, FakeMailSource


@pytest.fixture
def config_path(tmp_path):
    """Path to a not-yet-existing config file"""
    return tmp_path / "rutt" / "config.json"


@pytest.fixture
def config_manager(config_path):
    """ConfigManager backed by a temporary file"""
    manager = ConfigManager(config_path)
    manager.set_config("account.username", "user@example.com", persist=False)
    return manager


@pytest.fixture
def test_email():
    """Sample email record"""
    return EmailTestHelper.create_email()


@pytest.fixture
def test_emails():
    """Twenty sample email records, newest first"""
    return EmailTestHelper.create_emails(20)


@pytest.fixture
def fake_source(test_emails):
    """In-memory mail source over the sample records"""
    return FakeMailSource(records=test_emails)


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    """Keep log files out of the home directory and reset the log manager"""
    monkeypatch.setattr(rutt_logging, "_LOG_DIR", None)
    monkeypatch.setattr(rutt_logging, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(rutt_logging, "_log_manager", None)
    root = logging.getLogger("rutt")
    handlers = list(root.handlers)
    propagate = root.propagate
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.propagate = propagate
