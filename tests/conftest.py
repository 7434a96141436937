import pytest

from aime.core.config import reset_clients, set_default_configuration
from aime.core.log import aime_logger
from aime.core.tokens import token_tracker


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch: pytest.MonkeyPatch):
    """
    Give every test a fresh default configuration, token tracker and client cache.
    """
    monkeypatch.delenv("AIME_DEBUG", raising=False)
    set_default_configuration(None)
    aime_logger.update_configuration(None)
    token_tracker.reset()
    reset_clients()
    yield
    set_default_configuration(None)
    aime_logger.update_configuration(None)
    token_tracker.reset()
    reset_clients()
