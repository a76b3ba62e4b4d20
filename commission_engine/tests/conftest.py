from __future__ import annotations

from typing import List

import pytest
from flask.testing import FlaskClient
from loguru import logger

from commission_engine.app import create_app
from commission_engine.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client() -> FlaskClient:
    app = create_app(settings=Settings(default_role_rate="0", use_rate_table=True))
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def log_messages() -> List[str]:
    """Collect loguru output; pytest's caplog does not see loguru records."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
