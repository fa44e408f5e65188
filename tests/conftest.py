import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import copy
import logging
import pytest
import pytest_asyncio
from infra.http_client import HttpClient
from utils.config import load_cfg
from billing.config import DashboardSettings

BASE = "http://api.test"
USER = "u1"


@pytest.fixture(scope="session")
def base_cfg():
    return load_cfg(str(Path(__file__).resolve().parents[1] / "config.yaml"))


@pytest.fixture
def test_cfg(base_cfg):
    cfg = copy.deepcopy(base_cfg)
    cfg["dashboard"]["api_base"] = BASE
    cfg["dashboard"]["user_id"] = USER
    cfg["dashboard"]["poll_interval_ms"] = 2000
    cfg["dashboard"]["max_poll_attempts"] = 0
    # no transport retries: one failed request is one failed call
    cfg["retries"] = {"rest_max_attempts": 1, "backoff_ms": 0}
    return cfg


@pytest.fixture
def settings(test_cfg):
    return DashboardSettings.from_cfg(test_cfg)


@pytest_asyncio.fixture
async def http_client(test_cfg):
    """
    HttpClient inside its async context manager; the session is closed after the test.
    """
    logger = logging.getLogger("HttpClientTest")
    async with HttpClient(test_cfg, logger=logger) as client:
        yield client


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays and returns immediately."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep():
    return SleepRecorder()
