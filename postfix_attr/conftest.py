import sys

import pytest
from loguru import logger

pytest_plugins = ["postfix_attr.testing.attr_service"]


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as socket integration")


@pytest.fixture(autouse=True)
def _reset_loguru():
    # CLI commands replace the loguru sink with whatever stderr is current.
    yield
    logger.remove()
    logger.add(sys.stderr)
