"""Shared fixtures for the happylog tests."""

import pytest

from happylog import ConsoleHandlerConfig, HappyDevFormatter


@pytest.fixture
def plain_config() -> ConsoleHandlerConfig:
    """Console settings without colors and with plenty of room per line."""
    return ConsoleHandlerConfig(colors=False, max_col=200)


@pytest.fixture
def formatter(plain_config: ConsoleHandlerConfig) -> HappyDevFormatter:
    return HappyDevFormatter("app", plain_config)
