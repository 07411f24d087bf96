"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from termchat.approval.explain import ExplanationService
from termchat.config.schema import Config
from termchat.logging import get_logger, reset_logging
from termchat.session.controller import SessionController
from termchat.session.identity import SessionIdentity
from tests.utils import EngineRecorder, FakeProvider

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend():
    """Set anyio backend to asyncio."""
    return "asyncio"


@pytest.fixture
def config() -> Config:
    return Config(model="o4-mini")


@pytest.fixture
def recorder() -> EngineRecorder:
    """Engine factory that keeps every engine it builds."""
    return EngineRecorder()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider("It deletes the build directory.")


@pytest.fixture
def identity(config: Config) -> SessionIdentity:
    return SessionIdentity.from_config(config)


@pytest.fixture
def controller(recorder, provider, identity) -> SessionController:
    """A controller whose explanations come from the fake provider."""
    return SessionController(
        recorder,
        identity,
        explainer=ExplanationService(lambda model: provider),
    )


@pytest.fixture(autouse=True)
def fresh_logging():
    """Each test starts with termchat logging unconfigured."""
    logger = get_logger()
    level = logger.level
    reset_logging()
    yield
    reset_logging()
    logger.setLevel(level)
