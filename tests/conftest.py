"""Pytest fixtures for plughub tests."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="plughub-tests-"))
os.environ["PLUGHUB_DATA_DIR"] = str(_TEST_BASE_DIR / "data")
os.environ["PLUGHUB_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")
os.environ.pop("PLUGHUB_PLUGIN_DIR", None)

from tests.helpers.plugins import PluginWriter  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture(autouse=True)
def _reset_plughub_logging() -> Generator[None, None, None]:
    """Undo handlers and levels installed by setup_logging()."""
    yield
    logger = logging.getLogger("plughub")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    root = tmp_path / "plugins"
    root.mkdir()
    return root


@pytest.fixture
def plugin_writer(plugin_root: Path) -> PluginWriter:
    """Factory for plugin packages on disk."""
    return PluginWriter(plugin_root)
