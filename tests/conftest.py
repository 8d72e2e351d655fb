"""Test configuration and shared fixtures for ESON Toolkit tests.

Configuration is isolated per test: the user override directory points to a
temporary folder and the ConfigManager singleton is reset, so no test ever
reads the developer's own ``~/.eson_toolkit`` files.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from eson_toolkit.config import ConfigManager
from eson_toolkit.core.ids import CounterIdGenerator


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user config overrides to an empty temp dir and reset the singleton."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("ESON_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def id_generator():
    """Deterministic node ids starting at 1."""
    return CounterIdGenerator()


@pytest.fixture
def restore_logging():
    """Undo the global changes made by setup_logging()."""
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level
    yield
    for name in list(logging.root.manager.loggerDict):
        if not name.startswith("eson_toolkit"):
            continue
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    for handler in list(root.handlers):
        if handler not in root_handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in root_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(root_level)


@pytest.fixture
def sample_document():
    """Document used by the search examples."""
    return {
        "obj": {
            "arr": [1, 2, {"first": 3, "last": 4}]
        },
        "str": "hello world",
        "nill": None,
        "bool": False,
    }


@pytest.fixture
def person_document():
    return {"name": "John", "age": 42, "address": {"city": "Rotterdam", "zip": "3011"}}
