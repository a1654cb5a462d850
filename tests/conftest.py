"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from whowlang import config as config_module
from whowlang.parser import parse_file
from whowlang.config import WhowlangConfig


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def server_file(fixtures_dir):
    return fixtures_dir / "server.wl"


@pytest.fixture
def broken_file(fixtures_dir):
    return fixtures_dir / "broken.wl"


@pytest.fixture
def parsed_server(server_file):
    """Parsed server.wl fixture."""
    return parse_file(str(server_file))


# =============================================================================
# CONFIG ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep user config files and WHOWLANG_* variables out of tests."""
    for name in (
        "WHOWLANG_LOG_LEVEL", "WHOWLANG_JSON_INDENT", "WHOWLANG_SORT_KEYS", "WHOWLANG_ENCODINGS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [])
    monkeypatch.setattr(config_module, "_config", WhowlangConfig(search_paths=[]))
    yield
