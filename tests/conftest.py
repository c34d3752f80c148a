"""
Shared fixtures for the DeepQA test suite.

Provides isolated test environments with:
- A fresh Config singleton pointing logs, cache and exports at tmp_path
- Environment settings without real credentials
- Rate limiters rebuilt from the test config
"""
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `deepqa` is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# ---------------------------------------------------------------------------
# Core fixtures: config + settings isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Auto-use fixture that gives every test its own config and settings.

    Resets the global singletons in deepqa.config so tests never leak
    state into each other.
    """
    from deepqa.config.settings import Config, Settings, set_config, set_env_settings
    from deepqa.tools.search import reset_limiters

    monkeypatch.delenv("TAVILY_API_KEY", raising=False)
    monkeypatch.delenv("SPARQL_URL", raising=False)
    monkeypatch.delenv("DEEPQA_CONFIG", raising=False)

    config = Config()
    config.logging.file = str(tmp_path / "logs" / "deepqa.log")
    config.output.directory = str(tmp_path / "output")
    config.search.cache_directory = str(tmp_path / "cache")
    config.search.timeout_seconds = 5.0
    config.rate_limits.search_calls_per_minute = 60_000
    config.rate_limits.knowledge_calls_per_minute = 60_000

    set_config(config)
    set_env_settings(Settings(_env_file=None))
    reset_limiters()

    yield config

    set_config(None)
    set_env_settings(None)
    reset_limiters()


@pytest.fixture
def test_config(isolated_environment):
    """Explicit access to the test Config object."""
    return isolated_environment


@pytest.fixture
def journal():
    """Shared list the recording fakes append their calls to."""
    return []
