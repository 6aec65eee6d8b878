import sys
from pathlib import Path

import pytest

# Ensure `import sizeshift` works when running `pytest` without needing PYTHONPATH hacks.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from sizeshift.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch) -> None:
    for name in ("DEBUG", "LOG_VERBOSITY", "ANTHROPIC_API_KEY", "SIZESHIFT_AI_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
