import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_ledger.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment overrides in one test do not leak."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
