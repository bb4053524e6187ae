"""Global pytest configuration."""

import pytest

from tripcore.app.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> None:
    """Re-read settings per test so monkeypatched env vars take effect."""
    get_settings.cache_clear()
