"""API test fixtures."""
from unittest.mock import AsyncMock

import pytest


@pytest.fixture(autouse=True)
def _no_page_fetch(fake_metadata: AsyncMock) -> AsyncMock:
    """Every API test runs with page metadata fetching stubbed out."""
    return fake_metadata
