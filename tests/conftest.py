"""Shared fixtures."""

import pytest

from eventbus.config import cfg


@pytest.fixture
def cfg_reset():
    """Global cfg, restored to defaults after the test."""
    yield cfg
    cfg.reload({})
