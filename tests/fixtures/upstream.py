"""Fixtures building httpx clients over fake upstreams."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient over a MockTransport handler."""

    def _make(
        handler: Callable[[httpx.Request], Any], **kwargs: Any
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return _make
