"""Shared test fixtures for tiktok_ads_fs tests.

No test touches the network: sync sessions are ``MagicMock`` objects and
batch uploads run on :class:`fakes.FakeAsyncSession`.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fakes import FakeAsyncSession, make_session

from tiktok_ads_fs.cache import AdvertiserCache


@pytest.fixture(autouse=True)
def _reset_fake_async_sessions():
    FakeAsyncSession.instances.clear()
    yield
    FakeAsyncSession.instances.clear()


@pytest.fixture
def captured_forms():
    """Record every multipart form the client builds.

    Yields ``(forms, mimes)``; each mime is a ``MagicMock`` carrying the
    original :class:`~tiktok_ads_fs.forms.FormField` list on ``.form``.
    """
    forms: list[list[Any]] = []
    mimes: list[MagicMock] = []

    def fake_to_curl_mime(form):
        forms.append(form)
        mime = MagicMock(form=form)
        mimes.append(mime)
        return mime

    with patch("tiktok_ads_fs.client.to_curl_mime", side_effect=fake_to_curl_mime):
        yield forms, mimes


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def memory_cache():
    return AdvertiserCache(mode="memory")
