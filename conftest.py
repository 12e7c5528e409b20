from __future__ import annotations

import os

import pytest
import requests_mock as requests_mock_lib


os.environ.setdefault("TESTING_MODE", "1")
os.environ.setdefault("SEASTATE_LOG_LEVEL", "DEBUG")


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker
