from __future__ import annotations

import pytest
import requests

from bitbucket_report.client import BitbucketClient

from fakes import FakeSession


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> BitbucketClient:
    return BitbucketClient("alice", "s3cret", session=session)


@pytest.fixture
def timeout_error() -> Exception:
    return requests.Timeout("read timed out")
