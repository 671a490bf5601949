# Shared pytest fixtures

import bcrypt
import pytest

from tests.support import FakeStore, action_client

_gensalt = bcrypt.gensalt


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Keep password hashing cheap in tests"""
    monkeypatch.setattr(bcrypt, 'gensalt', lambda rounds=4, prefix=b'2b': _gensalt(rounds=4, prefix=prefix))


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    with action_client(store=store) as (test_client, _):
        yield test_client
