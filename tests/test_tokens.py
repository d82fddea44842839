import json
from unittest.mock import MagicMock, patch

import pytest

from api import tokens


@pytest.fixture(autouse=True)
def empty_memory():
    tokens._memory.clear()
    yield
    tokens._memory.clear()


@pytest.fixture
def clock():
    now = {"t": 1_000.0}
    with patch("api.tokens._now", side_effect=lambda: now["t"]):
        yield now


@pytest.fixture
def no_redis():
    with patch("api.tokens.get_client", return_value=None):
        yield


class FakeRedis:
    """Just the two commands the token store uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    def getdel(self, key):
        return self.data.pop(key, None)


# --- in-process fallback ---

def test_token_is_64_hex_chars(no_redis, clock):
    token = tokens.create_token("owner@acme.com", "sess-1")
    assert len(token) == 64
    int(token, 16)


def test_token_validates_exactly_once(no_redis, clock):
    token = tokens.create_token("owner@acme.com", "sess-1")

    assert tokens.consume_token(token) == {"email": "owner@acme.com", "sessionToken": "sess-1"}
    assert tokens.consume_token(token) is None


def test_token_expires(no_redis, clock):
    token = tokens.create_token("owner@acme.com", "sess-1", ttl=60)
    clock["t"] += 61
    assert tokens.consume_token(token) is None


def test_token_valid_just_before_expiry(no_redis, clock):
    token = tokens.create_token("owner@acme.com", "sess-1", ttl=60)
    clock["t"] += 59
    assert tokens.consume_token(token) is not None


def test_unknown_token(no_redis, clock):
    assert tokens.consume_token("deadbeef") is None


def test_expired_entries_are_swept(no_redis, clock):
    tokens.create_token("a@acme.com", "s1", ttl=10)
    clock["t"] += 11
    tokens.create_token("b@acme.com", "s2", ttl=10)
    assert len(tokens._memory) == 1


def test_tokens_are_distinct(no_redis, clock):
    assert tokens.create_token("a@acme.com", "s") != tokens.create_token("a@acme.com", "s")


# --- redis-backed ---

def test_redis_store_is_single_use():
    fake = FakeRedis()
    with patch("api.tokens.get_client", return_value=fake):
        token = tokens.create_token("owner@acme.com", "sess-1", ttl=60)

        key = tokens.KEY_PREFIX + token
        assert json.loads(fake.data[key]) == {"email": "owner@acme.com", "sessionToken": "sess-1"}
        assert fake.ttls[key] == 60

        assert tokens.consume_token(token)["email"] == "owner@acme.com"
        assert tokens.consume_token(token) is None
    assert tokens._memory == {}


def test_redis_write_failure_falls_back_to_memory(clock):
    broken = MagicMock()
    broken.set.side_effect = ConnectionError("redis went away")
    broken.getdel.side_effect = ConnectionError("redis went away")

    with patch("api.tokens.get_client", return_value=broken):
        token = tokens.create_token("owner@acme.com", "sess-1")
        assert tokens.consume_token(token) == {"email": "owner@acme.com", "sessionToken": "sess-1"}
        assert tokens.consume_token(token) is None


def test_store_reported_as_memory_without_redis(no_redis):
    assert tokens.is_token_store_shared() is False
