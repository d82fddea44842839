"""
Single-use login handoff tokens.

A logged-in user exchanges their session for a short-lived random token that
another site (the generated client site) redeems exactly once. Tokens live in
Redis when it is reachable so every worker sees them; otherwise they fall back
to this process's memory and expired entries are swept on each call.
"""
import json
import logging
import secrets
import time
from threading import Lock
from typing import Optional

import redis

from .config import AUTH_TOKEN_TTL, REDIS_URL

logger = logging.getLogger(__name__)

KEY_PREFIX = "auth-token:"

# module-level client; None if Redis is unavailable (tokens stay in-process)
_client: Optional[redis.Redis] = None

_memory: dict[str, tuple[dict, float]] = {}
_memory_lock = Lock()


def get_client() -> Optional[redis.Redis]:
    global _client
    if _client is None:
        try:
            _client = redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=2)
            _client.ping()
        except Exception as exc:
            logger.warning("Redis unavailable, login tokens kept in memory: %s", exc)
            _client = None
    return _client


def _now() -> float:
    return time.time()


def _sweep(now: float) -> None:
    for token in [t for t, (_, expires_at) in _memory.items() if expires_at <= now]:
        del _memory[token]


def _remember(token: str, payload: dict, ttl: int) -> None:
    now = _now()
    with _memory_lock:
        _sweep(now)
        _memory[token] = (payload, now + ttl)


def _take(token: str) -> Optional[dict]:
    now = _now()
    with _memory_lock:
        _sweep(now)
        entry = _memory.pop(token, None)
    return entry[0] if entry else None


def create_token(email: str, session_token: str, ttl: int = AUTH_TOKEN_TTL) -> str:
    token = secrets.token_hex(32)
    payload = {"email": email, "sessionToken": session_token}

    client = get_client()
    if client is not None:
        try:
            client.set(KEY_PREFIX + token, json.dumps(payload), ex=ttl)
            return token
        except Exception as exc:
            logger.warning("Token write to Redis failed, using memory: %s", exc)

    _remember(token, payload, ttl)
    return token


def consume_token(token: str) -> Optional[dict]:
    """Redeem a token: returns its payload once, then None forever after."""
    client = get_client()
    if client is not None:
        try:
            # GETDEL reads and removes in one step so two redeemers can't both win
            raw = client.getdel(KEY_PREFIX + token)
            if raw:
                return json.loads(raw)
        except Exception as exc:
            logger.warning("Token read from Redis failed: %s", exc)

    # a token minted while Redis was down lives in memory
    return _take(token)


def is_token_store_shared() -> bool:
    client = get_client()
    if client is None:
        return False
    try:
        client.ping()
        return True
    except Exception:
        return False
