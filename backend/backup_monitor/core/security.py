"""
Security utilities: password hashing (argon2) and API key generation/digests.
"""
import hashlib
import secrets

from argon2 import PasswordHasher

from backup_monitor.core.config import get_settings

_ph = PasswordHasher()


# ── Password ──────────────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    return _ph.hash(plain)


# ── API keys ──────────────────────────────────────────────────────────────────

def generate_api_key() -> str:
    return get_settings().api_key_prefix + secrets.token_urlsafe(32)


def hash_api_key(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()
