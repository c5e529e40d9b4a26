"""Security utilities for participant identity and admin access.

Implements privacy-preserving network hashing and constant-time secret checks.
"""

import hashlib
import secrets

from fastapi import Request

from core.config import settings

UNKNOWN_ADDRESS = "unknown"


def hash_network_address(address: str, salt: str | None = None) -> str:
    """
    Generate a privacy-preserving hash of a network address.

    This hash allows us to:
    1. Count participants per network for rate limiting
    2. Never store the raw address
    3. Resist enumeration of the (small) IPv4 space thanks to the server salt

    Args:
        address: The raw source address of the submission
        salt: Server-side salt, defaults to settings.IP_SALT

    Returns:
        A SHA-256 hex digest
    """
    if salt is None:
        salt = settings.IP_SALT
    return hashlib.sha256(f"{address}{salt}".encode()).hexdigest()


def secrets_match(provided: str | None, expected: str | None) -> bool:
    """
    Compare a client supplied secret with the configured one in constant time.

    An unset expected secret never matches, so an unconfigured deployment
    cannot be reset with an empty header.
    """
    if not expected or provided is None:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


def get_client_address(request: Request) -> str:
    """Get the client address, honouring reverse proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_ADDRESS
