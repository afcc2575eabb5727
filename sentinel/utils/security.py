"""
Request security helpers: client IP resolution for rate limiting.
"""

import ipaddress
from typing import Optional

from starlette.requests import Request


def _valid_ip(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return None
    return value


def get_client_ip(request: Request) -> str:
    """
    Resolve the caller's IP address.

    Order: first valid X-Forwarded-For entry, X-Real-IP, then the peer address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        for candidate in forwarded_for.split(","):
            ip = _valid_ip(candidate)
            if ip:
                return ip

    real_ip = _valid_ip(request.headers.get("X-Real-IP"))
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
