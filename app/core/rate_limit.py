"""
Shared slowapi limiter.

Storage is in-memory, so limits are per process. Deployments running
several workers need a shared backend (storage_uri="redis://...").
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config.settings import settings


def get_client_ip(request: Request) -> str:
    """Client address as seen by the outermost trusted proxy.

    Each proxy appends the address it received the request from to
    X-Forwarded-For, so with N trusted proxies the client is the N-th entry
    from the right; anything to its left is client-supplied. With no trusted
    proxies the headers are ignored.
    """
    hops = settings.trusted_proxy_hops
    if hops > 0:
        forwarded = [ip.strip() for ip in request.headers.get("x-forwarded-for", "").split(",") if ip.strip()]
        if forwarded:
            return forwarded[-min(hops, len(forwarded))]
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
    return get_remote_address(request) or "unknown"


limiter = Limiter(key_func=get_client_ip, default_limits=[settings.rate_limit])
