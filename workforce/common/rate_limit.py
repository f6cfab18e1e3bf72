"""Rate limiting configuration using slowapi.

Routers import ``limiter`` for per-endpoint limits (CSV import, settings
writes); main.py wires it into the app.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)
