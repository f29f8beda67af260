"""
Request rate limiting.

The limiter lives outside ``main`` so routers can decorate endpoints without
importing the application module.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from purrfect_glow.core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)
