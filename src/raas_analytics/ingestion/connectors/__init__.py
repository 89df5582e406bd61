"""Concrete transports."""

from .aiohttp_client import AiohttpClient  # noqa: F401
from .proxy import ProxyClient, encode_target  # noqa: F401

__all__ = [
    "AiohttpClient",
    "ProxyClient",
    "encode_target",
]
