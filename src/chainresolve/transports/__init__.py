"""Transports used by chain-backed naming backends."""

from .jsonrpc import (
    JsonRpcError,
    JsonRpcTransport,
    Transport,
    ProviderTransport,
    TransportError,
    Web3ProviderTransport,
    as_transport,
)

__all__ = [
    "JsonRpcError",
    "JsonRpcTransport",
    "ProviderTransport",
    "Transport",
    "TransportError",
    "Web3ProviderTransport",
    "as_transport",
]
