"""Backend configuration: static network tables, source normalization and file loading."""

from .sources import (
    ApiConfig,
    ApiSource,
    BackendConfig,
    EnsSource,
    UnsLayerSource,
    UnsSource,
    ZnsSource,
)

__all__ = [
    "ApiConfig",
    "ApiSource",
    "BackendConfig",
    "EnsSource",
    "UnsLayerSource",
    "UnsSource",
    "ZnsSource",
]
