"""chainresolve: resolve blockchain domain names across naming services."""

from .errors import (
    ConfigurationError,
    ConfigurationErrorCode,
    ResolutionError,
    ResolutionErrorCode,
)
from .hashing import HashAlgorithm, childhash, namehash
from .resolution import Resolution
from .routing import ServiceRouter, ZoneDescriptor
from .types import (
    DnsRecord,
    DnsRecordType,
    Location,
    NamingServiceName,
    ResolutionMeta,
    ResolutionResult,
    UnsLocation,
)

__all__ = [
    "ConfigurationError",
    "ConfigurationErrorCode",
    "DnsRecord",
    "DnsRecordType",
    "HashAlgorithm",
    "Location",
    "NamingServiceName",
    "Resolution",
    "ResolutionError",
    "ResolutionErrorCode",
    "ResolutionMeta",
    "ResolutionResult",
    "ServiceRouter",
    "UnsLocation",
    "ZoneDescriptor",
    "childhash",
    "namehash",
]
