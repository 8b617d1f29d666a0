"""Shared value types for chainresolve."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class NamingServiceName(str, Enum):
    """Brief: Names of the naming-service families the orchestrator knows."""

    UNS = "UNS"
    ZNS = "ZNS"
    ENS = "ENS"


class UdApiName(str, Enum):
    """Brief: Name reported by the centralized API backend."""

    UDAPI = "UDAPI"


class UnsLocation(str, Enum):
    """Brief: Chain layers a UNS deployment spans."""

    Layer1 = "L1"
    Layer2 = "L2"


class DnsRecordType(str, Enum):
    """Brief: DNS record types that may be stored as `dns.<TYPE>` records."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    NS = "NS"
    TXT = "TXT"
    SRV = "SRV"
    CAA = "CAA"
    PTR = "PTR"
    SOA = "SOA"


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
NULL_NODE = "0x" + "00" * 32

# Values a contract read returns when nothing is recorded.
NULL_ADDRESSES = frozenset(("0x", NULL_ADDRESS, NULL_NODE))


def is_null_address(value: Optional[str]) -> bool:
    """Brief: True for empty values and for any of the well-known null addresses.

    Example:
      >>> is_null_address(None), is_null_address("0x0000000000000000000000000000000000000000")
      (True, True)
    """
    if not value:
        return True
    return value.lower() in NULL_ADDRESSES


@dataclass
class ResolutionMeta:
    owner: Optional[str]
    type: str
    ttl: int = 0


@dataclass
class ResolutionResult:
    """Brief: Normalized answer of a full resolve() call.

    Inputs (fields):
      - addresses: ticker -> address map taken from `crypto.<TICKER>.address`.
      - meta: owner, backend name and ttl.
      - records: optional flat record map as returned by the backend.
    """

    addresses: Dict[str, str]
    meta: ResolutionMeta
    records: Optional[Dict[str, str]] = None

    def to_dict(self) -> dict:
        out = {
            "addresses": dict(self.addresses),
            "meta": {
                "owner": self.meta.owner,
                "type": self.meta.type,
                "ttl": self.meta.ttl,
            },
        }
        if self.records is not None:
            out["records"] = dict(self.records)
        return out


@dataclass
class DomainData:
    """Brief: Raw registry view of one token: owner, resolver and requested records."""

    owner: str
    resolver: str
    records: Dict[str, str] = field(default_factory=dict)
    location: Optional[UnsLocation] = None


@dataclass
class DnsRecord:
    type: DnsRecordType
    TTL: int
    data: str


@dataclass
class Location:
    """Brief: Where a domain lives on chain."""

    registry_address: Optional[str]
    resolver_address: Optional[str]
    network_id: Optional[int]
    blockchain: Optional[str]
    owner_address: Optional[str]
    blockchain_provider_url: Optional[str]

    def to_dict(self) -> dict:
        return {
            "registryAddress": self.registry_address,
            "resolverAddress": self.resolver_address,
            "networkId": self.network_id,
            "blockchain": self.blockchain,
            "ownerAddress": self.owner_address,
            "blockchainProviderUrl": self.blockchain_provider_url,
        }


Locations = Dict[str, Optional[Location]]
