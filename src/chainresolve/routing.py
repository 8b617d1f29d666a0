from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .types import NamingServiceName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneDescriptor:
    """Brief: Static ownership record for one top-level suffix.

    Inputs:
      - suffix: top-level label without a leading dot (e.g. "crypto").
      - services: owning naming services in preference order, newest first.
    """

    suffix: str
    services: Tuple[NamingServiceName, ...]


_UNS_SUFFIXES = (
    "crypto",
    "wallet",
    "blockchain",
    "bitcoin",
    "x",
    "888",
    "nft",
    "dao",
    "coin",
    "klever",
    "hi",
    "kresus",
    "polygon",
    "anime",
    "manga",
    "binanceus",
    "realm",
    "go",
    "altimist",
    "unstoppable",
    "pudgy",
    "austin",
    "bitget",
    "pog",
    "clay",
    "ubu",
)

_ENS_SUFFIXES = ("eth", "luxe", "xyz", "kred")

# .zil moved from the Zilliqa registry to UNS; both stay routable, UNS first.
ZONES: Tuple[ZoneDescriptor, ...] = (
    *(ZoneDescriptor(s, (NamingServiceName.UNS,)) for s in _UNS_SUFFIXES),
    ZoneDescriptor("zil", (NamingServiceName.UNS, NamingServiceName.ZNS)),
    *(ZoneDescriptor(s, (NamingServiceName.ENS,)) for s in _ENS_SUFFIXES),
)


def top_level_label(domain: str) -> str:
    return domain.rstrip(".").rsplit(".", 1)[-1]


class ServiceRouter:
    """Maps a domain's rightmost label to the naming services that own it.

    Example use:
        >>> router = ServiceRouter()
        >>> [s.value for s in router.route("brad.zil")]
        ['UNS', 'ZNS']
        >>> router.route("example.com")
        []
    """

    def __init__(
        self,
        zones: Optional[Iterable[ZoneDescriptor]] = None,
        enabled: Optional[Sequence[NamingServiceName]] = None,
    ) -> None:
        """
        Inputs:
          - zones: zone table; defaults to ZONES.
          - enabled: when given, services outside this set are dropped from
            every route (a zone left with no service becomes unroutable).
        """
        self._table: Dict[str, Tuple[NamingServiceName, ...]] = self._normalize_zones(
            zones if zones is not None else ZONES, enabled
        )

    @staticmethod
    def _normalize_zones(
        zones: Iterable[ZoneDescriptor],
        enabled: Optional[Sequence[NamingServiceName]],
    ) -> Dict[str, Tuple[NamingServiceName, ...]]:
        allowed = None if enabled is None else {NamingServiceName(s) for s in enabled}
        table: Dict[str, Tuple[NamingServiceName, ...]] = {}
        for zone in zones:
            suffix = zone.suffix.strip().lower().lstrip(".")
            if not suffix or suffix in table:
                continue
            services = tuple(
                NamingServiceName(s)
                for s in zone.services
                if allowed is None or NamingServiceName(s) in allowed
            )
            if services:
                table[suffix] = services
        return table

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[str]]) -> "ServiceRouter":
        """Brief: Build a router from {suffix: [service, ...]} (e.g. parsed YAML)."""
        zones = [
            ZoneDescriptor(suffix, tuple(NamingServiceName(s) for s in services))
            for suffix, services in mapping.items()
        ]
        return cls(zones)

    @property
    def zones(self) -> Tuple[ZoneDescriptor, ...]:
        return tuple(ZoneDescriptor(s, services) for s, services in self._table.items())

    def restricted(self, enabled: Sequence[NamingServiceName]) -> "ServiceRouter":
        """Brief: Copy of this router keeping only the enabled services."""
        return ServiceRouter(self.zones, enabled=enabled)

    @property
    def suffixes(self) -> List[str]:
        return sorted(self._table)

    @property
    def services(self) -> List[NamingServiceName]:
        seen: List[NamingServiceName] = []
        for services in self._table.values():
            for s in services:
                if s not in seen:
                    seen.append(s)
        return seen

    def suffixes_for(self, service: NamingServiceName) -> List[str]:
        """Brief: Suffixes whose route includes service, sorted."""
        wanted = NamingServiceName(service)
        return sorted(s for s, services in self._table.items() if wanted in services)

    def route(self, domain: str) -> List[NamingServiceName]:
        """
        Inputs:
          - domain: normalized domain name.
        Outputs:
          - ordered list of owning services; empty for an unknown suffix.
        """
        if not domain:
            return []
        services = self._table.get(top_level_label(domain.lower()), ())
        if services:
            logger.debug(
                "Route matched for %s: [%s]", domain, ", ".join(s.value for s in services)
            )
        return list(services)

    def primary(self, domain: str) -> Optional[NamingServiceName]:
        services = self.route(domain)
        return services[0] if services else None
