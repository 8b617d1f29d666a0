from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import ClassVar, Dict, Iterator, List, Optional, Sequence

from ..errors import ResolutionError, ResolutionErrorCode
from ..hashing import HashAlgorithm, childhash, namehash
from ..records import extract_addresses, structure
from ..routing import ServiceRouter
from ..transports.jsonrpc import TransportError
from ..types import (
    Locations,
    NamingServiceName,
    ResolutionMeta,
    ResolutionResult,
)

logger = logging.getLogger(__name__)

_LABEL = re.compile(r"^[^\s.]+$")


def normalize_domain(domain: object) -> str:
    """Brief: Trim and lowercase a domain name.

    Example:
      >>> normalize_domain("  Brad.Crypto ")
      'brad.crypto'
    """
    return str(domain or "").strip().lower()


@contextmanager
def naming_service_down(service: str) -> Iterator[None]:
    """Brief: Reclassify transport failures raised inside the block.

    Inputs:
      - service: backend name reported as the error's `method`.

    Raises:
      - ResolutionError(NamingServiceDown) chained to the TransportError.
    """
    try:
        yield
    except TransportError as e:
        logger.debug("%s transport failure: %s", service, e)
        raise ResolutionError(ResolutionErrorCode.NamingServiceDown, method=service) from e


def ensure_record_presence(domain: str, key: str, value: Optional[str]) -> str:
    if not value:
        raise ResolutionError(ResolutionErrorCode.RecordNotFound, domain=domain, record_name=key)
    return value


class NamingService:
    """Brief: Capability set shared by every naming backend.

    Subclasses implement the reads their registry supports; everything else
    raises ResolutionError(UnsupportedMethod) naming the backend and method.

    Inputs:
      - suffixes: top-level labels this backend accepts; defaults to the
        suffixes the default ServiceRouter assigns to `service`.

    Example use:
        >>> class Demo(NamingService):
        ...     name = "DEMO"
        ...     service = NamingServiceName.ENS
        >>> Demo().is_supported_domain("vitalik.eth")
        True
        >>> Demo().is_supported_domain("eth")
        False
    """

    name: ClassVar[str] = "BASE"
    aliases: ClassVar[Sequence[str]] = ()
    service: ClassVar[Optional[NamingServiceName]] = None
    hash_algorithm: ClassVar[Optional[HashAlgorithm]] = None

    def __init__(self, suffixes: Optional[Sequence[str]] = None) -> None:
        if suffixes is None:
            router = ServiceRouter()
            suffixes = router.suffixes_for(self.service) if self.service else []
        self.suffixes = frozenset(s.lower() for s in suffixes)

    @classmethod
    def get_aliases(cls) -> Sequence[str]:
        return tuple(getattr(cls, "aliases", ()))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    def _unsupported(self, method_name: str) -> ResolutionError:
        return ResolutionError(
            ResolutionErrorCode.UnsupportedMethod, method=self.name, method_name=method_name
        )

    def is_supported_domain(self, domain: str) -> bool:
        """Brief: At least two non-empty whitespace-free labels under an owned suffix."""
        labels = normalize_domain(domain).split(".")
        if len(labels) < 2 or not all(_LABEL.match(label) for label in labels):
            return False
        return labels[-1] in self.suffixes

    def namehash(self, domain: str) -> str:
        if self.hash_algorithm is None:
            raise self._unsupported("namehash")
        return namehash(domain, self.hash_algorithm)

    def childhash(self, parent: str, label: str) -> str:
        if self.hash_algorithm is None:
            raise self._unsupported("childhash")
        return childhash(parent, label, self.hash_algorithm)

    def owner(self, domain: str) -> Optional[str]:
        raise self._unsupported("owner")

    def resolver(self, domain: str) -> str:
        raise self._unsupported("resolver")

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        raise self._unsupported("records")

    def record(self, domain: str, key: str) -> str:
        values = self.records(domain, [key])
        return ensure_record_presence(domain, key, values.get(key))

    def all_records(self, domain: str) -> Dict[str, str]:
        raise self._unsupported("all_records")

    def resolve(self, domain: str) -> ResolutionResult:
        """Brief: Owner plus every record, with crypto addresses extracted."""
        records = self.all_records(domain)
        ttl = records.get("ttl") or "0"
        return ResolutionResult(
            addresses=extract_addresses(structure(records)),
            meta=ResolutionMeta(
                owner=self.owner(domain),
                type=self.name,
                ttl=int(ttl) if str(ttl).isdigit() else 0,
            ),
            records=records,
        )

    def is_registered(self, domain: str) -> bool:
        raise self._unsupported("is_registered")

    def is_available(self, domain: str) -> bool:
        return not self.is_registered(domain)

    def get_token_uri(self, domain: str) -> str:
        raise self._unsupported("get_token_uri")

    def get_domain_from_token_id(self, token_id: str) -> str:
        raise self._unsupported("get_domain_from_token_id")

    def registry_address(self, domain: str) -> str:
        raise self._unsupported("registry_address")

    def reverse_of(self, address: str, location: Optional[str] = None) -> Optional[str]:
        raise self._unsupported("reverse_of")

    def reverse_token_id(self, address: str, location: Optional[str] = None) -> Optional[str]:
        raise self._unsupported("reverse_token_id")

    def locations(self, domains: List[str]) -> Locations:
        raise self._unsupported("locations")
