"""Zilliqa naming service backend.

Brief:
  The registry contract keeps a `records` map keyed by the SHA-256 namehash
  whose value carries `arguments = [owner, resolver]`. Each resolver contract
  keeps its own `records` map holding the whole flat record set, so one
  substate read returns every record of a domain.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.sources import BackendConfig, resolve_zns
from ..errors import ResolutionError, ResolutionErrorCode
from ..hashing import HashAlgorithm
from ..records import extract_addresses, structure
from ..transports.jsonrpc import DEFAULT_TIMEOUT_MS
from ..types import NamingServiceName, ResolutionMeta, ResolutionResult, is_null_address
from ..utils.addresses import normalize_hex_address, normalize_zil_address
from .base import NamingService, ensure_record_presence, naming_service_down

logger = logging.getLogger(__name__)


class Zns(NamingService):
    """
    Brief: Backend reading the Zilliqa registry through GetSmartContractSubState.

    Inputs:
      - config: resolved BackendConfig (registry in bech32 form).
      - suffixes: optional override of accepted suffixes.

    Example use:
        >>> zns = Zns.from_source({"network": "mainnet"})
        >>> zns.namehash("zil")
        '0x9915d0456b878862e822e2361da37232f626a2e47505c8795134a95d36138ed3'
    """

    name = "ZNS"
    aliases = ("zilliqa",)
    service = NamingServiceName.ZNS
    hash_algorithm = HashAlgorithm.SHA_256

    def __init__(self, config: BackendConfig, suffixes: Optional[Sequence[str]] = None) -> None:
        super().__init__(suffixes)
        self.config = config
        self.transport = config.transport

    @classmethod
    def from_source(
        cls,
        raw: Any = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        suffixes: Optional[Sequence[str]] = None,
    ) -> "Zns":
        return cls(resolve_zns(raw, timeout_ms=timeout_ms), suffixes=suffixes)

    @property
    def network(self) -> str:
        return self.config.network

    def _fetch_substate(self, contract: str, field: str, keys: Sequence[str] = ()) -> Any:
        address = normalize_hex_address(contract)[2:]
        with naming_service_down(self.name):
            result = self.transport.request("GetSmartContractSubState", [address, field, list(keys)])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise ResolutionError(ResolutionErrorCode.NamingServiceDown, method=self.name)
        return result.get(field)

    def _registry_entry(self, domain: str) -> Optional[Tuple[str, str]]:
        """Brief: (owner in bech32, resolver as lowercase hex) or None when absent."""
        if not self.is_supported_domain(domain):
            return None
        node = self.namehash(domain)
        entries = self._fetch_substate(self.config.registry_address, "records", [node]) or {}
        entry = entries.get(node) if isinstance(entries, dict) else None
        if not entry:
            return None
        arguments = entry.get("arguments") if isinstance(entry, dict) else None
        if not isinstance(arguments, list) or len(arguments) < 2:
            raise ResolutionError(ResolutionErrorCode.NamingServiceDown, method=self.name)
        owner, resolver = str(arguments[0] or ""), str(arguments[1] or "")
        if owner.startswith("0x"):
            owner = normalize_zil_address(owner)
        if resolver and not is_null_address(resolver):
            resolver = normalize_hex_address(resolver)
        return owner, resolver

    def _resolver_records(self, resolver: str) -> Dict[str, str]:
        if is_null_address(resolver):
            return {}
        records = self._fetch_substate(resolver, "records") or {}
        return {str(k): str(v) for k, v in records.items()}

    def owner(self, domain: str) -> Optional[str]:
        entry = self._registry_entry(domain)
        return entry[0] if entry and entry[0] else None

    def resolver(self, domain: str) -> str:
        entry = self._registry_entry(domain)
        if not entry or not entry[0]:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        if is_null_address(entry[1]):
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return entry[1]

    def all_records(self, domain: str) -> Dict[str, str]:
        return self._resolver_records(self.resolver(domain))

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        flat = self.all_records(domain)
        return {key: flat.get(key, "") for key in keys}

    def record(self, domain: str, key: str) -> str:
        return ensure_record_presence(domain, key, self.all_records(domain).get(key))

    def resolve(self, domain: str) -> ResolutionResult:
        """
        Brief: Full resolution; unclaimed names give an empty result, not an error.

        Outputs:
          - ResolutionResult with owner in bech32 form and ttl from the `ttl` record.
        """
        entry = self._registry_entry(domain)
        if not entry:
            return ResolutionResult(addresses={}, meta=ResolutionMeta(owner=None, type=self.name))
        owner, resolver = entry
        records = self._resolver_records(resolver)
        ttl = records.get("ttl", "")
        return ResolutionResult(
            addresses=extract_addresses(structure(records)),
            meta=ResolutionMeta(
                owner=owner or None,
                type=self.name,
                ttl=int(ttl) if ttl.isdigit() else 0,
            ),
            records=records,
        )

    def is_registered(self, domain: str) -> bool:
        entry = self._registry_entry(domain)
        return bool(entry and entry[0])

    def registry_address(self, domain: str) -> str:
        return self.config.registry_address
