"""Unstoppable naming service backend spanning two chain layers.

Brief:
  Each layer (Ethereum as Layer1, Polygon as Layer2) exposes a ProxyReader
  contract that answers `getData(keys, tokenId) -> (resolver, owner, values)`
  in one call. Uns queries both layers concurrently and applies one rule:

    - a Layer2 error other than UnregisteredDomain propagates;
    - a Layer2 answer with a non-null owner wins;
    - otherwise the Layer1 answer (or its error) is returned.

  The token id of a domain is its Keccak namehash.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from eth_utils import to_checksum_address

from ..config.sources import BackendConfig, resolve_uns
from ..contracts import RECORDS_EVENTS_STARTING_BLOCK, Contract
from ..contracts.abi import PROXY_READER_ABI, UNS_REGISTRY_ABI
from ..errors import ResolutionError, ResolutionErrorCode, is_error_code
from ..hashing import HashAlgorithm, namehash, to_hex_node
from ..transports.jsonrpc import DEFAULT_TIMEOUT_MS, JsonRpcError
from ..types import DomainData, Location, Locations, NamingServiceName, UnsLocation, is_null_address
from ..utils.addresses import normalize_eth_address
from ..utils.concurrency import Outcome, gather
from .base import NamingService, ensure_record_presence, naming_service_down

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _token_int(token_id: str) -> int:
    return int(to_hex_node(token_id), 16)


def _checksum(address: Any) -> str:
    text = str(address or "")
    if not text or is_null_address(text):
        return text
    return to_checksum_address(text)


class UnsLayer:
    """
    Brief: One UNS deployment bound to its ProxyReader contract.

    Inputs:
      - config: resolved BackendConfig whose registry_address is the ProxyReader.
      - location: UnsLocation the layer serves.
      - events_from_block: first block scanned for registry events.
    """

    name = "UNS"

    def __init__(
        self,
        config: BackendConfig,
        location: UnsLocation,
        events_from_block: str = RECORDS_EVENTS_STARTING_BLOCK,
    ) -> None:
        self.config = config
        self.location = location
        self.events_from_block = events_from_block
        self.reader = Contract(PROXY_READER_ABI, config.registry_address, config.transport)

    def __repr__(self) -> str:
        return f"<UnsLayer {self.location.value} {self.config.network}>"

    def _call(self, method: str, args: Sequence[Any]) -> Tuple[Any, ...]:
        with naming_service_down(self.name):
            return self.reader.call(method, args)

    def get(self, token_id: str, keys: Sequence[str] = ()) -> DomainData:
        """
        Brief: One batched getData read.

        Outputs:
          - DomainData with checksum owner/resolver (null address when unset)
            and records zipped to the requested keys.
        """
        keys = list(keys)
        result = self._call("getData", [keys, _token_int(token_id)])
        if not result:
            return DomainData(owner="", resolver="", records={k: "" for k in keys}, location=self.location)
        resolver, owner, values = result
        return DomainData(
            owner=_checksum(owner),
            resolver=_checksum(resolver),
            records={k: str(v or "") for k, v in zip(keys, values)},
            location=self.location,
        )

    def get_verified_data(self, domain: str, keys: Sequence[str] = ()) -> DomainData:
        data = self.get(namehash(domain, HashAlgorithm.KECCAK_256), keys)
        if is_null_address(data.resolver):
            if is_null_address(data.owner):
                raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return data

    def registry_of(self, token_id: str) -> Optional[str]:
        result = self._call("registryOf", [_token_int(token_id)])
        registry = _checksum(result[0]) if result else ""
        return None if is_null_address(registry) else registry

    def token_uri(self, domain: str) -> str:
        token_id = namehash(domain, HashAlgorithm.KECCAK_256)
        try:
            with naming_service_down(self.name):
                result = self.reader.call("tokenURI", [_token_int(token_id)])
        except ResolutionError as e:
            cause = e.__cause__
            if isinstance(cause, JsonRpcError) and cause.is_revert:
                raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain) from cause
            raise
        uri = str(result[0]) if result else ""
        if not uri:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return uri

    def reverse_token_id(self, address: str) -> Optional[str]:
        result = self._call("reverseOf", [normalize_eth_address(address).lower()])
        token = int(result[0]) if result else 0
        return to_hex_node(str(token)) if token else None

    def domain_from_token_id(self, token_id: str) -> str:
        """
        Brief: Read the last NewURI event of the token's registry and verify it.

        Raises:
          - UnregisteredDomain when no registry or no NewURI event is known.
          - ServiceProviderError when the event's name does not hash to token_id.
        """
        node = to_hex_node(token_id)
        registry = self.registry_of(node)
        if registry is None:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, method=self.name)
        with naming_service_down(self.name):
            logs = Contract(UNS_REGISTRY_ABI, registry, self.config.transport).fetch_logs(
                "NewURI", node, from_block=self.events_from_block
            )
        if not logs:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, method=self.name)
        domain = str(logs[-1].args[0])
        if namehash(domain, HashAlgorithm.KECCAK_256) != node:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method=self.name,
                provider_message=f"Event name {domain!r} does not hash to token {node}",
            )
        return domain

    def record_keys(self, domain: str, resolver: str) -> List[str]:
        """Brief: Keys written by NewKey events since the last ResetRecords."""
        node = namehash(domain, HashAlgorithm.KECCAK_256)
        contract = Contract(UNS_REGISTRY_ABI, resolver, self.config.transport)
        with naming_service_down(self.name):
            from_block = contract.starting_block(node, default=self.events_from_block)
            logs = contract.fetch_logs("NewKey", node, from_block=from_block)
        keys: List[str] = []
        for log in logs:
            key = str(log.args[0]) if log.args else ""
            if key and key not in keys:
                keys.append(key)
        return keys

    def location_of(self, domain: str) -> Optional[Location]:
        token_id = namehash(domain, HashAlgorithm.KECCAK_256)
        data_out, registry_out = gather(
            [lambda: self.get(token_id), lambda: self.registry_of(token_id)]
        )
        data = data_out.unwrap()
        if is_null_address(data.owner):
            return None
        return Location(
            registry_address=registry_out.unwrap(),
            resolver_address=None if is_null_address(data.resolver) else data.resolver,
            network_id=self.config.network_id,
            blockchain=self.config.blockchain,
            owner_address=data.owner,
            blockchain_provider_url=self.config.url,
        )


class Uns(NamingService):
    """
    Brief: Two-layer UNS backend exposed to the orchestrator as one service.

    Inputs:
      - layer1, layer2: BackendConfig for each location.
      - suffixes: optional override of accepted suffixes.

    Example use:
        >>> uns = Uns.from_source()
        >>> uns.namehash("crypto")
        '0x0f4a10a4f46c288cea365fcf45cccf0e9d901b945b9829ccdb54c10dc3cb7a6f'
    """

    name = "UNS"
    aliases = ("unstoppable", "cns")
    service = NamingServiceName.UNS
    hash_algorithm = HashAlgorithm.KECCAK_256

    def __init__(
        self,
        layer1: BackendConfig,
        layer2: BackendConfig,
        suffixes: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(suffixes)
        self.layer1 = UnsLayer(layer1, UnsLocation.Layer1)
        self.layer2 = UnsLayer(layer2, UnsLocation.Layer2, events_from_block="earliest")

    @classmethod
    def from_source(
        cls,
        raw: Any = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        suffixes: Optional[Sequence[str]] = None,
    ) -> "Uns":
        layer1, layer2 = resolve_uns(raw, timeout_ms=timeout_ms)
        return cls(layer1, layer2, suffixes=suffixes)

    def _layered(self, read: Callable[[UnsLayer], T], found: Callable[[T], bool]) -> T:
        l1, l2 = gather([lambda: read(self.layer1), lambda: read(self.layer2)])
        return self._pick(l1, l2, found)

    @staticmethod
    def _pick(l1: Outcome, l2: Outcome, found: Callable[[Any], bool]) -> Any:
        if l2.error is not None:
            if not is_error_code(l2.error, ResolutionErrorCode.UnregisteredDomain):
                raise l2.error
        elif found(l2.result):
            logger.debug("UNS answer taken from Layer2")
            return l2.result
        return l1.unwrap()

    def _data(self, domain: str, keys: Sequence[str] = ()) -> DomainData:
        token_id = self.namehash(domain)
        return self._layered(
            lambda layer: layer.get(token_id, keys),
            lambda data: not is_null_address(data.owner),
        )

    def _verified_data(self, domain: str, keys: Sequence[str] = ()) -> DomainData:
        data = self._data(domain, keys)
        if is_null_address(data.resolver):
            if is_null_address(data.owner):
                raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return data

    def _layer(self, location: Optional[str]) -> Optional[UnsLayer]:
        if location is None:
            return None
        wanted = str(location)
        for layer in (self.layer1, self.layer2):
            if wanted in (layer.location.value, layer.location.name):
                return layer
        raise ResolutionError(
            ResolutionErrorCode.UnsupportedMethod,
            method=self.name,
            method_name=f"location {wanted}",
        )

    def owner(self, domain: str) -> Optional[str]:
        data = self._data(domain)
        if is_null_address(data.owner):
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return data.owner

    def resolver(self, domain: str) -> str:
        return self._verified_data(domain).resolver

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        return self._verified_data(domain, keys).records

    def record(self, domain: str, key: str) -> str:
        return ensure_record_presence(domain, key, self.records(domain, [key]).get(key))

    def all_records(self, domain: str) -> Dict[str, str]:
        data = self._verified_data(domain)
        layer = self.layer2 if data.location == UnsLocation.Layer2 else self.layer1
        keys = layer.record_keys(domain, data.resolver)
        logger.debug("UNS %s: %d record keys on %s", domain, len(keys), layer)
        return layer.get_verified_data(domain, keys).records

    def is_registered(self, domain: str) -> bool:
        return not is_null_address(self._data(domain).owner)

    def get_token_uri(self, domain: str) -> str:
        return self._layered(lambda layer: layer.token_uri(domain), bool)

    def get_domain_from_token_id(self, token_id: str) -> str:
        return self._layered(lambda layer: layer.domain_from_token_id(token_id), bool)

    def registry_address(self, domain: str) -> str:
        token_id = self.namehash(domain)
        registry = self._layered(lambda layer: layer.registry_of(token_id), bool)
        if registry is None:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return registry

    def reverse_token_id(self, address: str, location: Optional[str] = None) -> Optional[str]:
        """
        Brief: Token id of the reverse record for address.

        Inputs:
          - location: "L1"/"Layer1" or "L2"/"Layer2" to read one layer only;
            by default Layer1 is consulted first, then Layer2.
        """
        layer = self._layer(location)
        if layer is not None:
            return layer.reverse_token_id(address)
        return self.layer1.reverse_token_id(address) or self.layer2.reverse_token_id(address)

    def reverse_of(self, address: str, location: Optional[str] = None) -> Optional[str]:
        token_id = self.reverse_token_id(address, location)
        if token_id is None:
            return None
        return self.get_domain_from_token_id(token_id)

    def locations(self, domains: List[str]) -> Locations:
        def _locate(domain: str) -> Optional[Location]:
            return self._layered(lambda layer: layer.location_of(domain), bool)

        outcomes = gather([lambda d=d: _locate(d) for d in domains])
        return {d: o.unwrap() for d, o in zip(domains, outcomes)}
