from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Sequence, Tuple

from eth_utils import to_checksum_address

from ..config.sources import BackendConfig, resolve_ens
from ..contracts import Contract
from ..contracts.abi import ENS_REGISTRY_ABI, ENS_RESOLVER_ABI
from ..errors import ResolutionError, ResolutionErrorCode
from ..hashing import HashAlgorithm, namehash
from ..transports.jsonrpc import DEFAULT_TIMEOUT_MS
from ..types import NamingServiceName, ResolutionMeta, ResolutionResult, is_null_address
from ..utils.addresses import normalize_eth_address
from ..utils.concurrency import gather_or_raise
from .base import NamingService, ensure_record_presence, naming_service_down

logger = logging.getLogger(__name__)

ETH_COIN_TYPE = 60

# SLIP-44 coin types accepted by addr(node, coinType).
COIN_TYPES: Dict[str, int] = {
    "BTC": 0,
    "LTC": 2,
    "DOGE": 3,
    "DASH": 5,
    "ETH": ETH_COIN_TYPE,
    "ETC": 61,
    "ATOM": 118,
    "ZEC": 133,
    "RSK": 137,
    "XRP": 144,
    "BCH": 145,
    "XLM": 148,
    "EOS": 194,
    "TRX": 195,
    "ALGO": 283,
    "ZIL": 313,
    "DOT": 354,
    "SOL": 501,
    "BNB": 714,
    "VET": 818,
    "NEO": 888,
    "MATIC": 966,
    "ONT": 1024,
    "XTZ": 1729,
    "ADA": 1815,
}

# Coins whose addresses are 20-byte EVM accounts.
_EVM_COIN_TYPES = frozenset((ETH_COIN_TYPE, 61, 137, 966))

_CRYPTO_ADDRESS_KEY = re.compile(r"^crypto\.([A-Za-z0-9]+)\.address$")


def coin_type_for(ticker: str) -> int:
    """
    Brief: SLIP-44 coin type of a ticker.

    Raises:
      - ResolutionError(UnsupportedCurrency) for unknown tickers.

    Example:
      >>> coin_type_for("btc")
      0
    """
    try:
        return COIN_TYPES[ticker.upper()]
    except KeyError:
        raise ResolutionError(ResolutionErrorCode.UnsupportedCurrency, currency_ticker=ticker) from None


class Ens(NamingService):
    """
    Brief: Registry + resolver backend for Ethereum Name Service zones.

    Inputs:
      - config: resolved BackendConfig whose registry_address is the ENS registry.
      - suffixes: optional override of accepted suffixes.

    Notes:
      - `crypto.<TICKER>.address` keys are served by addr(); any other key is
        read through text(node, key).
    """

    name = "ENS"
    aliases = ("ethereum_name_service",)
    service = NamingServiceName.ENS
    hash_algorithm = HashAlgorithm.KECCAK_256

    def __init__(self, config: BackendConfig, suffixes: Optional[Sequence[str]] = None) -> None:
        super().__init__(suffixes)
        self.config = config
        self.registry = Contract(ENS_REGISTRY_ABI, config.registry_address, config.transport)

    @classmethod
    def from_source(
        cls,
        raw: Any = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        suffixes: Optional[Sequence[str]] = None,
    ) -> "Ens":
        return cls(resolve_ens(raw, timeout_ms=timeout_ms), suffixes=suffixes)

    def _read(self, contract: Contract, method: str, args: Sequence[Any]) -> Any:
        with naming_service_down(self.name):
            result = contract.call(method, args)
        return result[0] if result else None

    def _resolver_contract(self, resolver: str) -> Contract:
        return Contract(ENS_RESOLVER_ABI, resolver, self.config.transport)

    def _node(self, domain: str) -> bytes:
        return bytes.fromhex(self.namehash(domain)[2:])

    def _resolution_info(self, domain: str) -> Tuple[Optional[str], int, Optional[str]]:
        """Brief: (owner, ttl, resolver) read concurrently; null addresses become None."""
        node = self._node(domain)
        owner, ttl, resolver = gather_or_raise(
            [
                lambda: self._read(self.registry, "owner", [node]),
                lambda: self._read(self.registry, "ttl", [node]),
                lambda: self._read(self.registry, "resolver", [node]),
            ]
        )
        return (
            None if is_null_address(owner) else owner,
            int(ttl or 0),
            None if is_null_address(resolver) else resolver,
        )

    def owner(self, domain: str) -> Optional[str]:
        owner = self._read(self.registry, "owner", [self._node(domain)])
        return None if is_null_address(owner) else owner

    def resolver(self, domain: str) -> str:
        owner, _, resolver = self._resolution_info(domain)
        if owner is None:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        if resolver is None:
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return resolver

    def _record_value(self, domain: str, resolver: str, key: str) -> str:
        contract = self._resolver_contract(resolver)
        node = self._node(domain)
        match = _CRYPTO_ADDRESS_KEY.match(key)
        if match is None:
            return str(self._read(contract, "text", [node, key]) or "")
        coin_type = coin_type_for(match.group(1))
        if coin_type == ETH_COIN_TYPE:
            address = self._read(contract, "addr", [node])
            return "" if is_null_address(address) else to_checksum_address(address)
        raw = self._read(contract, "addrForCoinType", [node, coin_type]) or b""
        if not raw:
            return ""
        if coin_type in _EVM_COIN_TYPES and len(raw) == 20:
            return to_checksum_address(raw)
        return "0x" + bytes(raw).hex()

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        resolver = self.resolver(domain)
        keys = list(keys)
        values = gather_or_raise([lambda k=k: self._record_value(domain, resolver, k) for k in keys])
        return dict(zip(keys, values))

    def record(self, domain: str, key: str) -> str:
        return ensure_record_presence(domain, key, self.records(domain, [key]).get(key))

    def resolve(self, domain: str) -> ResolutionResult:
        """Brief: Owner, ttl and the ETH address; no record enumeration exists on ENS."""
        owner, ttl, resolver = self._resolution_info(domain)
        addresses: Dict[str, str] = {}
        if resolver is not None:
            eth = self._record_value(domain, resolver, "crypto.ETH.address")
            if eth:
                addresses["ETH"] = eth
        return ResolutionResult(
            addresses=addresses,
            meta=ResolutionMeta(owner=owner, type=self.name, ttl=ttl),
        )

    def is_registered(self, domain: str) -> bool:
        return self.owner(domain) is not None

    def registry_address(self, domain: str) -> str:
        return self.config.registry_address

    def reverse_of(self, address: str, location: Optional[str] = None) -> Optional[str]:
        """
        Brief: Primary name of address read from `<addr>.addr.reverse`.

        Outputs:
          - domain name, or None when no reverse resolver/name is set.
        """
        hex_address = normalize_eth_address(address).lower()[2:]
        node = bytes.fromhex(namehash(f"{hex_address}.addr.reverse", HashAlgorithm.KECCAK_256)[2:])
        resolver = self._read(self.registry, "resolver", [node])
        if is_null_address(resolver):
            return None
        name = self._read(self._resolver_contract(resolver), "name", [node])
        return str(name) if name else None
