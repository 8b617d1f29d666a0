"""Public entry point: domain routing with ordered fallback across backends.

Brief:
  Resolution owns one `used` backend per naming service (chain-backed or the
  HTTP API) plus one chain-backed `native` backend per service for hashing.
  A call for a domain:

    1. trims and lowercases the domain;
    2. routes its suffix to an ordered list of services (UnsupportedDomain if none);
    3. calls each service's backend in order, one at a time;
    4. falls through to the next backend only on UnregisteredDomain;
    5. raises UnregisteredDomain when every backend said so.

Example use:
    >>> from chainresolve import Resolution
    >>> resolution = Resolution()
    >>> resolution.namehash("brad.crypto", "UNS")
    '0x756e4e998dbffd803c21d23b06cd855cdc7a4b57706c95964a37e24b47c10fc9'
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar, Union

import requests

from .backends.base import NamingService, normalize_domain
from .backends.registry import get_backend_class
from .backends.udapi import UdApi
from .config.networks import INFURA_NETWORKS, infura_url
from .config.sources import ApiConfig, is_api_source, resolve_api
from .errors import (
    ConfigurationError,
    ConfigurationErrorCode,
    ResolutionError,
    ResolutionErrorCode,
    is_error_code,
)
from .hashing import format_namehash, to_hex_node
from .records import (
    crypto_address_key,
    dns_record_keys,
    extract_dns,
    multi_chain_address_key,
    non_empty,
)
from .routing import ServiceRouter
from .transports.jsonrpc import DEFAULT_TIMEOUT_MS
from .types import DnsRecord, DnsRecordType, Locations, NamingServiceName, ResolutionResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

SourceConfig = Mapping[str, Any]


class Resolution:
    """
    Brief: Multi-backend resolver for blockchain domain names.

    Inputs:
      - source_config: optional mapping keyed by backend alias ("uns", "zns",
        "ens", or any alias the backend registry knows). Each value is a source
        mapping, `{"api": True, "url": ...}` to use the HTTP API, or False to
        disable the service. Missing services use network defaults.
      - timeout_ms: per-request timeout for URL-based transports.
      - router: optional ServiceRouter with a custom zone table.

    Outputs:
      - Resolution instance. Construction never touches the network; all
        configuration problems raise ConfigurationError here.
    """

    def __init__(
        self,
        source_config: Optional[SourceConfig] = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        router: Optional[ServiceRouter] = None,
    ) -> None:
        self.timeout_ms = int(timeout_ms)
        sources = self._sources_by_service(source_config or {})
        enabled = [s for s in NamingServiceName if sources.get(s) is not False]
        self.router = (router or ServiceRouter()).restricted(enabled)

        self._natives: Dict[NamingServiceName, NamingService] = {}
        self._used: Dict[NamingServiceName, NamingService] = {}
        apis: Dict[ApiConfig, UdApi] = {}

        for service in enabled:
            raw = sources.get(service)
            backend_cls = get_backend_class(service.value)
            suffixes = self.router.suffixes_for(service)
            if is_api_source(raw):
                api_config = resolve_api(raw)
                if api_config not in apis:
                    apis[api_config] = UdApi(
                        api_config, suffixes=self.router.suffixes, timeout_ms=self.timeout_ms
                    )
                self._used[service] = apis[api_config]
                self._natives[service] = backend_cls.from_source(
                    None, timeout_ms=self.timeout_ms, suffixes=suffixes
                )
            else:
                native = backend_cls.from_source(raw, timeout_ms=self.timeout_ms, suffixes=suffixes)
                self._natives[service] = native
                self._used[service] = native
            logger.debug("%s served by %r", service.value, self._used[service])

    @staticmethod
    def _sources_by_service(source_config: SourceConfig) -> Dict[NamingServiceName, Any]:
        sources: Dict[NamingServiceName, Any] = {}
        for key, raw in source_config.items():
            try:
                backend_cls = get_backend_class(str(key))
            except (KeyError, ValueError, TypeError, ImportError) as e:
                raise ConfigurationError(
                    ConfigurationErrorCode.InvalidConfigurationField,
                    method="Resolution",
                    field=str(key),
                    detail=str(e),
                ) from e
            if backend_cls.service is None:
                raise ConfigurationError(
                    ConfigurationErrorCode.InvalidConfigurationField,
                    method="Resolution",
                    field=str(key),
                    detail=f"{backend_cls.__name__} is not a naming service; use {{api: true}} under a service key",
                )
            sources[backend_cls.service] = raw
        return sources

    # Constructors

    @classmethod
    def infura(
        cls,
        project_id: str,
        *,
        l1_network: str = "mainnet",
        l2_network: str = "polygon-mainnet",
        zns: Optional[Mapping[str, Any]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> "Resolution":
        """
        Brief: UNS layers and ENS through Infura endpoints for project_id.

        Raises:
          - ConfigurationError(UnsupportedNetwork) for networks Infura does not serve.
        """
        for network in (l1_network, l2_network):
            if network not in INFURA_NETWORKS:
                raise ConfigurationError(
                    ConfigurationErrorCode.UnsupportedNetwork, method="UNS", network=network
                )
        l1 = {"url": infura_url(project_id, l1_network), "network": l1_network}
        l2 = {"url": infura_url(project_id, l2_network), "network": l2_network}
        config: Dict[str, Any] = {
            "uns": {"locations": {"Layer1": l1, "Layer2": l2}},
            "ens": dict(l1),
        }
        if zns is not None:
            config["zns"] = zns
        return cls(config, timeout_ms=timeout_ms)

    @classmethod
    def from_ethereum_providers(
        cls,
        l1_provider: Any,
        l2_provider: Any,
        *,
        l1_network: Union[str, int] = "mainnet",
        l2_network: Union[str, int] = "polygon-mainnet",
    ) -> "Resolution":
        """Brief: UNS layers and ENS over injected request()/make_request() providers."""
        l1 = {"provider": l1_provider, "network": l1_network}
        l2 = {"provider": l2_provider, "network": l2_network}
        return cls({"uns": {"locations": {"Layer1": l1, "Layer2": l2}}, "ens": dict(l1)})

    @classmethod
    def from_zilliqa_provider(cls, provider: Any, network: Union[str, int] = "mainnet") -> "Resolution":
        return cls({"zns": {"provider": provider, "network": network}})

    @classmethod
    def from_resolution_providers(
        cls,
        *,
        uns: Optional[Mapping[str, Any]] = None,
        zns: Any = None,
        ens: Any = None,
    ) -> "Resolution":
        """
        Brief: Build from injected providers per service.

        Inputs:
          - uns: {"Layer1": provider, "Layer2": provider}
          - zns, ens: provider objects

        Raises:
          - ResolutionError(ServiceProviderError) when neither uns nor zns is given.
        """
        if uns is None and zns is None:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method_name="from_resolution_providers",
                provider_message="Must specify at least one of uns or zns providers",
            )
        config: Dict[str, Any] = {}
        if uns is not None:
            config["uns"] = {
                "locations": {
                    "Layer1": {"provider": uns.get("Layer1")},
                    "Layer2": {"provider": uns.get("Layer2")},
                }
            }
        if zns is not None:
            config["zns"] = {"provider": zns}
        if ens is not None:
            config["ens"] = {"provider": ens}
        return cls(config)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "Resolution":
        """
        Brief: Build from a parsed (YAML-shaped) configuration mapping.

        Inputs:
          - cfg: mapping with optional `sources`, `timeout_ms` and `zones`
            ({suffix: [service, ...]}) keys.
        """
        router = None
        zones = cfg.get("zones")
        if zones:
            router = ServiceRouter.from_mapping(zones)
        return cls(
            cfg.get("sources") or {},
            timeout_ms=int(cfg.get("timeout_ms") or DEFAULT_TIMEOUT_MS),
            router=router,
        )

    # Dispatch

    def _services_for(self, domain: str) -> List[NamingService]:
        backends: List[NamingService] = []
        for service in self.router.route(domain):
            backend = self._used.get(service)
            if backend is not None and all(backend is not b for b in backends):
                backends.append(backend)
        if not backends or not backends[0].is_supported_domain(domain):
            raise ResolutionError(ResolutionErrorCode.UnsupportedDomain, domain=domain)
        return backends

    def call_for_domain(self, domain: str, call: Callable[[NamingService], T]) -> T:
        """
        Brief: Sequential ordered fallback over the backends routed for domain.

        Inputs:
          - domain: already-normalized domain.
          - call: function invoked with each backend in priority order.

        Outputs:
          - the first non-error result.

        Raises:
          - UnsupportedDomain when no backend owns the suffix.
          - UnregisteredDomain when every backend reports it.
          - any other ResolutionError immediately, without trying later backends.
        """
        backends = self._services_for(domain)
        for i, backend in enumerate(backends, start=1):
            logger.debug("%s: attempt %d/%d via %s", domain, i, len(backends), backend.name)
            try:
                return call(backend)
            except ResolutionError as e:
                if not is_error_code(e, ResolutionErrorCode.UnregisteredDomain):
                    logger.debug("%s: %s failed with %s", domain, backend.name, e.code.value)
                    raise
                logger.debug("%s: not registered on %s, falling back", domain, backend.name)
        logger.debug("%s: unregistered on every backend", domain)
        raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)

    def call_for_domain_boolean(
        self,
        domain: str,
        call: Callable[[NamingService], bool],
        throw_if_unsupported_domain: bool = True,
    ) -> bool:
        """Brief: Like call_for_domain() but short-circuits on the first True."""
        try:
            backends = self._services_for(domain)
        except ResolutionError as e:
            if not throw_if_unsupported_domain and is_error_code(
                e, ResolutionErrorCode.UnsupportedDomain
            ):
                return False
            raise
        for backend in backends:
            try:
                if call(backend):
                    return True
            except ResolutionError as e:
                if not is_error_code(e, ResolutionErrorCode.UnregisteredDomain):
                    raise
        return False

    @staticmethod
    def _service_name(naming_service: Union[str, NamingServiceName]) -> NamingServiceName:
        text = str(getattr(naming_service, "value", naming_service)).strip().upper()
        try:
            return NamingServiceName(text)
        except ValueError:
            raise ResolutionError(
                ResolutionErrorCode.UnsupportedService, naming_service=str(naming_service)
            ) from None

    def _native(self, naming_service: Union[str, NamingServiceName]) -> NamingService:
        service = self._service_name(naming_service)
        if service not in self._natives:
            raise ResolutionError(ResolutionErrorCode.UnsupportedService, naming_service=service.value)
        return self._natives[service]

    # Records

    def addr(self, domain: str, ticker: str) -> str:
        """
        Brief: Address of `ticker` attached to domain.

        Raises:
          - UnspecifiedCurrency when the domain has no such address record.
        """
        return self._currency_record(domain, crypto_address_key(ticker), ticker)

    def multi_chain_addr(self, domain: str, ticker: str, chain: str) -> str:
        return self._currency_record(domain, multi_chain_address_key(ticker, chain), ticker)

    def _currency_record(self, domain: str, key: str, ticker: str) -> str:
        domain = normalize_domain(domain)
        try:
            return self.call_for_domain(domain, lambda s: s.record(domain, key))
        except ResolutionError as e:
            if is_error_code(e, ResolutionErrorCode.RecordNotFound):
                raise ResolutionError(
                    ResolutionErrorCode.UnspecifiedCurrency,
                    domain=domain,
                    currency_ticker=ticker,
                ) from e
            raise

    def email(self, domain: str) -> str:
        return self.record(domain, "whois.email.value")

    def chat_id(self, domain: str) -> str:
        return self.record(domain, "gundb.username.value")

    def chat_pk(self, domain: str) -> str:
        return self.record(domain, "gundb.public_key.value")

    def ipfs_hash(self, domain: str) -> str:
        return self._preferable_new_record(domain, "dweb.ipfs.hash", "ipfs.html.value")

    def http_url(self, domain: str) -> str:
        return self._preferable_new_record(domain, "browser.redirect_url", "ipfs.redirect_domain.value")

    def _preferable_new_record(self, domain: str, new_key: str, old_key: str) -> str:
        domain = normalize_domain(domain)
        values = self.records(domain, [new_key, old_key])
        value = values.get(new_key) or values.get(old_key)
        if not value:
            raise ResolutionError(ResolutionErrorCode.RecordNotFound, domain=domain, record_name=new_key)
        return value

    def resolver(self, domain: str) -> str:
        domain = normalize_domain(domain)
        resolver = self.call_for_domain(domain, lambda s: s.resolver(domain))
        if not resolver:
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return resolver

    def owner(self, domain: str) -> Optional[str]:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.owner(domain))

    def record(self, domain: str, key: str) -> str:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.record(domain, key))

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        domain = normalize_domain(domain)
        keys = list(keys)
        return self.call_for_domain(domain, lambda s: s.records(domain, keys))

    def all_records(self, domain: str) -> Dict[str, str]:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.all_records(domain))

    def all_non_empty_records(self, domain: str) -> Dict[str, str]:
        return non_empty(self.all_records(domain))

    def resolve(self, domain: str) -> ResolutionResult:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.resolve(domain))

    def dns(self, domain: str, types: Sequence[Union[str, DnsRecordType]]) -> List[DnsRecord]:
        """
        Brief: DNS records of the requested types.

        Raises:
          - ValueError for a type outside DnsRecordType, before any lookup.

        Example result:
          [DnsRecord(type=DnsRecordType.A, TTL=300, data='10.0.0.1')]
        """
        wanted = []
        for t in types:
            text = str(getattr(t, "value", t)).strip().upper()
            try:
                wanted.append(DnsRecordType(text))
            except ValueError:
                raise ValueError(f"Unsupported DNS record type: {t!r}") from None
        records = self.records(domain, dns_record_keys(wanted))
        return extract_dns(records, wanted)

    # Registration

    def is_registered(self, domain: str) -> bool:
        domain = normalize_domain(domain)
        return self.call_for_domain_boolean(domain, lambda s: s.is_registered(domain))

    def is_available(self, domain: str) -> bool:
        domain = normalize_domain(domain)
        return self.call_for_domain_boolean(domain, lambda s: s.is_available(domain))

    def is_supported_domain(self, domain: str) -> bool:
        domain = normalize_domain(domain)
        return self.call_for_domain_boolean(
            domain, lambda s: s.is_supported_domain(domain), throw_if_unsupported_domain=False
        )

    def service_name(self, domain: str) -> str:
        """Brief: Name of the first backend consulted for domain."""
        return self._services_for(normalize_domain(domain))[0].name

    # Hashing

    def namehash(
        self,
        domain: str,
        naming_service: Union[str, NamingServiceName],
        prefix: bool = True,
        fmt: str = "hex",
    ) -> str:
        node = self._native(naming_service).namehash(normalize_domain(domain))
        return format_namehash(node, prefix=prefix, fmt=fmt)

    def childhash(
        self,
        parent: str,
        label: str,
        naming_service: Union[str, NamingServiceName],
        prefix: bool = True,
        fmt: str = "hex",
    ) -> str:
        node = self._native(naming_service).childhash(to_hex_node(parent), label.strip().lower())
        return format_namehash(node, prefix=prefix, fmt=fmt)

    def is_valid_hash(self, domain: str, hash: str, naming_service: Union[str, NamingServiceName]) -> bool:
        return self.namehash(domain, naming_service) == to_hex_node(hash)

    def unhash(self, hash: str, naming_service: Union[str, NamingServiceName]) -> str:
        """
        Brief: Domain name for a token id, via the backend used for naming_service.

        Inputs:
          - hash: token id / node hash as 0x hex or decimal.
        """
        return self._used_backend(naming_service).get_domain_from_token_id(to_hex_node(hash))

    # Token metadata

    def token_uri(self, domain: str) -> str:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.get_token_uri(domain))

    def token_uri_metadata(self, domain: str) -> Dict[str, Any]:
        """
        Brief: Fetch and decode the JSON document behind token_uri(domain).

        Raises:
          - ServiceProviderError when the metadata endpoint fails or answers non-2xx.
        """
        uri = self.token_uri(domain)
        try:
            resp = requests.get(uri, timeout=self.timeout_ms / 1000.0)
        except requests.RequestException as e:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method_name="token_uri_metadata",
                provider_message=str(e),
            ) from e
        if not 200 <= resp.status_code < 300:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method_name="token_uri_metadata",
                provider_message=resp.text,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method_name="token_uri_metadata",
                provider_message="metadata is not JSON",
            ) from e

    def registry_address(self, domain: str) -> str:
        domain = normalize_domain(domain)
        return self.call_for_domain(domain, lambda s: s.registry_address(domain))

    # Reverse and locations

    def _used_backend(self, naming_service: Union[str, NamingServiceName]) -> NamingService:
        service = self._service_name(naming_service)
        backend = self._used.get(service)
        if backend is None:
            raise ResolutionError(ResolutionErrorCode.UnsupportedService, naming_service=service.value)
        return backend

    def reverse(
        self,
        address: str,
        location: Optional[str] = None,
        naming_service: Union[str, NamingServiceName] = NamingServiceName.UNS,
    ) -> Optional[str]:
        """
        Brief: Primary domain of address on naming_service, or None.

        Inputs:
          - location: UNS layer ("L1" / "L2"); ignored by ENS.
          - naming_service: "UNS" (default) or "ENS"; ZNS raises UnsupportedMethod.
        """
        return self._used_backend(naming_service).reverse_of(address, location)

    def reverse_token_id(
        self,
        address: str,
        location: Optional[str] = None,
        naming_service: Union[str, NamingServiceName] = NamingServiceName.UNS,
    ) -> Optional[str]:
        return self._used_backend(naming_service).reverse_token_id(address, location)

    def locations(self, domains: Sequence[str]) -> Locations:
        """
        Brief: Where each domain lives on chain, grouped per primary backend.

        Outputs:
          - {domain: Location or None when the domain is not minted}
        """
        groups: Dict[int, List[str]] = {}
        owners: Dict[int, NamingService] = {}
        for raw in domains:
            domain = normalize_domain(raw)
            backend = self._services_for(domain)[0]
            groups.setdefault(id(backend), []).append(domain)
            owners[id(backend)] = backend
        result: Locations = {}
        for key, group in groups.items():
            result.update(owners[key].locations(group))
        return result
