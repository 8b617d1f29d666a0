"""Normalization of user-supplied backend sources into BackendConfig objects.

Brief:
  Two stages:
    1. Raw mappings are validated into typed pydantic source models
       (UnsSource, ZnsSource, EnsSource, ApiSource).
    2. resolve_*() fills the gaps from the static network tables and produces
       frozen BackendConfig / ApiConfig values.

  Every failure is a ConfigurationError raised here, at construction time.

Inputs:
  - Mappings such as {"network": 137, "url": "https://..."} or {"api": True}.

Outputs:
  - BackendConfig (chain-backed) or ApiConfig (centralized API).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigurationError, ConfigurationErrorCode
from ..transports.jsonrpc import DEFAULT_TIMEOUT_MS, JsonRpcTransport, Transport, as_transport
from ..utils.addresses import (
    is_bech32_address,
    normalize_eth_address,
    normalize_zil_address,
)
from .networks import (
    DEFAULT_UDAPI_URL,
    DEFAULT_UNS_LAYER1_NETWORK,
    DEFAULT_UNS_LAYER2_NETWORK,
    ETHEREUM_NETWORKS,
    ZILLIQA_NETWORKS,
    NetworkDefaults,
    network_for_url,
    network_name_for_id,
)

logger = logging.getLogger(__name__)

NetworkInput = Union[str, int, None]


class ProviderSource(BaseModel):
    """Brief: Fields shared by every chain-backed source.

    Inputs:
      - url: JSON-RPC endpoint.
      - provider: injected transport (request/make_request).
      - network: network name or numeric id.
    """

    url: Optional[str] = None
    provider: Optional[Any] = None
    network: NetworkInput = None

    class Config:
        extra = "forbid"


class UnsLayerSource(ProviderSource):
    proxy_reader_address: Optional[str] = None


class UnsLocations(BaseModel):
    Layer1: UnsLayerSource = Field(default_factory=UnsLayerSource)
    Layer2: UnsLayerSource = Field(default_factory=UnsLayerSource)

    class Config:
        extra = "forbid"


class UnsSource(BaseModel):
    locations: UnsLocations = Field(default_factory=UnsLocations)

    class Config:
        extra = "forbid"


class ZnsSource(ProviderSource):
    registry_address: Optional[str] = None


class EnsSource(ProviderSource):
    registry_address: Optional[str] = None


class ApiSource(BaseModel):
    """Brief: Opt-out of direct chain access in favour of the HTTP API."""

    api: bool = True
    url: Optional[str] = None
    network: NetworkInput = None
    headers: Optional[dict] = None

    class Config:
        extra = "forbid"


@dataclass(frozen=True)
class BackendConfig:
    """Brief: Fully resolved configuration of one chain-backed backend (or UNS layer).

    Inputs (fields):
      - service: naming service label used in error context ("UNS", "ZNS", "ENS").
      - network: canonical network name.
      - network_id: numeric id when known.
      - url: endpoint URL; None when a provider was injected.
      - transport: Transport used for every request.
      - registry_address: registry (ZNS/ENS) or ProxyReader (UNS) address in
        canonical encoding.
      - blockchain: native currency ticker of the chain, when known.
    """

    service: str
    network: str
    network_id: Optional[int]
    url: Optional[str]
    transport: Transport
    registry_address: str
    blockchain: Optional[str] = None


@dataclass(frozen=True)
class ApiConfig:
    url: str
    network: Optional[str] = None
    headers: Optional[Tuple[Tuple[str, str], ...]] = None


M = TypeVar("M", bound=BaseModel)


def parse_source(raw: Any, model: Type[M], service: str) -> M:
    """
    Brief: Validate a raw source mapping into model.

    Inputs:
      - raw: mapping, model instance, or None (all defaults).
      - model: pydantic model class.
      - service: naming service label for error context.

    Outputs:
      - model instance.

    Raises:
      - ConfigurationError(InvalidConfigurationField) on validation failure.
    """
    if isinstance(raw, model):
        return raw
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            ConfigurationErrorCode.InvalidConfigurationField,
            method=service,
            field="source",
            detail=f"expected a mapping, got {type(raw).__name__}",
        )
    try:
        return model(**dict(raw))
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ())) or "source"
        raise ConfigurationError(
            ConfigurationErrorCode.InvalidConfigurationField,
            method=service,
            field=loc,
            detail=str(first.get("msg", e)),
        ) from e


def is_api_source(raw: Any) -> bool:
    if isinstance(raw, ApiSource):
        return bool(raw.api)
    return isinstance(raw, Mapping) and bool(raw.get("api"))


def _resolve_network(
    table: Mapping[str, NetworkDefaults],
    source: ProviderSource,
    default_network: str,
    service: str,
) -> Tuple[str, Optional[int], Optional[NetworkDefaults]]:
    if isinstance(source.network, str) and not source.network.strip():
        raise ConfigurationError(ConfigurationErrorCode.UnspecifiedNetwork, method=service)

    if source.network is not None:
        name = network_name_for_id(table, source.network)
        if name is None:
            # Unknown numeric id: a custom network identified only by its id.
            name = str(source.network)
    else:
        name = network_for_url(table, source.url) or default_network
        logger.debug("%s: network defaulted to %s", service, name)

    defaults = table.get(name)
    if defaults is not None:
        return name, defaults.network_id, defaults
    network_id = int(name) if name.isdigit() else None
    return name, network_id, None


def _resolve_transport(
    source: ProviderSource,
    defaults: Optional[NetworkDefaults],
    service: str,
    network: str,
    timeout_ms: int,
) -> Tuple[Optional[str], Transport]:
    if source.provider is not None:
        return source.url, as_transport(source.provider)
    url = source.url or (defaults.url if defaults else None)
    if not url:
        raise ConfigurationError(
            ConfigurationErrorCode.UnspecifiedUrl, method=service, network=network
        )
    if not source.url:
        logger.debug("%s: url defaulted to %s for %s", service, url, network)
    return url, JsonRpcTransport(url, timeout_ms=timeout_ms)


def _require_address(
    value: Optional[str],
    default: Optional[str],
    *,
    service: str,
    network: str,
    config_name: str,
    normalize,
) -> str:
    address = value or default
    if not address:
        raise ConfigurationError(
            ConfigurationErrorCode.CustomNetworkConfigMissing,
            method=service,
            network=network,
            config=config_name,
        )
    try:
        return normalize(address)
    except ValueError as e:
        raise ConfigurationError(
            ConfigurationErrorCode.InvalidConfigurationField,
            method=service,
            field=config_name,
            detail=str(e),
        ) from e


def resolve_uns_layer(
    raw: Any,
    *,
    layer: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> BackendConfig:
    """
    Brief: Resolve one UNS location (Layer1 or Layer2).

    Inputs:
      - raw: UnsLayerSource or mapping.
      - layer: "Layer1" or "Layer2"; selects the default network.
      - timeout_ms: per-request timeout for URL-based transports.

    Outputs:
      - BackendConfig whose registry_address is the layer's ProxyReader.

    Example:
      >>> cfg = resolve_uns_layer({}, layer="Layer2")
      >>> cfg.network, cfg.network_id
      ('polygon-mainnet', 137)
    """
    service = "UNS"
    source = parse_source(raw, UnsLayerSource, service)
    default_network = DEFAULT_UNS_LAYER1_NETWORK if layer == "Layer1" else DEFAULT_UNS_LAYER2_NETWORK
    network, network_id, defaults = _resolve_network(
        ETHEREUM_NETWORKS, source, default_network, service
    )
    url, transport = _resolve_transport(source, defaults, service, network, timeout_ms)
    proxy_reader = _require_address(
        source.proxy_reader_address,
        defaults.uns_proxy_reader if defaults else None,
        service=service,
        network=network,
        config_name="proxy_reader_address",
        normalize=normalize_eth_address,
    )
    return BackendConfig(
        service=service,
        network=network,
        network_id=network_id,
        url=url,
        transport=transport,
        registry_address=proxy_reader,
        blockchain=defaults.blockchain if defaults else None,
    )


def resolve_uns(raw: Any, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> Tuple[BackendConfig, BackendConfig]:
    """Brief: Resolve both UNS layers; returns (Layer1, Layer2)."""
    source = parse_source(raw, UnsSource, "UNS")
    return (
        resolve_uns_layer(source.locations.Layer1, layer="Layer1", timeout_ms=timeout_ms),
        resolve_uns_layer(source.locations.Layer2, layer="Layer2", timeout_ms=timeout_ms),
    )


def resolve_zns(raw: Any, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> BackendConfig:
    """
    Brief: Resolve the Zilliqa backend source.

    Notes:
      - A registry given as 0x hex is re-encoded as bech32.

    Example:
      >>> resolve_zns({"network": 333, "registry_address": "0xabcffff1231586348194fcabbeff1231240234fc"}).url
      'https://dev-api.zilliqa.com'
    """
    service = "ZNS"
    source = parse_source(raw, ZnsSource, service)
    network, network_id, defaults = _resolve_network(ZILLIQA_NETWORKS, source, "mainnet", service)
    url, transport = _resolve_transport(source, defaults, service, network, timeout_ms)
    registry = _require_address(
        source.registry_address,
        defaults.zns_registry if defaults else None,
        service=service,
        network=network,
        config_name="registry_address",
        normalize=normalize_zil_address,
    )
    return BackendConfig(
        service=service,
        network=network,
        network_id=network_id,
        url=url,
        transport=transport,
        registry_address=registry,
        blockchain=defaults.blockchain if defaults else "ZIL",
    )


def resolve_ens(raw: Any, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> BackendConfig:
    service = "ENS"
    source = parse_source(raw, EnsSource, service)
    network, network_id, defaults = _resolve_network(ETHEREUM_NETWORKS, source, "mainnet", service)
    url, transport = _resolve_transport(source, defaults, service, network, timeout_ms)

    def _normalize(address: str) -> str:
        if is_bech32_address(address):
            raise ValueError("ENS registry must be a hex address")
        return normalize_eth_address(address)

    registry = _require_address(
        source.registry_address,
        defaults.ens_registry if defaults else None,
        service=service,
        network=network,
        config_name="registry_address",
        normalize=_normalize,
    )
    return BackendConfig(
        service=service,
        network=network,
        network_id=network_id,
        url=url,
        transport=transport,
        registry_address=registry,
        blockchain=defaults.blockchain if defaults else None,
    )


def resolve_api(raw: Any) -> ApiConfig:
    source = parse_source(raw, ApiSource, "UDAPI")
    headers = tuple(sorted((str(k), str(v)) for k, v in (source.headers or {}).items()))
    return ApiConfig(
        url=(source.url or DEFAULT_UDAPI_URL).rstrip("/"),
        network=None if source.network is None else str(source.network),
        headers=headers or None,
    )
