"""Centralized HTTP API backend.

Brief:
  Mirrors the chain-level answers through `GET <url>/<domain>`, which returns

    {"meta": {"owner": ..., "resolver": ..., "registry": ..., "ttl": ...},
     "records": {"crypto.ETH.address": ...}}

  It has no hashing of its own; Resolution keeps a chain-backed backend next
  to it for namehash/childhash.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..config.sources import ApiConfig, resolve_api
from ..errors import ResolutionError, ResolutionErrorCode
from ..records import extract_addresses, structure
from ..routing import ServiceRouter
from ..transports.jsonrpc import CHAINRESOLVE_VERSION, DEFAULT_TIMEOUT_MS
from ..types import NamingServiceName, ResolutionMeta, ResolutionResult, UdApiName, is_null_address
from .base import NamingService, ensure_record_presence

logger = logging.getLogger(__name__)


class UdApi(NamingService):
    """
    Brief: Backend answering every read with one HTTP GET.

    Inputs:
      - config: ApiConfig (base url and optional extra headers).
      - suffixes: accepted suffixes; defaults to every routed suffix.
      - timeout_ms: per-request timeout.

    Example use:
        >>> api = UdApi.from_source({"api": True})
        >>> api.url
        'https://unstoppabledomains.com/api/v1'
    """

    name = UdApiName.UDAPI.value
    aliases = ("api", "unstoppable_api")

    def __init__(
        self,
        config: ApiConfig,
        suffixes: Optional[Sequence[str]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        if suffixes is None:
            router = ServiceRouter()
            suffixes = router.suffixes_for(NamingServiceName.UNS) + router.suffixes_for(
                NamingServiceName.ZNS
            )
        super().__init__(suffixes)
        self.config = config
        self.timeout_ms = int(timeout_ms)
        self.headers = {"User-Agent": f"chainresolve v{CHAINRESOLVE_VERSION}"}
        self.headers.update(dict(config.headers or ()))

    @classmethod
    def from_source(
        cls,
        raw: Any = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        suffixes: Optional[Sequence[str]] = None,
    ) -> "UdApi":
        return cls(resolve_api(raw), suffixes=suffixes, timeout_ms=timeout_ms)

    @property
    def url(self) -> str:
        return self.config.url

    def _get(self, url: str) -> Dict[str, Any]:
        """
        Brief: GET url and decode its JSON object body.

        Raises:
          - NamingServiceDown when the request itself fails or the body is not JSON.
          - ServiceProviderError for non-2xx answers (body as provider_message).
        """
        logger.debug("UDAPI GET %s", url)
        try:
            resp = requests.get(url, headers=self.headers, timeout=self.timeout_ms / 1000.0)
        except requests.RequestException as e:
            logger.debug("UDAPI request failed: %s", e)
            raise ResolutionError(ResolutionErrorCode.NamingServiceDown, method=self.name) from e
        if not 200 <= resp.status_code < 300:
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method=self.name,
                provider_message=resp.text,
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise ResolutionError(ResolutionErrorCode.NamingServiceDown, method=self.name) from e
        if not isinstance(body, dict):
            raise ResolutionError(
                ResolutionErrorCode.ServiceProviderError,
                method=self.name,
                provider_message="response is not a JSON object",
            )
        return body

    def _resolve(self, domain: str) -> Dict[str, Any]:
        body = self._get(f"{self.url}/{domain}")
        meta = body.get("meta") if isinstance(body.get("meta"), dict) else {}
        records = body.get("records") if isinstance(body.get("records"), dict) else {}
        return {"meta": meta, "records": {str(k): str(v) for k, v in records.items()}}

    def _registered(self, domain: str) -> Dict[str, Any]:
        data = self._resolve(domain)
        if is_null_address(data["meta"].get("owner")):
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return data

    def owner(self, domain: str) -> Optional[str]:
        owner = self._resolve(domain)["meta"].get("owner")
        return None if is_null_address(owner) else owner

    def resolver(self, domain: str) -> str:
        resolver = self._registered(domain)["meta"].get("resolver")
        if is_null_address(resolver):
            raise ResolutionError(ResolutionErrorCode.UnspecifiedResolver, domain=domain)
        return resolver

    def all_records(self, domain: str) -> Dict[str, str]:
        return self._registered(domain)["records"]

    def records(self, domain: str, keys: Sequence[str]) -> Dict[str, str]:
        flat = self.all_records(domain)
        return {key: flat.get(key, "") for key in keys}

    def record(self, domain: str, key: str) -> str:
        return ensure_record_presence(domain, key, self.all_records(domain).get(key))

    def resolve(self, domain: str) -> ResolutionResult:
        data = self._resolve(domain)
        meta = data["meta"]
        owner = meta.get("owner")
        try:
            ttl = int(meta.get("ttl") or 0)
        except (TypeError, ValueError):
            ttl = 0
        return ResolutionResult(
            addresses=extract_addresses(structure(data["records"])),
            meta=ResolutionMeta(
                owner=None if is_null_address(owner) else owner,
                type=self.name,
                ttl=ttl,
            ),
            records=data["records"],
        )

    def is_registered(self, domain: str) -> bool:
        return not is_null_address(self._resolve(domain)["meta"].get("owner"))

    def registry_address(self, domain: str) -> str:
        registry = self._registered(domain)["meta"].get("registry")
        if is_null_address(registry):
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return registry

    def get_domain_from_token_id(self, token_id: str) -> str:
        body = self._get(f"{self.url}/metadata/{token_id}")
        name = body.get("name")
        if not name:
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, method=self.name)
        return str(name)
