"""JSON-RPC over HTTP transport shared by Ethereum- and Zilliqa-style backends.

Brief:
  Every chain-backed backend talks to its node through an object exposing
  `request(method, params) -> result`. JsonRpcTransport implements that over
  `requests`; Web3ProviderTransport adapts web3.py-style providers
  (`make_request(method, params) -> {"result": ...}`); anything else that
  already has a `request` method is used as-is.

  Failures surface as TransportError (or JsonRpcError when the node answered
  with an error object). Backends reclassify these as NamingServiceDown.
"""

from __future__ import annotations

import importlib.metadata
import itertools
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import requests

from ..errors import ConfigurationError, ConfigurationErrorCode

logger = logging.getLogger(__name__)

try:
    CHAINRESOLVE_VERSION = importlib.metadata.version("chainresolve")
except importlib.metadata.PackageNotFoundError:  # pragma: no cover
    CHAINRESOLVE_VERSION = "unknown"

DEFAULT_TIMEOUT_MS = 5000


class TransportError(Exception):
    """
    Brief: The node could not be reached or returned an unusable response.

    Inputs:
    - message: Description of the error

    Outputs:
    - Exception instance
    """

    pass


class JsonRpcError(TransportError):
    """
    Brief: The node answered with a JSON-RPC error object.

    Inputs:
    - code: JSON-RPC error code (may be None)
    - message: error message reported by the node
    - data: optional error data (revert payload for eth_call)
    """

    def __init__(self, code: Optional[int], message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"JSON-RPC error {code}: {message}")

    @property
    def is_revert(self) -> bool:
        return "revert" in (self.message or "").lower()


@runtime_checkable
class Transport(Protocol):
    def request(self, method: str, params: List[Any]) -> Any: ...


class JsonRpcTransport:
    """
    Brief: Minimal JSON-RPC 2.0 client over HTTP(S) using a requests.Session.

    Inputs:
    - url: node endpoint
    - timeout_ms: per-request timeout
    - headers: optional extra headers
    - session: optional pre-built requests.Session (tests inject fakes here)

    Example:
        >>> t = JsonRpcTransport("https://api.zilliqa.com")
        >>> t.url
        'https://api.zilliqa.com'
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout_ms = int(timeout_ms)
        self._session = session or requests.Session()
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()
        extra = dict(headers or {})
        if not any(k.lower() == "user-agent" for k in extra):
            extra["User-Agent"] = f"chainresolve v{CHAINRESOLVE_VERSION}"
        self._headers = {"Content-Type": "application/json", **extra}

    def _next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def request(self, method: str, params: List[Any]) -> Any:
        """
        Brief: Send one JSON-RPC call and return its `result`.

        Inputs:
        - method: RPC method name (e.g. eth_call, GetSmartContractSubState)
        - params: positional params list

        Outputs:
        - Any: the decoded `result` member

        Raises:
        - JsonRpcError when the response carries an `error` member
        - TransportError for network errors, non-2xx status or non-JSON bodies
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }
        logger.debug("JSON-RPC %s -> %s", method, self.url)
        try:
            resp = self._session.post(
                self.url,
                json=payload,
                headers=self._headers,
                timeout=self.timeout_ms / 1000.0,
            )
        except requests.RequestException as e:
            raise TransportError(f"Network error calling {method}: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise TransportError(f"HTTP {resp.status_code} calling {method}")

        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON RPC response for {method}") from e

        return _unwrap_response(method, body)


def _unwrap_response(method: str, body: Any) -> Any:
    if not isinstance(body, dict):
        raise TransportError(f"Invalid JSON RPC response for {method}")
    error = body.get("error")
    if error:
        if isinstance(error, dict):
            raise JsonRpcError(error.get("code"), str(error.get("message", "")), error.get("data"))
        raise JsonRpcError(None, str(error))
    if "result" not in body:
        raise TransportError(f"Invalid JSON RPC response for {method}")
    return body["result"]


class Web3ProviderTransport:
    """
    Brief: Adapter for providers exposing `make_request(method, params)`.

    Inputs:
    - provider: e.g. a web3.py HTTPProvider

    Outputs:
    - Transport-compatible object
    """

    def __init__(self, provider: Any) -> None:
        self.provider = provider

    def request(self, method: str, params: List[Any]) -> Any:
        try:
            body = self.provider.make_request(method, params)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Provider failed calling {method}: {e}") from e
        return _unwrap_response(method, dict(body) if body is not None else None)


class ProviderTransport:
    """
    Brief: Adapter for injected providers exposing `request(method, params)`.

    Inputs:
    - provider: caller-supplied object answering JSON-RPC methods

    Outputs:
    - Transport-compatible object whose failures are always TransportError
    """

    def __init__(self, provider: Any) -> None:
        self.provider = provider

    def request(self, method: str, params: List[Any]) -> Any:
        try:
            return self.provider.request(method, params)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Provider failed calling {method}: {e}") from e


def as_transport(provider: Any) -> Transport:
    """
    Brief: Coerce an injected provider into a Transport.

    Inputs:
    - provider: object with request(method, params) or make_request(method, params)

    Outputs:
    - Transport

    Raises:
    - ConfigurationError(IncorrectProvider) when neither method exists
    """
    if isinstance(provider, (JsonRpcTransport, ProviderTransport, Web3ProviderTransport)):
        return provider
    if callable(getattr(provider, "request", None)):
        return ProviderTransport(provider)
    if callable(getattr(provider, "make_request", None)):
        return Web3ProviderTransport(provider)
    raise ConfigurationError(ConfigurationErrorCode.IncorrectProvider)
