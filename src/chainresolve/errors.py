"""Error taxonomy for chainresolve.

Brief:
  Two independent error families are defined here:
    - ResolutionError: raised at call time by backends and the orchestrator.
    - ConfigurationError: raised at construction time while sources are being
      normalized into BackendConfig objects.

  Every error carries its machine-readable code plus whichever contextual
  fields apply, so callers never need to parse messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional


class ResolutionErrorCode(str, Enum):
    """Brief: Closed set of resolution failure kinds."""

    UnsupportedDomain = "UnsupportedDomain"
    UnsupportedService = "UnsupportedService"
    UnregisteredDomain = "UnregisteredDomain"
    UnspecifiedResolver = "UnspecifiedResolver"
    UnspecifiedCurrency = "UnspecifiedCurrency"
    RecordNotFound = "RecordNotFound"
    UnsupportedCurrency = "UnsupportedCurrency"
    UnsupportedMethod = "UnsupportedMethod"
    NamingServiceDown = "NamingServiceDown"
    ServiceProviderError = "ServiceProviderError"


_RESOLUTION_MESSAGES: Dict[ResolutionErrorCode, Callable[[dict], str]] = {
    ResolutionErrorCode.UnsupportedDomain: lambda p: f"Domain {p.get('domain')} is not supported",
    ResolutionErrorCode.UnsupportedService: lambda p: f"Naming service {p.get('naming_service')} is not supported",
    ResolutionErrorCode.UnregisteredDomain: lambda p: f"Domain {p.get('domain')} is not registered",
    ResolutionErrorCode.UnspecifiedResolver: lambda p: f"Domain {p.get('domain')} is not configured",
    ResolutionErrorCode.UnspecifiedCurrency: lambda p: (
        f"Domain {p.get('domain')} has no {p.get('currency_ticker')} attached to it"
    ),
    ResolutionErrorCode.RecordNotFound: lambda p: (
        f"No {p.get('record_name')} record found for {p.get('domain')}"
    ),
    ResolutionErrorCode.UnsupportedCurrency: lambda p: f"{p.get('currency_ticker')} is not supported",
    ResolutionErrorCode.UnsupportedMethod: lambda p: (
        f"Method {p.get('method_name')} is not supported for {p.get('method')}"
    ),
    ResolutionErrorCode.NamingServiceDown: lambda p: f"{p.get('method')} naming service is down at the moment",
    ResolutionErrorCode.ServiceProviderError: lambda p: (
        f"< {p.get('method_name') or p.get('method') or 'provider'} error: {p.get('provider_message')} >"
    ),
}


class ResolutionError(Exception):
    """Brief: Call-time failure raised by backends and the orchestrator.

    Inputs:
      - code: ResolutionErrorCode member.
      - domain, method, currency_ticker, record_name, naming_service,
        provider_message, method_name: optional context; only the ones that
        apply to the code need to be passed.

    Outputs:
      - ResolutionError instance; str(err) is a human-readable message built
        from the code's template.

    Example:
      >>> err = ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain="a.crypto")
      >>> err.code.value, str(err)
      ('UnregisteredDomain', 'Domain a.crypto is not registered')
    """

    def __init__(
        self,
        code: ResolutionErrorCode,
        *,
        domain: Optional[str] = None,
        method: Optional[str] = None,
        currency_ticker: Optional[str] = None,
        record_name: Optional[str] = None,
        naming_service: Optional[str] = None,
        provider_message: Optional[str] = None,
        method_name: Optional[str] = None,
    ) -> None:
        self.code = ResolutionErrorCode(code)
        self.domain = domain
        self.method = method
        self.currency_ticker = currency_ticker
        self.record_name = record_name
        self.naming_service = naming_service
        self.provider_message = provider_message
        self.method_name = method_name
        super().__init__(_RESOLUTION_MESSAGES[self.code](self.context()))

    def context(self) -> Dict[str, Optional[str]]:
        """Return the populated context fields as a dict."""
        fields = {
            "domain": self.domain,
            "method": self.method,
            "currency_ticker": self.currency_ticker,
            "record_name": self.record_name,
            "naming_service": self.naming_service,
            "provider_message": self.provider_message,
            "method_name": self.method_name,
        }
        return {k: v for k, v in fields.items() if v is not None}

    def __repr__(self) -> str:
        return f"ResolutionError({self.code.value}, {self.context()!r})"


def is_error_code(exc: BaseException, code: ResolutionErrorCode) -> bool:
    """Brief: True when exc is a ResolutionError carrying exactly code."""
    return isinstance(exc, ResolutionError) and exc.code == code


class ConfigurationErrorCode(str, Enum):
    """Brief: Closed set of construction-time configuration failures."""

    UnsupportedNetwork = "UnsupportedNetwork"
    UnspecifiedNetwork = "UnspecifiedNetwork"
    UnspecifiedUrl = "UnspecifiedUrl"
    CustomNetworkConfigMissing = "CustomNetworkConfigMissing"
    IncorrectProvider = "IncorrectProvider"
    InvalidConfigurationField = "InvalidConfigurationField"


_CONFIGURATION_MESSAGES: Dict[ConfigurationErrorCode, Callable[[dict], str]] = {
    ConfigurationErrorCode.UnsupportedNetwork: lambda p: (
        f"Unsupported network in Resolution {p.get('method')} configuration: {p.get('network')}"
    ),
    ConfigurationErrorCode.UnspecifiedNetwork: lambda p: (
        f"Unspecified network in Resolution {p.get('method')} configuration"
    ),
    ConfigurationErrorCode.UnspecifiedUrl: lambda p: (
        f"Unspecified url in Resolution {p.get('method')} configuration"
    ),
    ConfigurationErrorCode.CustomNetworkConfigMissing: lambda p: (
        f"Missing {p.get('config')} in Resolution {p.get('method')} configuration "
        f"for custom network {p.get('network')}"
    ),
    ConfigurationErrorCode.IncorrectProvider: lambda p: (
        "Provider does not implement request(method, params) or make_request(method, params)"
    ),
    ConfigurationErrorCode.InvalidConfigurationField: lambda p: (
        f"Invalid {p.get('field')} in Resolution {p.get('method')} configuration: {p.get('detail')}"
    ),
}


class ConfigurationError(Exception):
    """Brief: Backend misconfiguration detected while building a backend.

    Inputs:
      - code: ConfigurationErrorCode member.
      - method: naming service name the configuration belongs to.
      - network, config, field, detail: optional context.

    Outputs:
      - ConfigurationError instance.
    """

    def __init__(
        self,
        code: ConfigurationErrorCode,
        *,
        method: Optional[str] = None,
        network: Optional[str] = None,
        config: Optional[str] = None,
        field: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.code = ConfigurationErrorCode(code)
        self.method = method
        self.network = network
        self.config = config
        self.field = field
        self.detail = detail
        params = {
            "method": method,
            "network": network,
            "config": config,
            "field": field,
            "detail": detail,
        }
        super().__init__(_CONFIGURATION_MESSAGES[self.code](params))
