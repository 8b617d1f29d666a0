"""
Brief: Tests for the Zilliqa backend chainresolve.backends.zns.Zns.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from chainresolve.backends.zns import Zns
from chainresolve.errors import ResolutionError, ResolutionErrorCode
from chainresolve.resolution import Resolution
from chainresolve.transports.jsonrpc import TransportError
from chainresolve.types import NULL_ADDRESS
from chainresolve.utils.addresses import to_bech32_address

REGISTRY = "0x" + "ab" * 20
RESOLVER = "0x" + "cd" * 20
OWNER_HEX = "0x" + "12" * 20


def _zns(chain):
    return Zns.from_source({"provider": chain, "registry_address": REGISTRY})


def _register(chain, zns, domain, owner=OWNER_HEX, resolver=RESOLVER, records=None):
    node = zns.namehash(domain)
    registry = chain.substates.setdefault((REGISTRY[2:], "records"), {})
    registry[node] = {"argtypes": [], "arguments": [owner, resolver], "constructor": "Record"}
    if records is not None:
        chain.substates[(resolver[2:].lower(), "records")] = records


def test_registry_read_uses_substate_of_hex_registry(make_chain):
    """
    Brief: Registry lookups send GetSmartContractSubState with bare hex and the node.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts request params and owner re-encoded as bech32
    """
    chain = make_chain()
    zns = _zns(chain)
    _register(chain, zns, "brad.zil", records={})
    assert zns.owner("brad.zil") == to_bech32_address(OWNER_HEX)
    method, params = chain.requests[0]
    assert method == "GetSmartContractSubState"
    assert params == [REGISTRY[2:], "records", [zns.namehash("brad.zil")]]


def test_records_and_resolve(make_chain):
    """
    Brief: Records come from one resolver substate read; resolve builds the result.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts records, missing keys, addresses, owner and ttl
    """
    chain = make_chain()
    zns = _zns(chain)
    records = {
        "crypto.ZIL.address": "zil1yu5u4hegy9v3xgluweg4en54zm8f8auwxu0xxj",
        "crypto.ETH.address": "0x45b31e01AA6f42F0549aD482BE81635ED3149abb",
        "ttl": "300",
    }
    _register(chain, zns, "brad.zil", records=records)

    assert zns.resolver("brad.zil") == RESOLVER
    assert zns.records("brad.zil", ["crypto.ETH.address", "crypto.BTC.address"]) == {
        "crypto.ETH.address": "0x45b31e01AA6f42F0549aD482BE81635ED3149abb",
        "crypto.BTC.address": "",
    }
    with pytest.raises(ResolutionError) as exc:
        zns.record("brad.zil", "crypto.BTC.address")
    assert exc.value.code is ResolutionErrorCode.RecordNotFound

    result = zns.resolve("brad.zil")
    assert result.meta.owner == to_bech32_address(OWNER_HEX)
    assert result.meta.type == "ZNS"
    assert result.meta.ttl == 300
    assert result.addresses["ZIL"] == records["crypto.ZIL.address"]


def test_unclaimed_domain(make_chain):
    """
    Brief: An absent registry entry is unregistered, with a null owner and empty resolve.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts owner None, is_registered False and UnregisteredDomain
    """
    chain = make_chain()
    zns = _zns(chain)
    assert zns.owner("test.zil") is None
    assert zns.is_registered("test.zil") is False
    assert zns.is_available("test.zil") is True
    result = zns.resolve("test.zil")
    assert result.meta.owner is None
    assert result.addresses == {}
    with pytest.raises(ResolutionError) as exc:
        zns.resolver("test.zil")
    assert exc.value.code is ResolutionErrorCode.UnregisteredDomain


def test_null_resolver_is_unspecified(make_chain):
    """
    Brief: Owned domain with a null resolver raises UnspecifiedResolver.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts code
    """
    chain = make_chain()
    zns = _zns(chain)
    _register(chain, zns, "brad.zil", resolver=NULL_ADDRESS)
    with pytest.raises(ResolutionError) as exc:
        zns.all_records("brad.zil")
    assert exc.value.code is ResolutionErrorCode.UnspecifiedResolver


def test_unsupported_domain_short_circuits(make_chain):
    """
    Brief: Domains outside the zone never reach the node.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts no requests issued
    """
    chain = make_chain()
    zns = _zns(chain)
    assert zns.is_supported_domain("brad.zil")
    assert not zns.is_supported_domain("brad.crypto")
    assert not zns.is_supported_domain("zil")
    assert zns.is_registered("brad.crypto") is False
    assert chain.requests == []


def test_transport_failure_is_naming_service_down():
    """
    Brief: Transport errors surface as NamingServiceDown naming ZNS.

    Inputs:
      - None

    Outputs:
      - None: Asserts code and method
    """

    class Down:
        def request(self, method, params):
            raise TransportError("timeout")

    zns = Zns.from_source({"provider": Down(), "registry_address": REGISTRY})
    with pytest.raises(ResolutionError) as exc:
        zns.owner("brad.zil")
    assert exc.value.code is ResolutionErrorCode.NamingServiceDown
    assert exc.value.method == "ZNS"


def test_unsupported_methods(make_chain):
    """
    Brief: Token and reverse lookups are not available on ZNS.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - None: Asserts UnsupportedMethod with method names
    """
    zns = _zns(make_chain())
    with pytest.raises(ResolutionError) as exc:
        zns.get_token_uri("brad.zil")
    assert exc.value.code is ResolutionErrorCode.UnsupportedMethod
    assert exc.value.method_name == "get_token_uri"
    with pytest.raises(ResolutionError):
        zns.reverse_of("0x" + "00" * 20)


def test_injected_provider_exception_is_naming_service_down():
    """
    Brief: Any exception from an injected request() provider becomes NamingServiceDown.

    Inputs:
      - None

    Outputs:
      - None: Asserts code, method and chained cause through Resolution
    """

    class Unreachable:
        def request(self, method, params):
            raise ConnectionError("node unreachable")

    res = Resolution(
        {
            "uns": False,
            "ens": False,
            "zns": {"provider": Unreachable(), "registry_address": REGISTRY},
        }
    )
    with pytest.raises(ResolutionError) as exc:
        res.owner("brad.zil")
    assert exc.value.code is ResolutionErrorCode.NamingServiceDown
    assert exc.value.method == "ZNS"
    assert isinstance(exc.value.__cause__, TransportError)
    assert isinstance(exc.value.__cause__.__cause__, ConnectionError)
