"""
Brief: Tests for the ENS backend chainresolve.backends.ens.Ens.

Inputs:
  - None

Outputs:
  - None
"""

import pytest
from conftest import address

from chainresolve.backends.ens import Ens, coin_type_for
from chainresolve.contracts.abi import ENS_REGISTRY_ABI, ENS_RESOLVER_ABI
from chainresolve.errors import ResolutionError, ResolutionErrorCode
from chainresolve.hashing import HashAlgorithm, namehash
from chainresolve.types import NULL_ADDRESS

REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
OWNER = address(0x1)
RESOLVER = address(0x2)
ETH_ADDRESS = address(0x3)
MATIC_BYTES = bytes.fromhex("44" * 20)
BTC_BYTES = bytes.fromhex("0014" + "ab" * 20)


def _node(domain):
    return bytes.fromhex(namehash(domain, HashAlgorithm.KECCAK_256)[2:])


@pytest.fixture
def ens(make_chain):
    """
    Brief: Ens over a FakeChain with vitalik.eth registered.

    Inputs:
      - make_chain: FakeChain factory

    Outputs:
      - tuple: (chain, Ens backend)
    """
    chain = make_chain()
    owners = {_node("vitalik.eth"): OWNER, _node("noresolver.eth"): OWNER}
    resolvers = {_node("vitalik.eth"): RESOLVER}
    chain.on_call(REGISTRY, ENS_REGISTRY_ABI["owner"], lambda n: (owners.get(n, NULL_ADDRESS),))
    chain.on_call(
        REGISTRY, ENS_REGISTRY_ABI["resolver"], lambda n: (resolvers.get(n, NULL_ADDRESS),)
    )
    chain.on_call(REGISTRY, ENS_REGISTRY_ABI["ttl"], lambda n: (3600 if n in owners else 0,))

    texts = {"url": "https://vitalik.ca", "avatar": ""}
    chain.on_call(RESOLVER, ENS_RESOLVER_ABI["addr"], lambda n: (ETH_ADDRESS,))
    chain.on_call(
        RESOLVER,
        ENS_RESOLVER_ABI["addrForCoinType"],
        lambda n, coin: ({0: BTC_BYTES, 966: MATIC_BYTES}.get(coin, b""),),
    )
    chain.on_call(RESOLVER, ENS_RESOLVER_ABI["text"], lambda n, key: (texts.get(key, ""),))
    chain.on_call(RESOLVER, ENS_RESOLVER_ABI["name"], lambda n: ("vitalik.eth",))
    resolvers[_node(f"{OWNER.lower()[2:]}.addr.reverse")] = RESOLVER
    return chain, Ens.from_source({"provider": chain})


def test_owner_resolver_and_registration(ens):
    """
    Brief: Registry reads expose owner and resolver; null owner means unregistered.

    Inputs:
      - ens: fixture

    Outputs:
      - None: Asserts values and error codes
    """
    _, backend = ens
    assert backend.owner("vitalik.eth") == OWNER
    assert backend.resolver("vitalik.eth") == RESOLVER
    assert backend.is_registered("vitalik.eth")
    assert backend.owner("nobody.eth") is None
    assert backend.is_available("nobody.eth")

    with pytest.raises(ResolutionError) as exc:
        backend.resolver("nobody.eth")
    assert exc.value.code is ResolutionErrorCode.UnregisteredDomain
    with pytest.raises(ResolutionError) as exc:
        backend.resolver("noresolver.eth")
    assert exc.value.code is ResolutionErrorCode.UnspecifiedResolver


def test_records_by_key_kind(ens):
    """
    Brief: ETH uses addr(node), other coins addr(node, coinType), the rest text().

    Inputs:
      - ens: fixture

    Outputs:
      - None: Asserts each record form
    """
    _, backend = ens
    values = backend.records(
        "vitalik.eth",
        [
            "crypto.ETH.address",
            "crypto.MATIC.address",
            "crypto.BTC.address",
            "crypto.LTC.address",
            "url",
        ],
    )
    assert values == {
        "crypto.ETH.address": ETH_ADDRESS,
        "crypto.MATIC.address": "0x" + "44" * 20,
        "crypto.BTC.address": "0x" + BTC_BYTES.hex(),
        "crypto.LTC.address": "",
        "url": "https://vitalik.ca",
    }
    with pytest.raises(ResolutionError) as exc:
        backend.record("vitalik.eth", "avatar")
    assert exc.value.code is ResolutionErrorCode.RecordNotFound


def test_unknown_ticker_is_unsupported_currency(ens):
    """
    Brief: Tickers without a SLIP-44 coin type raise UnsupportedCurrency.

    Inputs:
      - ens: fixture

    Outputs:
      - None: Asserts error code and coin type lookup
    """
    _, backend = ens
    assert coin_type_for("eth") == 60
    with pytest.raises(ResolutionError) as exc:
        backend.record("vitalik.eth", "crypto.NOPE.address")
    assert exc.value.code is ResolutionErrorCode.UnsupportedCurrency


def test_resolve_and_reverse(ens):
    """
    Brief: resolve() returns owner, ttl and ETH address; reverse_of reads addr.reverse.

    Inputs:
      - ens: fixture

    Outputs:
      - None: Asserts result and primary name
    """
    _, backend = ens
    result = backend.resolve("vitalik.eth")
    assert result.addresses == {"ETH": ETH_ADDRESS}
    assert (result.meta.owner, result.meta.type, result.meta.ttl) == (OWNER, "ENS", 3600)
    assert result.records is None

    assert backend.reverse_of(OWNER) == "vitalik.eth"
    assert backend.reverse_of(address(0x99)) is None
    assert backend.registry_address("vitalik.eth") == REGISTRY


def test_token_lookups_unsupported(ens):
    """
    Brief: ENS has no token URI or record enumeration support.

    Inputs:
      - ens: fixture

    Outputs:
      - None: Asserts UnsupportedMethod
    """
    _, backend = ens
    for call in (lambda: backend.get_token_uri("vitalik.eth"), lambda: backend.all_records("vitalik.eth")):
        with pytest.raises(ResolutionError) as exc:
            call()
        assert exc.value.code is ResolutionErrorCode.UnsupportedMethod
