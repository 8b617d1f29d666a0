"""
Brief: Tests for chainresolve.records flat/structured record conversion.

Inputs:
  - None

Outputs:
  - None
"""

import json

from chainresolve.records import (
    DEFAULT_DNS_TTL,
    crypto_address_key,
    dns_record_keys,
    extract_addresses,
    extract_dns,
    multi_chain_address_key,
    non_empty,
    structure,
)
from chainresolve.types import DnsRecordType


def test_structure_nests_dotted_keys():
    """
    Brief: structure() expands dotted keys into nested dicts.

    Inputs:
      - None

    Outputs:
      - None: Asserts nested shape
    """
    tree = structure(
        {
            "crypto.ETH.address": "0xabc",
            "crypto.USDT.version.ERC20.address": "0xdef",
            "whois.email.value": "a@b.com",
        }
    )
    assert tree["crypto"]["ETH"]["address"] == "0xabc"
    assert tree["crypto"]["USDT"]["version"]["ERC20"]["address"] == "0xdef"
    assert tree["whois"] == {"email": {"value": "a@b.com"}}


def test_structure_prefers_deeper_levels_over_scalars():
    """
    Brief: A scalar never replaces an already-expanded level, in either order.

    Inputs:
      - None

    Outputs:
      - None: Asserts dns.A stays a dict holding ttl
    """
    first = structure({"dns.A": '["1.1.1.1"]', "dns.A.ttl": "60"})
    second = structure({"dns.A.ttl": "60", "dns.A": '["1.1.1.1"]'})
    assert first == second == {"dns": {"A": {"ttl": "60"}}}


def test_structure_skips_malformed_keys():
    """
    Brief: Keys with empty path segments are ignored.

    Inputs:
      - None

    Outputs:
      - None: Asserts only the valid key survives
    """
    assert structure({"a..b": "x", "ok.key": "y"}) == {"ok": {"key": "y"}}


def test_extract_addresses_ignores_empty_and_nested():
    """
    Brief: Only non-empty crypto.<TICKER>.address leaves become addresses.

    Inputs:
      - None

    Outputs:
      - None: Asserts the ticker map
    """
    tree = structure(
        {
            "crypto.ETH.address": "0xabc",
            "crypto.BTC.address": "",
            "crypto.USDT.version.ERC20.address": "0xdef",
        }
    )
    assert extract_addresses(tree) == {"ETH": "0xabc"}
    assert extract_addresses({}) == {}


def test_key_helpers_uppercase_tickers():
    """
    Brief: Record key helpers uppercase ticker and chain.

    Inputs:
      - None

    Outputs:
      - None: Asserts the key strings
    """
    assert crypto_address_key("eth") == "crypto.ETH.address"
    assert multi_chain_address_key("usdt", "erc20") == "crypto.USDT.version.ERC20.address"
    assert non_empty({"a": "1", "b": "", "c": None}) == {"a": "1"}


def test_extract_dns_ttl_precedence():
    """
    Brief: Per-type ttl beats dns.ttl, which beats the default.

    Inputs:
      - None

    Outputs:
      - None: Asserts TTL for A, AAAA and CNAME
    """
    records = {
        "dns.ttl": "128",
        "dns.A": json.dumps(["10.0.0.1", "10.0.0.2"]),
        "dns.A.ttl": "60",
        "dns.AAAA": json.dumps(["::1"]),
    }
    out = extract_dns(records, [DnsRecordType.A, DnsRecordType.AAAA, DnsRecordType.CNAME])
    assert [(r.type, r.TTL, r.data) for r in out] == [
        (DnsRecordType.A, 60, "10.0.0.1"),
        (DnsRecordType.A, 60, "10.0.0.2"),
        (DnsRecordType.AAAA, 128, "::1"),
    ]

    default = extract_dns({"dns.TXT": '["hello"]'})
    assert default[0].TTL == DEFAULT_DNS_TTL


def test_extract_dns_skips_malformed_values():
    """
    Brief: Non-JSON and non-list dns values are ignored.

    Inputs:
      - None

    Outputs:
      - None: Asserts an empty result
    """
    assert extract_dns({"dns.A": "not json", "dns.MX": '"single"'}) == []


def test_dns_record_keys_lists_ttl_keys():
    """
    Brief: dns_record_keys requests the shared ttl plus value and ttl per type.

    Inputs:
      - None

    Outputs:
      - None: Asserts key list
    """
    assert dns_record_keys([DnsRecordType.A, DnsRecordType.MX]) == [
        "dns.ttl",
        "dns.A",
        "dns.A.ttl",
        "dns.MX",
        "dns.MX.ttl",
    ]
