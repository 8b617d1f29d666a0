"""Conversion between flat dotted-key record sets and structured views.

Brief:
  Backends return records as a flat mapping such as
  {"crypto.ETH.address": "0x..", "whois.email.value": "a@b.com"}.
  This module is the only place that understands the dotted-key convention:
    - structure(): flat map -> nested dict keyed by path segments
    - extract_addresses(): nested map -> {TICKER: address}
    - extract_dns(): flat map -> typed DnsRecord list
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .types import DnsRecord, DnsRecordType

logger = logging.getLogger(__name__)

DEFAULT_DNS_TTL = 300

RecordTree = Dict[str, Any]


def _split_key(key: str) -> List[str]:
    segments = str(key).split(".")
    if any(not s for s in segments):
        raise ValueError(f"record key {key!r} contains an empty path segment")
    return segments


def structure(flat_records: Mapping[str, str]) -> RecordTree:
    """Brief: Expand dotted record keys into a nested dict.

    Inputs:
      - flat_records: mapping of dotted keys to string values.

    Outputs:
      - dict: nested mapping. Intermediate levels are always dicts; a scalar
        never replaces a level that has already been expanded.

    Example:
      >>> structure({"crypto.ETH.address": "0xabc", "whois.email.value": "a@b.com"})
      {'crypto': {'ETH': {'address': '0xabc'}}, 'whois': {'email': {'value': 'a@b.com'}}}
    """
    tree: RecordTree = {}
    for key, value in flat_records.items():
        try:
            *parents, leaf = _split_key(key)
        except ValueError:
            logger.debug("Skipping malformed record key %r", key)
            continue
        node = tree
        for segment in parents:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        if isinstance(node.get(leaf), dict):
            continue
        node[leaf] = value
    return tree


def extract_addresses(tree: Mapping[str, Any]) -> Dict[str, str]:
    """Brief: Collect `crypto.<TICKER>.address` leaves into a flat map.

    Example:
      >>> extract_addresses({"crypto": {"ETH": {"address": "0xabc"}, "BTC": {}}})
      {'ETH': '0xabc'}
    """
    crypto = tree.get("crypto")
    if not isinstance(crypto, dict):
        return {}
    addresses: Dict[str, str] = {}
    for ticker, entry in crypto.items():
        if isinstance(entry, dict) and entry.get("address"):
            addresses[ticker] = entry["address"]
    return addresses


def non_empty(records: Mapping[str, Optional[str]]) -> Dict[str, str]:
    return {k: v for k, v in records.items() if v}


def crypto_address_key(ticker: str) -> str:
    return f"crypto.{ticker.upper()}.address"


def multi_chain_address_key(ticker: str, chain: str) -> str:
    return f"crypto.{ticker.upper()}.version.{chain.upper()}.address"


def dns_record_keys(types: Iterable[DnsRecordType]) -> List[str]:
    """Brief: Record keys needed to rebuild DNS records of the given types.

    Example:
      >>> dns_record_keys([DnsRecordType.A])
      ['dns.ttl', 'dns.A', 'dns.A.ttl']
    """
    keys = ["dns.ttl"]
    for t in types:
        name = DnsRecordType(t).value
        keys.append(f"dns.{name}")
        keys.append(f"dns.{name}.ttl")
    return keys


def _parse_ttl(value: Optional[str]) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(str(value), 10)
    except ValueError:
        return None


def extract_dns(
    flat_records: Mapping[str, str],
    requested_types: Optional[Sequence[DnsRecordType]] = None,
) -> List[DnsRecord]:
    """Brief: Rebuild DNS records from `dns.<TYPE>` / `dns.<TYPE>.ttl` / `dns.ttl`.

    Inputs:
      - flat_records: flat record map (typically from records(domain, keys)).
      - requested_types: types to extract; defaults to every type present.

    Outputs:
      - list[DnsRecord]: one entry per value of each `dns.<TYPE>` JSON array.
        TTL comes from `dns.<TYPE>.ttl`, then `dns.ttl`, then DEFAULT_DNS_TTL.

    Example:
      >>> recs = extract_dns({"dns.A": '["10.0.0.1"]', "dns.ttl": "128"}, [DnsRecordType.A])
      >>> [(r.type.value, r.TTL, r.data) for r in recs]
      [('A', 128, '10.0.0.1')]
    """
    if requested_types is None:
        present = []
        for key in flat_records:
            parts = key.split(".")
            if len(parts) == 2 and parts[0] == "dns" and parts[1] != "ttl":
                try:
                    present.append(DnsRecordType(parts[1]))
                except ValueError:
                    continue
        requested_types = present

    default_ttl = _parse_ttl(flat_records.get("dns.ttl"))
    out: List[DnsRecord] = []
    for t in requested_types:
        rtype = DnsRecordType(t)
        raw = flat_records.get(f"dns.{rtype.value}")
        if not raw:
            continue
        try:
            values = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring malformed dns.%s record value %r", rtype.value, raw)
            continue
        if not isinstance(values, list):
            continue
        ttl = _parse_ttl(flat_records.get(f"dns.{rtype.value}.ttl"))
        if ttl is None:
            ttl = default_ttl if default_ttl is not None else DEFAULT_DNS_TTL
        out.extend(DnsRecord(type=rtype, TTL=ttl, data=str(v)) for v in values)
    return out
